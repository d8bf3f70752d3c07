"""
Reassemble one closed output curve per candidate.

Complementary sub-curves, offset sub-curves and straight bridge edges are
joined into a single loop. The stitch case is decided from the piece
counts of the candidate at hand.
"""

from dataclasses import dataclass

from offsetoverlap.kernel.curve import distance, line_curve
from offsetoverlap.kernel.topology import join_curves
from offsetoverlap.models import FailureKind, StitchCase
from offsetoverlap.tracer import get_tracer, trace


@dataclass(frozen=True)
class StitchResult:
    case: StitchCase
    curve: object = None
    bridges: tuple = ()
    failure: FailureKind = None
    message: str = ""

    @property
    def ok(self):
        return self.failure is None


def classify_stitch(candidate, offsets, complementary, tolerance):
    """Pick the stitch case for one candidate from its piece counts."""
    if len(offsets) == 1:
        if candidate.is_linear(tolerance):
            return StitchCase.SINGLE_LINEAR
        if len(complementary) == 1:
            return StitchCase.SINGLE_NONLINEAR
    return StitchCase.MULTI


def make_bridge(start, end, tolerance):
    """Straight bridge edge, or None when the endpoints already coincide."""
    if distance(start, end) <= tolerance:
        return None
    return line_curve(start, end)


def nearest_bridges(complementary, offsets, tolerance):
    """
    Bridge every offset endpoint to the nearest unused complementary endpoint.

    Candidate endpoints are all complementary starts followed by all ends;
    ties resolve to the earlier one.
    """
    endpoints = [c.point_at_start for c in complementary] + [c.point_at_end for c in complementary]
    used = set()
    bridges = []

    for offset in offsets:
        for point in (offset.point_at_start, offset.point_at_end):
            free = [i for i in range(len(endpoints)) if i not in used]
            if not free:
                return bridges
            nearest = min(free, key=lambda i: distance(endpoints[i], point))
            used.add(nearest)
            bridges.append(make_bridge(point, endpoints[nearest], tolerance))

    return bridges


@trace(label="stitch_candidate")
def stitch_candidate(candidate, overlapping, complementary, offsets, tolerances, stitch_config):
    """
    Join a candidate's pieces into one closed curve.

    Args:
        candidate: the candidate Curve
        overlapping: overlapping sub-curves (before offset)
        complementary: complementary sub-curves
        offsets: offset sub-curves
        tolerances: ToleranceConfig
        stitch_config: StitchConfig

    Returns:
        StitchResult with the closed curve, or the failure that dropped it
    """
    tracer = get_tracer()

    match_tol = tolerances.point_match_tolerance
    case = classify_stitch(candidate, offsets, complementary, tolerances.intersection_tolerance)

    if case == StitchCase.SINGLE_LINEAR:
        # The whole overlap is consumed; close the strip between arc and offset
        source = overlapping[0]
        offset = offsets[0]
        bridges = [
            make_bridge(source.point_at_end, offset.point_at_end, match_tol),
            make_bridge(offset.point_at_start, source.point_at_start, match_tol),
        ]
        pieces = [source, bridges[0], offset, bridges[1]]
    elif case == StitchCase.SINGLE_NONLINEAR:
        comp = complementary[0]
        offset = offsets[0]
        bridges = [
            make_bridge(comp.point_at_end, offset.point_at_start, match_tol),
            make_bridge(offset.point_at_end, comp.point_at_start, match_tol),
        ]
        pieces = [comp, bridges[0], offset, bridges[1]]
    else:
        bridges = nearest_bridges(complementary, offsets, match_tol)
        pieces = list(complementary) + list(offsets) + bridges

    bridges = tuple(b for b in bridges if b is not None)
    joined = join_curves([p for p in pieces if p is not None], tolerances.closure_tolerance)

    tracer.event(f"Stitch {case.value}: {len(pieces)} pieces, {len(bridges)} bridges -> {len(joined)} curves")

    if not joined:
        return StitchResult(case, bridges=bridges, failure=FailureKind.CLOSURE_FAILED,
                            message="nothing left to join")

    message = ""
    if len(joined) > 1:
        message = f"join produced {len(joined)} disjoint curves"
        if not stitch_config.allow_ambiguous_join:
            tracer.event(message, level="WARN")
            return StitchResult(case, bridges=bridges, failure=FailureKind.JOIN_AMBIGUOUS, message=message)
        message += ", kept the first"
        tracer.event(message, level="WARN")

    curve = joined[0]
    if not curve.is_closed(tolerances.closure_tolerance):
        gap = distance(curve.point_at_start, curve.point_at_end)
        return StitchResult(case, bridges=bridges, failure=FailureKind.CLOSURE_FAILED,
                            message=f"output curve is open (gap {gap:.4g})")

    return StitchResult(case, curve=curve, bridges=bridges, message=message)

"""
Partition a candidate into overlapping and complementary sub-curves.

Overlapping pieces are trimmed from the candidate and joined where they
touch. The complementary pieces are what is left after splitting the
candidate at the ends of the joined overlapping sub-curves.
"""

from dataclasses import dataclass

from offsetoverlap.kernel.curve import distance
from offsetoverlap.kernel.topology import join_curves, split, trim
from offsetoverlap.tracer import get_tracer, trace


@dataclass(frozen=True)
class Partition:
    overlapping: tuple
    complementary: tuple
    parameters: tuple
    trim_fallbacks: int = 0


def normalize_interval(interval):
    """Order a raw (first, second) parameter pair as (lo, hi)."""
    first, second = interval
    return min(first, second), max(first, second)


def nearest_parameter(curve, parameters, point):
    """
    Parameter whose point on curve is nearest to the given point.

    Ties resolve to the earliest entry in parameters.
    """
    return min(parameters, key=lambda t: distance(curve.point_at(t), point))


@trace(label="partition_candidate")
def partition_candidate(candidate, intervals, tolerances):
    """
    Split a candidate along its overlap intervals.

    Args:
        candidate: Curve being processed
        intervals: raw overlap parameter pairs in the candidate's domain
        tolerances: ToleranceConfig

    Returns:
        Partition with the joined overlapping sub-curves, the complementary
        sub-curves and the raw interval parameters
    """
    tracer = get_tracer()

    pieces = []
    parameters = []
    fallbacks = 0

    for raw in intervals:
        lo, hi = normalize_interval(raw)
        trimmed = trim(candidate, lo, hi)
        if trimmed is None:
            # The interval covers the whole candidate
            trimmed = candidate
            fallbacks += 1
        pieces.append(trimmed)
        parameters.extend(raw)

    overlapping = join_curves(pieces, tolerances.intersection_tolerance)

    complementary = complementary_segments(
        candidate, parameters, overlapping, tolerances.point_match_tolerance
    )

    tracer.event(
        f"Partition: {len(pieces)} trimmed -> {len(overlapping)} overlapping, "
        f"{len(complementary)} complementary"
    )

    return Partition(
        overlapping=tuple(overlapping),
        complementary=tuple(complementary),
        parameters=tuple(parameters),
        trim_fallbacks=fallbacks,
    )


def complementary_segments(candidate, parameters, overlapping, match_tolerance):
    """
    Pieces of the candidate not covered by any overlapping sub-curve.

    Joined sub-curves no longer carry their interval bounds, so each end is
    matched back to the nearest raw parameter by point distance before the
    candidate is split. Split pieces whose midpoint coincides with the
    midpoint of an overlapping sub-curve are discarded.
    """
    distinct = list(dict.fromkeys(parameters))
    if not distinct or not overlapping:
        return [candidate]

    cuts = []
    for segment in overlapping:
        cuts.append(nearest_parameter(candidate, distinct, segment.point_at_start))
        cuts.append(nearest_parameter(candidate, distinct, segment.point_at_end))

    pieces = split(candidate, cuts)
    overlap_mids = [segment.midpoint for segment in overlapping]

    return [
        piece for piece in pieces
        if not any(distance(piece.midpoint, mid) < match_tolerance for mid in overlap_mids)
    ]

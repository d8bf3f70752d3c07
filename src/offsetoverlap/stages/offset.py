"""
Offset the overlapping sub-curves of a candidate.

The displacement side is taken relative to the part: each sub-curve's
travel direction is compared with the part's direction where they
coincide, so a positive distance always moves away from a
counter-clockwise part.
"""

import numpy as np

from offsetoverlap.kernel.offset import OffsetResult, offset_curve
from offsetoverlap.kernel.topology import join_curves
from offsetoverlap.tracer import get_tracer, trace


def offset_side(segment, reference, plane):
    """
    +1 when segment runs with reference where they coincide, -1 otherwise.
    """
    t0, t1 = segment.domain
    mid = 0.5 * (t0 + t1)
    point = segment.point_at(mid)
    tangent = segment.tangent_at(mid)
    ref_tangent = reference.tangent_at(reference.closest_parameter(point))

    # Compare in-plane components only
    tangent = tangent - np.dot(tangent, plane.normal) * plane.normal
    ref_tangent = ref_tangent - np.dot(ref_tangent, plane.normal) * plane.normal
    return -1.0 if float(np.dot(tangent, ref_tangent)) < 0 else 1.0


@trace(label="offset_segments")
def offset_segments(segments, plane, distance, tolerances, offset_config, reference=None):
    """
    Offset every overlapping sub-curve by a signed distance.

    Args:
        segments: overlapping sub-curves
        plane: working Plane
        distance: signed offset distance
        tolerances: ToleranceConfig
        offset_config: OffsetConfig (corner style, mitre limit)
        reference: the part; when given, the side follows its direction

    Returns:
        OffsetResult whose pieces are the joined offset sub-curves. A zero
        distance returns the sub-curves unchanged.
    """
    tracer = get_tracer()

    if distance == 0:
        tracer.event("Zero offset distance, keeping overlapping sub-curves")
        return OffsetResult(pieces=tuple(segments))

    offsets = []
    for index, segment in enumerate(segments):
        side = offset_side(segment, reference, plane) if reference is not None else 1.0
        result = offset_curve(
            segment, plane, distance * side,
            tolerance=tolerances.intersection_tolerance,
            corner_style=offset_config.corner_style,
            mitre_limit=offset_config.mitre_limit,
        )
        if not result.ok:
            tracer.event(f"Could not offset segment {index}: {result.failure}", level="ERROR")
            return result

        offsets.extend(join_curves(result.pieces, tolerances.intersection_tolerance))

    tracer.event(f"Offset {len(segments)} segments into {len(offsets)} curves")

    return OffsetResult(pieces=tuple(offsets))

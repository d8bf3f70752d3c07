"""
Planar curve-curve intersection with overlap detection.

Coincident arcs are found as the part of curve A lying within the overlap
tolerance of curve B. Piece ends are refined with a project/interpolate
round trip so both reported intervals end on the true coincident endpoints
rather than on the edge of the tolerance zone.
"""

from dataclasses import dataclass

from shapely.geometry import LineString, Point

from offsetoverlap.tracer import get_tracer, trace


POINT_EVENT = "point"
OVERLAP_EVENT = "overlap"


@dataclass(frozen=True)
class IntersectionEvent:
    """
    One intersection result between curves A and B.

    overlap_a and overlap_b are parameter pairs in each curve's own domain.
    overlap_a is ascending; overlap_b follows A's direction and may be
    descending. Point events carry a degenerate pair.
    """
    kind: str
    overlap_a: tuple
    overlap_b: tuple

    @property
    def is_overlap(self):
        return self.kind == OVERLAP_EVENT


def _geometry_parts(geometry):
    if geometry.is_empty:
        return []
    return list(getattr(geometry, "geoms", [geometry]))


def _piece_intervals(line, piece, closed):
    """
    Arc-length intervals on line covered by piece.

    A piece touching or crossing the seam of a closed line projects one of
    its ends to 0; it is returned as the one or two intervals that do not
    wrap.
    """
    total = line.length
    s0 = line.project(Point(piece.coords[0]))
    s1 = line.project(Point(piece.coords[-1]))
    lo, hi = min(s0, s1), max(s0, s1)
    slack = max(1e-9, 1e-9 * total)
    if not closed or abs((hi - lo) - piece.length) <= max(slack, 1e-6 * piece.length):
        return [(lo, hi)]
    # Wrapping piece: [hi, total] then [0, lo]
    intervals = [(hi, total)]
    if lo > slack:
        intervals.append((0.0, lo))
    return intervals


def _refine(line_a, line_b, s, closed_a):
    """Pull an arc-length position on A onto the nearest coincident point with B."""
    nearest_b = line_b.interpolate(line_b.project(line_a.interpolate(s)))
    refined = line_a.project(nearest_b)
    total = line_a.length
    if closed_a and abs(refined - s) > total * 0.5:
        refined += total if refined < s else -total
    return refined


def _b_interval(line_a, line_b, lo, hi, closed_b):
    """B arc-length pair matching the A interval, in A's direction."""
    b0 = line_b.project(line_a.interpolate(lo))
    b1 = line_b.project(line_a.interpolate(hi))
    if closed_b:
        total = line_b.length
        expected = hi - lo
        if abs(abs(b1 - b0) - expected) > max(1e-6, 1e-6 * total):
            # One end sits on B's seam and projected to 0 instead of the end
            if b0 < b1:
                b0 = total if b0 < 1e-9 * max(total, 1.0) else b0
            else:
                b1 = total if b1 < 1e-9 * max(total, 1.0) else b1
    return b0, b1


@trace(label="intersect_curves")
def intersect_curves(curve_a, curve_b, plane, tolerance=0.01, overlap_tolerance=0.01):
    """
    Intersect two planar curves in the working plane.

    Args:
        curve_a, curve_b: Curve objects
        plane: working Plane
        tolerance: intersection tolerance
        overlap_tolerance: distance under which the curves count as coincident

    Returns:
        list of IntersectionEvent ordered along curve A
    """
    tracer = get_tracer()

    line_a = curve_a.as_linestring(plane)
    line_b = curve_b.as_linestring(plane)
    closed_a = curve_a.is_closed()
    closed_b = curve_b.is_closed()
    ta0 = curve_a.domain[0]
    tb0 = curve_b.domain[0]

    zone = line_b.buffer(overlap_tolerance)
    hits = line_a.intersection(zone)

    min_overlap = 2.0 * overlap_tolerance + tolerance
    events = []

    for part in _geometry_parts(hits):
        if isinstance(part, Point):
            s = line_a.project(part)
            sb = line_b.project(part)
            events.append(IntersectionEvent(POINT_EVENT, (ta0 + s, ta0 + s), (tb0 + sb, tb0 + sb)))
            continue
        if not isinstance(part, LineString):
            continue

        for lo, hi in _piece_intervals(line_a, part, closed_a):
            r_lo = _refine(line_a, line_b, lo, closed_a)
            r_hi = _refine(line_a, line_b, hi, closed_a)
            if r_lo <= r_hi:
                lo, hi = r_lo, r_hi

            if hi - lo <= min_overlap:
                s = 0.5 * (lo + hi)
                sb = line_b.project(line_a.interpolate(s))
                events.append(IntersectionEvent(POINT_EVENT, (ta0 + s, ta0 + s), (tb0 + sb, tb0 + sb)))
                continue

            b0, b1 = _b_interval(line_a, line_b, lo, hi, closed_b)
            events.append(IntersectionEvent(
                OVERLAP_EVENT,
                (ta0 + lo, ta0 + hi),
                (tb0 + b0, tb0 + b1),
            ))

    events.sort(key=lambda e: e.overlap_a[0])

    overlaps = sum(1 for e in events if e.is_overlap)
    tracer.event(f"Intersections: {len(events)} events, {overlaps} overlaps")

    return events

"""
Planar curve offsetting for OffsetOverlap.

Positive distances displace to the right of the travel direction seen from
the plane normal, which is the outside of a counter-clockwise loop. Offset
pieces of an open curve run in the same direction as the curve. Closed
curves are offset as loops: each resulting loop keeps the source's
orientation and starts at the vertex nearest the source's start.
"""

from dataclasses import dataclass

import numpy as np
import shapely
from shapely.errors import GEOSException
from shapely.geometry import LinearRing, LineString, Polygon

from offsetoverlap.kernel.curve import Curve


CORNER_STYLES = {
    "sharp": "mitre",
    "round": "round",
    "chamfer": "bevel",
}


@dataclass(frozen=True)
class OffsetResult:
    """Offset pieces, or the reason the offset failed."""
    pieces: tuple = ()
    failure: str = None

    @property
    def ok(self):
        return self.failure is None


def _runs_backward(piece, source):
    """True when piece travels against source, judged by where its ends project."""
    return source.closest_parameter(piece.point_at_start) > source.closest_parameter(piece.point_at_end)


def _offset_open(coords, distance, quad_segs, join_style, mitre_limit):
    shifted = shapely.offset_curve(
        LineString(coords),
        -distance,
        quad_segs=quad_segs,
        join_style=join_style,
        mitre_limit=mitre_limit,
    )
    if shifted is None or shifted.is_empty:
        return []
    return [
        np.asarray(line.coords)[:, :2]
        for line in getattr(shifted, "geoms", [shifted])
        if isinstance(line, LineString)
    ]


def _offset_loop(coords, distance, quad_segs, join_style, mitre_limit):
    """
    Offset a closed polyline by growing or shrinking its polygon.

    Right of travel is outside for a counter-clockwise loop and inside for a
    clockwise one. An inward offset can pinch into several loops or vanish.
    """
    ring = LinearRing(coords)
    signed = distance if ring.is_ccw else -distance
    grown = Polygon(ring).buffer(
        signed,
        quad_segs=quad_segs,
        join_style=join_style,
        mitre_limit=mitre_limit,
    )
    if grown.is_empty:
        return []

    loops = []
    for polygon in getattr(grown, "geoms", [grown]):
        loop = np.asarray(polygon.exterior.coords)[:, :2]
        if polygon.exterior.is_ccw != ring.is_ccw:
            loop = loop[::-1]
        # Start from the vertex nearest the source start
        body = loop[:-1]
        first = int(np.argmin(np.linalg.norm(body - coords[0], axis=1)))
        body = np.roll(body, -first, axis=0)
        loops.append(np.vstack([body, body[:1]]))
    return loops


def offset_curve(curve, plane, distance, tolerance=0.01, corner_style="sharp", mitre_limit=5.0, quad_segs=16):
    """
    Offset a planar curve by a signed distance in the working plane.

    Returns an OffsetResult; the kernel may return several pieces when the
    offset cannot stay continuous, e.g. around tight corners or when an
    inward loop offset pinches off.
    """
    if corner_style not in CORNER_STYLES:
        raise ValueError(f"Unknown corner style: {corner_style!r}")

    local = plane.to_local(curve.points)
    level = float(np.mean(local[:, 2]))
    closed = curve.is_closed() and len(local) >= 4
    offset_fn = _offset_loop if closed else _offset_open

    try:
        shifted = offset_fn(local[:, :2], distance, quad_segs, CORNER_STYLES[corner_style], mitre_limit)
    except GEOSException as e:
        return OffsetResult(failure=f"offset failed: {e}")

    if not shifted:
        return OffsetResult(failure="offset produced no geometry")

    pieces = []
    for coords in shifted:
        if len(coords) < 2 or LineString(coords).length <= tolerance:
            continue
        uvw = np.column_stack([coords[:, 0], coords[:, 1], np.full(len(coords), level)])
        piece = Curve(plane.from_local(uvw))
        if not closed and _runs_backward(piece, curve):
            piece = piece.reversed()
        pieces.append(piece)

    if not pieces:
        return OffsetResult(failure="offset produced only degenerate pieces")

    return OffsetResult(pieces=tuple(pieces))

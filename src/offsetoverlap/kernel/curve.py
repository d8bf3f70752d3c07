"""
Curve and plane primitives for OffsetOverlap.

Curves are immutable polylines with an arc-length scaled parameter domain.
Trimmed pieces keep the parameter values of the curve they came from, so
parameters reported against a candidate stay valid on its sub-curves.
"""

import numpy as np
from shapely.geometry import LineString


# Vertices closer than this are treated as one point when building a curve
_DUPLICATE_EPSILON = 1e-12


def as_points(points):
    """
    Convert a point list to an (N, 3) float array.

    Accepts [[x, y], ...] or [[x, y, z], ...]; 2D input is lifted to z=0.
    """
    arr = np.asarray(points, dtype=float)
    if arr.ndim != 2 or arr.shape[1] not in (2, 3):
        raise ValueError(f"Expected a list of 2D or 3D points, got shape {arr.shape}")
    if arr.shape[1] == 2:
        arr = np.column_stack([arr, np.zeros(len(arr))])
    return arr


def _drop_repeated(points):
    """Remove consecutive duplicate vertices."""
    if len(points) < 2:
        return points
    steps = np.linalg.norm(np.diff(points, axis=0), axis=1)
    keep = np.concatenate([[True], steps > _DUPLICATE_EPSILON])
    return points[keep]


def _unit(vector):
    norm = np.linalg.norm(vector)
    if norm == 0:
        raise ValueError("Cannot normalize a zero-length vector")
    return vector / norm


class Plane:
    """
    Working plane: an origin and an orthonormal frame.

    Offset displacement is measured in this plane and its normal defines
    which way counts as counter-clockwise.
    """

    def __init__(self, origin=(0.0, 0.0, 0.0), x_axis=(1.0, 0.0, 0.0), y_axis=(0.0, 1.0, 0.0)):
        self.origin = as_points([origin])[0]
        x_axis = _unit(as_points([x_axis])[0])
        y_axis = as_points([y_axis])[0]
        # Gram-Schmidt so slightly skewed input still gives an orthonormal frame
        y_axis = y_axis - np.dot(y_axis, x_axis) * x_axis
        if np.linalg.norm(y_axis) < 1e-12:
            raise ValueError("Plane axes must not be parallel")
        self.x_axis = x_axis
        self.y_axis = _unit(y_axis)
        self.normal = np.cross(self.x_axis, self.y_axis)

    @classmethod
    def world_xy(cls):
        return cls()

    def to_local(self, points):
        """Express world points as (u, v, w) plane coordinates."""
        rel = as_points(points) - self.origin
        return np.column_stack([rel @ self.x_axis, rel @ self.y_axis, rel @ self.normal])

    def from_local(self, uvw):
        """Map (u, v, w) plane coordinates back to world points."""
        uvw = np.asarray(uvw, dtype=float)
        return (
            self.origin
            + np.outer(uvw[:, 0], self.x_axis)
            + np.outer(uvw[:, 1], self.y_axis)
            + np.outer(uvw[:, 2], self.normal)
        )

    def __repr__(self):
        return f"Plane(origin={self.origin.tolist()}, normal={np.round(self.normal, 6).tolist()})"


class Curve:
    """
    An immutable polyline curve over the domain [t0, t0 + length].

    Arcs and splines are carried as their polyline approximation; the
    parameter of a point is its arc length from the start plus t0.
    """

    def __init__(self, points, t0=0.0):
        pts = _drop_repeated(as_points(points))
        if len(pts) < 2:
            raise ValueError("A curve needs at least two distinct points")
        pts.flags.writeable = False
        self._points = pts
        steps = np.linalg.norm(np.diff(pts, axis=0), axis=1)
        self._cumulative = np.concatenate([[0.0], np.cumsum(steps)])
        self._t0 = float(t0)

    @property
    def points(self):
        return self._points

    @property
    def length(self):
        return float(self._cumulative[-1])

    @property
    def domain(self):
        return (self._t0, self._t0 + self.length)

    @property
    def point_at_start(self):
        return self._points[0].copy()

    @property
    def point_at_end(self):
        return self._points[-1].copy()

    @property
    def midpoint(self):
        return self.point_at_length(self.length * 0.5)

    def _segment_index(self, s):
        index = int(np.searchsorted(self._cumulative, s, side="right")) - 1
        return min(max(index, 0), len(self._points) - 2)

    def _clamp_length(self, s):
        return min(max(float(s), 0.0), self.length)

    def point_at_length(self, s):
        """Point at arc length s from the start, clamped to the curve."""
        s = self._clamp_length(s)
        index = self._segment_index(s)
        seg_start = self._cumulative[index]
        seg_len = self._cumulative[index + 1] - seg_start
        frac = (s - seg_start) / seg_len if seg_len > 0 else 0.0
        a = self._points[index]
        b = self._points[index + 1]
        return a + frac * (b - a)

    def point_at(self, t):
        return self.point_at_length(t - self._t0)

    def tangent_at(self, t):
        """Unit direction of travel at parameter t."""
        index = self._segment_index(self._clamp_length(t - self._t0))
        return _unit(self._points[index + 1] - self._points[index])

    def length_between(self, a, b):
        """Arc length of the sub-interval between parameters a and b."""
        sa = self._clamp_length(a - self._t0)
        sb = self._clamp_length(b - self._t0)
        return abs(sb - sa)

    def is_closed(self, tolerance=1e-9):
        if len(self._points) < 3:
            return False
        return float(np.linalg.norm(self._points[-1] - self._points[0])) <= tolerance

    def is_linear(self, tolerance=1e-6):
        """True when every vertex lies within tolerance of the start-end chord."""
        if self.is_closed():
            return False
        chord = self._points[-1] - self._points[0]
        chord_len = np.linalg.norm(chord)
        if chord_len <= tolerance:
            return False
        direction = chord / chord_len
        rel = self._points - self._points[0]
        perp = rel - np.outer(rel @ direction, direction)
        return bool(np.all(np.linalg.norm(perp, axis=1) <= tolerance))

    def reversed(self):
        return Curve(self._points[::-1].copy(), t0=-self.domain[1])

    def sub_points(self, s0, s1):
        """Vertices of the piece between arc lengths s0 < s1."""
        s0 = self._clamp_length(s0)
        s1 = self._clamp_length(s1)
        inner = (self._cumulative > s0) & (self._cumulative < s1)
        return np.vstack([
            self.point_at_length(s0),
            self._points[inner],
            self.point_at_length(s1),
        ])

    def closest_parameter(self, point):
        """Parameter of the point on the curve nearest to the given point."""
        p = as_points([point])[0]
        a = self._points[:-1]
        ab = self._points[1:] - a
        seg_sq = np.einsum("ij,ij->i", ab, ab)
        frac = np.clip(np.einsum("ij,ij->i", p - a, ab) / seg_sq, 0.0, 1.0)
        nearest = a + ab * frac[:, None]
        index = int(np.argmin(np.linalg.norm(nearest - p, axis=1)))
        s = self._cumulative[index] + frac[index] * np.sqrt(seg_sq[index])
        return self._t0 + float(s)

    def as_linestring(self, plane):
        """Planar shapely LineString of this curve in plane (u, v) coordinates."""
        local = plane.to_local(self._points)
        return LineString(local[:, :2])

    def to_list(self, digits=None):
        if digits is None:
            return self._points.tolist()
        return np.round(self._points, digits).tolist()

    def __repr__(self):
        return (
            f"Curve(n={len(self._points)}, length={self.length:.3f}, "
            f"domain=({self.domain[0]:.3f}, {self.domain[1]:.3f}), closed={self.is_closed()})"
        )


def line_curve(start, end):
    """Straight two-point curve, used for bridge edges."""
    return Curve([start, end])


def distance(p, q):
    return float(np.linalg.norm(np.asarray(p, dtype=float) - np.asarray(q, dtype=float)))


def curve_normal(curve):
    """
    Newell area vector of the curve, closing chord implied.

    Its direction follows the right-hand rule over the travel direction, so
    the sign along a plane normal gives the orientation in that plane.
    """
    pts = curve.points
    nxt = np.roll(pts, -1, axis=0)
    return 0.5 * np.sum(np.cross(pts, nxt), axis=0)


def orientation_sign(curve, plane, tolerance=1e-12):
    """+1 for counter-clockwise seen from the plane normal, -1 for clockwise, 0 if undefined."""
    area = float(np.dot(curve_normal(curve), plane.normal))
    if abs(area) <= tolerance:
        return 0
    return 1 if area > 0 else -1


def is_planar(curve, tolerance=1e-5):
    """True when all vertices lie within tolerance of one best-fit plane."""
    pts = curve.points
    if len(pts) <= 3:
        return True
    centered = pts - pts.mean(axis=0)
    _, _, vh = np.linalg.svd(centered, full_matrices=False)
    normal = vh[-1]
    return bool(np.max(np.abs(centered @ normal)) <= tolerance)

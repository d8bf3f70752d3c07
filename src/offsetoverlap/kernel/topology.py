"""
Trim, split and join for OffsetOverlap curves.

Joining walks an endpoint adjacency graph: endpoints that fall within the
join tolerance share a node, every curve is an edge, and each walk over
unused edges becomes one joined curve.
"""

import networkx as nx
import numpy as np

from offsetoverlap.kernel.curve import Curve, distance
from offsetoverlap.tracer import get_tracer


def trim(curve, a, b, tolerance=1e-9):
    """
    Sub-curve between parameters a and b (either order).

    Returns None when the interval is degenerate or spans the whole domain,
    in which case there is nothing to trim.
    """
    t0, t1 = curve.domain
    lo = max(min(a, b), t0)
    hi = min(max(a, b), t1)
    if hi - lo <= tolerance:
        return None
    if lo - t0 <= tolerance and t1 - hi <= tolerance:
        return None
    return Curve(curve.sub_points(lo - t0, hi - t0), t0=lo)


def _cut_lengths(curve, params, tolerance):
    """Sorted, de-duplicated arc-length cut positions for a split."""
    t0 = curve.domain[0]
    total = curve.length
    closed = curve.is_closed()
    cuts = []
    for t in params:
        s = float(t) - t0
        if closed:
            s = s % total
            if total - s <= tolerance:
                s = 0.0
        elif s <= tolerance or total - s <= tolerance:
            continue
        cuts.append(s)
    cuts.sort()
    distinct = []
    for s in cuts:
        if not distinct or s - distinct[-1] > tolerance:
            distinct.append(s)
    return distinct


def split(curve, params, tolerance=1e-9):
    """
    Split a curve at the given parameters.

    Open curves give one piece more than there are interior cuts. Closed
    curves give one piece per distinct cut: the seam is not a cut, so the
    last piece runs through it back to the first cut.
    """
    t0 = curve.domain[0]
    total = curve.length
    cuts = _cut_lengths(curve, params, tolerance)

    if not curve.is_closed():
        bounds = [0.0] + cuts + [total]
        return [
            Curve(curve.sub_points(s0, s1), t0=t0 + s0)
            for s0, s1 in zip(bounds[:-1], bounds[1:])
        ]

    if not cuts:
        return [curve]

    pieces = [
        Curve(curve.sub_points(s0, s1), t0=t0 + s0)
        for s0, s1 in zip(cuts[:-1], cuts[1:])
    ]
    wrap = curve.sub_points(cuts[-1], total)
    if cuts[0] > tolerance:
        wrap = np.vstack([wrap, curve.sub_points(0.0, cuts[0])[1:]])
    pieces.append(Curve(wrap, t0=t0 + cuts[-1]))
    return pieces


def _node_for(graph, point, tolerance):
    """Return the graph node within tolerance of point, adding one if needed."""
    for node, data in graph.nodes(data=True):
        if distance(data["pos"], point) <= tolerance:
            return node
    node = graph.number_of_nodes()
    graph.add_node(node, pos=point)
    return node


def _next_edge(graph, node, unused):
    """Lowest-index unused curve touching node, or None."""
    indices = sorted(
        data["index"]
        for _, _, data in graph.edges(node, data=True)
        if data["index"] in unused
    )
    return indices[0] if indices else None


def _concat(curves, chain, closed):
    """Concatenate oriented curves of a chain into one vertex array."""
    parts = []
    for position, (index, flipped) in enumerate(chain):
        pts = curves[index].points
        if flipped:
            pts = pts[::-1]
        parts.append(pts if position == 0 else pts[1:])
    points = np.vstack(parts)
    if closed:
        points[-1] = points[0]
    return points


def join_curves(curves, tolerance=0.01):
    """
    Join curves whose endpoints coincide within tolerance.

    The first curve of every chain keeps its direction; others are reversed
    as needed. Zero-length curves are ignored. A single untouched curve is
    returned as is, keeping its parameter domain.

    Returns a list of joined curves, ideally of length one.
    """
    tracer = get_tracer()

    pieces = [c for c in curves if c is not None and c.length > tolerance]
    if not pieces:
        return []

    graph = nx.MultiGraph()
    ends = {}
    for index, curve in enumerate(pieces):
        u = _node_for(graph, curve.point_at_start, tolerance)
        v = _node_for(graph, curve.point_at_end, tolerance)
        graph.add_edge(u, v, key=index, index=index)
        ends[index] = (u, v)

    tracer.event("Join graph built", level="DEBUG", graph=graph)

    unused = set(range(len(pieces)))
    joined = []

    while unused:
        first = min(unused)
        unused.discard(first)
        chain = [(first, False)]
        head, tail = ends[first]

        # Extend forward from the tail
        while tail != head:
            nxt = _next_edge(graph, tail, unused)
            if nxt is None:
                break
            unused.discard(nxt)
            u, v = ends[nxt]
            if u == tail:
                chain.append((nxt, False))
                tail = v
            else:
                chain.append((nxt, True))
                tail = u

        # Then backward from the head
        while tail != head:
            prv = _next_edge(graph, head, unused)
            if prv is None:
                break
            unused.discard(prv)
            u, v = ends[prv]
            if v == head:
                chain.insert(0, (prv, False))
                head = u
            else:
                chain.insert(0, (prv, True))
                head = v

        closed = head == tail
        if len(chain) == 1 and not chain[0][1]:
            curve = pieces[chain[0][0]]
            if not closed or curve.is_closed():
                joined.append(curve)
                continue
        joined.append(Curve(_concat(pieces, chain, closed)))

    return joined

"""
SVG export for OffsetOverlap.

Draws the part and the output curves in working-plane coordinates, with
the v axis pointing up as in the plane itself.
"""

import numpy as np
import svgwrite

from offsetoverlap.io.save_artifacts import save_svg
from offsetoverlap.tracer import get_tracer, trace


def plane_coordinates(curves, plane):
    """(u, v) vertex arrays of each curve."""
    return [plane.to_local(curve.points)[:, :2] for curve in curves]


def _bounds(arrays):
    stacked = np.vstack(arrays)
    return stacked.min(axis=0), stacked.max(axis=0)


def create_curves_svg(layers, plane, config):
    """
    Create an SVG drawing with one group per layer.

    Args:
        layers: list of (layer_id, curves, color)
        plane: working Plane
        config: PipelineConfig (export section is used)

    Returns:
        svgwrite.Drawing
    """
    export = config.export
    margin = export.margin
    digits = export.precision

    projected = [(layer_id, plane_coordinates(curves, plane), color) for layer_id, curves, color in layers]
    arrays = [arr for _, arrs, _ in projected for arr in arrs]

    if arrays:
        lo, hi = _bounds(arrays)
    else:
        lo, hi = np.zeros(2), np.zeros(2)
    width = float(hi[0] - lo[0]) + 2 * margin
    height = float(hi[1] - lo[1]) + 2 * margin

    dwg = svgwrite.Drawing(size=(f"{width:.{digits}f}", f"{height:.{digits}f}"))
    dwg.viewbox(0, 0, width, height)

    for layer_id, arrs, color in projected:
        group = dwg.g(
            id=layer_id,
            fill="none",
            stroke=color,
            stroke_width=export.stroke_width,
        )
        for i, arr in enumerate(arrs):
            # Flip v so the drawing reads like the plane
            points = [
                (round(float(u - lo[0] + margin), digits), round(float(hi[1] - v + margin), digits))
                for u, v in arr
            ]
            group.add(dwg.polyline(points=points, id=f"{layer_id}_{i}"))
        dwg.add(group)

    return dwg


@trace(label="generate_offsets_svg")
def generate_offsets_svg(part, curves, plane, out_path, config):
    """
    Write the part and the output curves to one SVG file.
    """
    tracer = get_tracer()

    export = config.export
    dwg = create_curves_svg(
        [("part", [part], export.part_color), ("offsets", list(curves), export.offset_color)],
        plane,
        config,
    )
    save_svg(dwg, out_path)

    tracer.event(f"Created SVG with {len(curves)} output curves")
    return out_path

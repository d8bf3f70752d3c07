"""
Artifact saving utilities for OffsetOverlap.

Handles writing JSON, SVG and per-candidate debug artifacts.
"""

import json
import os

from offsetoverlap.models import CurveRecord
from offsetoverlap.tracer import get_tracer


def ensure_dir(path):
    """Create directory if it does not exist."""
    if path:
        os.makedirs(path, exist_ok=True)


def get_debug_dir(out_dir, candidate_index, stage_name):
    """
    Get the debug directory path for one candidate and stage.

    Creates the directory if it does not exist.
    """
    debug_dir = os.path.join(out_dir, "debug", f"candidate_{candidate_index}", stage_name)
    ensure_dir(debug_dir)
    return debug_dir


def save_json(data, path, indent=2):
    """
    Save a dictionary, list or Pydantic model to JSON.
    """
    tracer = get_tracer()

    ensure_dir(os.path.dirname(path))

    if hasattr(data, "model_dump"):
        data = data.model_dump(mode="json")

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, default=str)

    tracer.event(f"Saved JSON: {path}")


def save_svg(svg_content, path):
    """
    Save SVG content to file.
    """
    tracer = get_tracer()

    ensure_dir(os.path.dirname(path))

    if hasattr(svg_content, "tostring"):
        content = svg_content.tostring()
    else:
        content = str(svg_content)

    with open(path, "w", encoding="utf-8") as f:
        f.write(content)

    tracer.event(f"Saved SVG: {path}")


def curve_to_record(index, curve, precision=None):
    """Serialisable record for an output curve."""
    return CurveRecord(
        index=index,
        points=curve.to_list(precision),
        closed=curve.is_closed(),
        length=curve.length,
    )


def curves_to_json(curves, precision=None):
    """Plain point lists for a sequence of curves."""
    return [curve.to_list(precision) for curve in curves]


class DebugArtifactWriter:
    """
    Helper class to manage debug artifact writing for a single candidate.

    Artifacts land in debug/candidate_<i>/<stage>/ under the output directory.
    """

    def __init__(self, out_dir, candidate_index, enabled=True):
        self.out_dir = out_dir
        self.candidate_index = candidate_index
        self.enabled = enabled

    def get_stage_dir(self, stage_name):
        """Get the debug directory for a stage."""
        return get_debug_dir(self.out_dir, self.candidate_index, stage_name)

    def save_json(self, data, stage_name, filename):
        """Save a JSON artifact."""
        if not self.enabled:
            return
        path = os.path.join(self.get_stage_dir(stage_name), filename)
        save_json(data, path)

    def save_svg(self, svg_content, stage_name, filename):
        """Save an SVG artifact."""
        if not self.enabled:
            return
        path = os.path.join(self.get_stage_dir(stage_name), filename)
        save_svg(svg_content, path)

    def save_curves(self, curves, stage_name, filename, precision=None):
        """Save a list of curves as point lists."""
        if not self.enabled:
            return
        self.save_json(curves_to_json(curves, precision), stage_name, filename)

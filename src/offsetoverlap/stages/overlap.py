"""
Overlap analysis between a candidate and the part.

Measures how much of curve A coincides with curve B and keeps the raw
overlap events for partitioning.
"""

from dataclasses import dataclass

from offsetoverlap.kernel.intersect import intersect_curves
from offsetoverlap.tracer import get_tracer, trace


@dataclass(frozen=True)
class OverlapAnalysis:
    """Total overlap length measured on curve A, plus every raw event."""
    total_length: float
    events: tuple

    @property
    def overlap_events(self):
        return [e for e in self.events if e.is_overlap]

    @property
    def intervals(self):
        """Raw overlap parameter pairs in curve A's domain."""
        return [e.overlap_a for e in self.overlap_events]

    @property
    def has_overlap(self):
        return self.total_length > 0


@trace(label="analyze_overlap")
def analyze_overlap(curve_a, curve_b, plane, tolerances):
    """
    Compute the overlap of curve_a against curve_b.

    Args:
        curve_a: curve the overlap length is measured on (the candidate)
        curve_b: curve matched against (the part)
        plane: working Plane
        tolerances: ToleranceConfig

    Returns:
        OverlapAnalysis; zero length when the curves do not coincide anywhere
    """
    tracer = get_tracer()

    events = intersect_curves(
        curve_a, curve_b, plane,
        tolerance=tolerances.intersection_tolerance,
        overlap_tolerance=tolerances.overlap_tolerance,
    )

    total = 0.0
    for event in events:
        if event.is_overlap:
            total += curve_a.length_between(*event.overlap_a)

    tracer.event(f"Overlap length: {total:.4f} over {sum(1 for e in events if e.is_overlap)} events")

    return OverlapAnalysis(total_length=total, events=tuple(events))

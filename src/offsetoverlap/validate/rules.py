"""
Input validation rules for OffsetOverlap.

Planarity of the part and every candidate is checked once per batch, and
the curves are brought into a common orientation. Validation never touches
the caller's curves; it hands back oriented copies.
"""

from dataclasses import dataclass, field

from offsetoverlap.kernel.curve import is_planar, orientation_sign
from offsetoverlap.models import ValidationState
from offsetoverlap.tracer import get_tracer, trace


@dataclass(frozen=True)
class ValidationResult:
    state: ValidationState
    part: object = None
    candidates: tuple = ()
    message: str = ""
    non_planar: list = field(default_factory=list)

    @property
    def ok(self):
        return self.state == ValidationState.VALID


def orient_with_plane(curve, plane, reverse=False):
    """
    Orient curve counter-clockwise about the plane normal, then flip it if
    reverse is set. Curves with no defined orientation are only flipped.
    """
    if orientation_sign(curve, plane) < 0:
        curve = curve.reversed()
    if reverse:
        curve = curve.reversed()
    return curve


@trace(label="validate_inputs")
def validate_inputs(part, candidates, plane, reverse, tolerances):
    """
    Check planarity and normalize orientation.

    Args:
        part: the part Curve
        candidates: list of candidate Curves
        plane: working Plane
        reverse: offset into the part instead of away from it
        tolerances: ToleranceConfig

    Returns:
        ValidationResult; on success it carries the oriented part and
        candidates, closed candidates oriented like the part and open ones
        left as given
    """
    tracer = get_tracer()

    if not is_planar(part, tolerances.planarity_tolerance):
        message = "Part curve is not planar"
        tracer.event(message, level="ERROR")
        return ValidationResult(ValidationState.PART_NON_PLANAR, message=message)

    non_planar = [i for i, c in enumerate(candidates) if not is_planar(c, tolerances.planarity_tolerance)]
    if non_planar:
        message = f"Candidate curves are not planar: {non_planar}"
        tracer.event(message, level="ERROR")
        return ValidationResult(ValidationState.CANDIDATES_NON_PLANAR, message=message, non_planar=non_planar)

    oriented_part = orient_with_plane(part, plane, reverse)

    oriented = []
    for candidate in candidates:
        if candidate.is_closed(tolerances.closure_tolerance):
            candidate = orient_with_plane(candidate, plane, reverse)
        oriented.append(candidate)

    tracer.event(f"Validated part and {len(oriented)} candidates (reverse={reverse})")

    return ValidationResult(ValidationState.VALID, part=oriented_part, candidates=tuple(oriented))

"""
Pydantic data models for OffsetOverlap jobs and reports.

Job files and run reports flow through these validated models; geometry
itself stays in the kernel's Curve objects.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ValidationState(str, Enum):
    """Outcome of the batch-level input validation."""
    VALID = "valid"
    PART_NON_PLANAR = "part_non_planar"
    CANDIDATES_NON_PLANAR = "candidates_non_planar"


class FailureKind(str, Enum):
    """Why a candidate produced no output; batch failures are a ValidationState."""
    NO_OVERLAP = "no_overlap"
    TRIM_FAILED = "trim_failed"
    OFFSET_FAILED = "offset_failed"
    JOIN_AMBIGUOUS = "join_ambiguous"
    CLOSURE_FAILED = "closure_failed"


class CandidateStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


class StitchCase(str, Enum):
    """How a candidate's pieces are reassembled, chosen per candidate."""
    SINGLE_LINEAR = "single_linear_overlap"
    SINGLE_NONLINEAR = "single_nonlinear_overlap"
    MULTI = "multi_overlap"


class PlaneSpec(BaseModel):
    """Working plane as origin plus two in-plane axes."""
    origin: List[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0], min_length=2, max_length=3)
    x_axis: List[float] = Field(default_factory=lambda: [1.0, 0.0, 0.0], min_length=2, max_length=3)
    y_axis: List[float] = Field(default_factory=lambda: [0.0, 1.0, 0.0], min_length=2, max_length=3)

    model_config = ConfigDict(extra="forbid")


class JobSpec(BaseModel):
    """An offset-overlap job: one part, candidate curves, optional settings."""
    part: List[List[float]]
    candidates: List[List[List[float]]] = Field(..., min_length=1)
    plane: Optional[PlaneSpec] = None
    offset: Optional[float] = None
    reverse: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("part")
    @classmethod
    def _part_has_points(cls, value):
        if len(value) < 2:
            raise ValueError("part needs at least two points")
        return value


class CurveRecord(BaseModel):
    """Serialisable form of an output curve."""
    index: int
    points: List[List[float]]
    closed: bool
    length: float

    model_config = ConfigDict(extra="forbid")


class CandidateReport(BaseModel):
    """Per-candidate outcome and the metrics gathered on the way."""
    index: int
    status: CandidateStatus
    failure: Optional[FailureKind] = None
    message: str = ""
    overlap_length: float = 0.0
    overlap_count: int = 0
    complementary_count: int = 0
    trim_fallbacks: int = 0
    offset_count: int = 0
    bridge_count: int = 0
    stitch_case: Optional[StitchCase] = None

    model_config = ConfigDict(extra="forbid")


class RunReport(BaseModel):
    """Report for one pipeline run over a batch of candidates."""
    state: ValidationState
    message: str = ""
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat())
    offset_distance: float = 0.0
    reverse: bool = False
    candidate_count: int = 0
    candidates: List[CandidateReport] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @property
    def output_count(self):
        return sum(1 for c in self.candidates if c.status == CandidateStatus.OK)

    @property
    def skipped_count(self):
        return sum(1 for c in self.candidates if c.status == CandidateStatus.SKIPPED)

    @property
    def failed_count(self):
        return sum(1 for c in self.candidates if c.status == CandidateStatus.FAILED)

    @property
    def is_valid(self):
        return self.state == ValidationState.VALID

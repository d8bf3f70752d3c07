"""
Job loading for OffsetOverlap.

Reads a JSON job file, validates it and builds the kernel geometry.
"""

import json
import os

from pydantic import ValidationError

from offsetoverlap.kernel.curve import Curve, Plane
from offsetoverlap.models import JobSpec
from offsetoverlap.tracer import get_tracer, trace


@trace(label="load_job")
def load_job(path):
    """
    Load and validate a job file.

    Returns:
        JobSpec

    Raises:
        ValueError: when the file is missing or not a valid job
    """
    tracer = get_tracer()

    if not os.path.exists(path):
        raise ValueError(f"Job file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Job file is not valid JSON: {path}: {e}") from e

    try:
        job = JobSpec.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid job file {path}: {e}") from e

    tracer.event(f"Loaded job: {len(job.candidates)} candidates", path=path)
    return job


def job_to_geometry(job):
    """
    Build kernel objects from a validated job.

    Returns:
        (part, candidates, plane) with Curve and Plane objects

    Raises:
        ValueError: when a curve or the plane is degenerate
    """
    try:
        part = Curve(job.part)
    except ValueError as e:
        raise ValueError(f"Invalid part curve: {e}") from e

    candidates = []
    for index, points in enumerate(job.candidates):
        try:
            candidates.append(Curve(points))
        except ValueError as e:
            raise ValueError(f"Invalid candidate curve {index}: {e}") from e

    plane = Plane.world_xy()
    if job.plane is not None:
        plane = Plane(job.plane.origin, job.plane.x_axis, job.plane.y_axis)

    return part, candidates, plane

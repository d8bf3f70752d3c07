"""
OffsetOverlap FastAPI Backend

Exposes the offset-overlap pipeline over HTTP. Jobs are posted as JSON in
the same shape as job files and processed in-process.

Endpoints:
    POST /api/offset-overlap    Job → closed relief curves + run report
    POST /api/overlap-offsets   Job → overlapping arcs and their offsets
    GET  /api/health            Liveness check
"""

from pathlib import Path
from typing import List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict

from offsetoverlap.config import load_config
from offsetoverlap.io.load_job import job_to_geometry
from offsetoverlap.io.save_artifacts import curve_to_record, curves_to_json
from offsetoverlap.models import CurveRecord, JobSpec, RunReport
from offsetoverlap.pipeline import collect_overlap_offsets, run_offset_overlap

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parent.parent  # repo root
CONFIG_PATH = PROJECT_ROOT / "offsetoverlap_config.yaml"

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(title="OffsetOverlap", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------

class OffsetOverlapResponse(BaseModel):
    curves: List[CurveRecord]
    report: RunReport

    model_config = ConfigDict(extra="forbid")


class OverlapOffsetsEntry(BaseModel):
    index: int
    overlapping: List[List[List[float]]]
    offsets: List[List[List[float]]]


class OverlapOffsetsResponse(BaseModel):
    entries: List[OverlapOffsetsEntry]
    report: RunReport

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _prepare(job: JobSpec):
    """Build geometry and config for a posted job."""
    config = load_config(str(CONFIG_PATH) if CONFIG_PATH.exists() else None)
    try:
        part, candidates, plane = job_to_geometry(job)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return config, part, candidates, plane


# ---------------------------------------------------------------------------
# API Endpoints
# ---------------------------------------------------------------------------

@app.post("/api/offset-overlap", response_model=OffsetOverlapResponse)
def offset_overlap(job: JobSpec):
    """
    Build one closed relief curve per overlapping candidate.

    A batch that fails validation still answers 200; the report carries the
    validation state and the curve list is empty.
    """
    config, part, candidates, plane = _prepare(job)
    result = run_offset_overlap(part, candidates, plane, job.offset, job.reverse, config)

    digits = config.export.precision
    curves = [
        curve_to_record(outcome.index, outcome.curve, digits)
        for outcome in result.outcomes if outcome.ok
    ]
    return OffsetOverlapResponse(curves=curves, report=result.report)


@app.post("/api/overlap-offsets", response_model=OverlapOffsetsResponse)
def overlap_offsets(job: JobSpec):
    """Overlapping arcs and their offsets per candidate, without stitching."""
    config, part, candidates, plane = _prepare(job)
    result = collect_overlap_offsets(part, candidates, plane, job.offset, job.reverse, config)

    digits = config.export.precision
    entries = [
        OverlapOffsetsEntry(
            index=entry.index,
            overlapping=curves_to_json(entry.overlapping, digits),
            offsets=curves_to_json(entry.offsets, digits),
        )
        for entry in result.entries
    ]
    return OverlapOffsetsResponse(entries=entries, report=result.report)


@app.get("/api/health")
def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )

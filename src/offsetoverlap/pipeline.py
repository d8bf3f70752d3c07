"""
Main pipeline orchestrator for OffsetOverlap.

Validates the batch once, then runs overlap analysis, partitioning, offset
and stitching for each candidate. A candidate that fails any stage is
reported and left out of the output; only planarity failures stop the run.
"""

import os
from dataclasses import dataclass, field, replace

from offsetoverlap.config import load_config
from offsetoverlap.export.svg_export import create_curves_svg, generate_offsets_svg
from offsetoverlap.io.load_job import job_to_geometry, load_job
from offsetoverlap.io.save_artifacts import (
    DebugArtifactWriter, curve_to_record, curves_to_json, ensure_dir, save_json,
)
from offsetoverlap.kernel.curve import Plane
from offsetoverlap.models import (
    CandidateReport, CandidateStatus, FailureKind, RunReport, ValidationState,
)
from offsetoverlap.stages.offset import offset_segments
from offsetoverlap.stages.overlap import analyze_overlap
from offsetoverlap.stages.partition import partition_candidate
from offsetoverlap.stages.stitch import stitch_candidate
from offsetoverlap.tracer import get_tracer, trace
from offsetoverlap.validate.report import generate_report
from offsetoverlap.validate.rules import validate_inputs


@dataclass
class CandidateOutcome:
    """Result of processing one candidate; curve is None when it was dropped."""
    index: int
    report: CandidateReport
    curve: object = None
    pieces: dict = field(default_factory=dict)

    @property
    def ok(self):
        return self.curve is not None


@dataclass
class RunResult:
    report: RunReport
    curves: list = field(default_factory=list)
    outcomes: list = field(default_factory=list)

    @property
    def ok(self):
        return self.report.is_valid


@dataclass
class OverlapOffsets:
    """Joined overlapping arcs of one candidate and their offsets."""
    index: int
    overlapping: tuple
    offsets: tuple


@dataclass
class OverlapOffsetsResult:
    report: RunReport
    entries: list = field(default_factory=list)

    @property
    def ok(self):
        return self.report.is_valid


def resolve_settings(config, distance=None, reverse=None):
    """Explicit arguments win over the configured offset settings."""
    if distance is None:
        distance = config.offset.distance
    if reverse is None:
        reverse = config.offset.reverse
    return float(distance), bool(reverse)


def _failed(index, failure, message, **metrics):
    return CandidateReport(
        index=index, status=CandidateStatus.FAILED, failure=failure, message=message, **metrics
    )


def _overlap_and_partition(index, candidate, part, plane, config):
    """
    Shared front half of the per-candidate pipeline.

    Returns (report, analysis, partition); report is set when the candidate
    stops here.
    """
    tracer = get_tracer()
    tolerances = config.tolerance

    analysis = analyze_overlap(candidate, part, plane, tolerances)
    if not analysis.has_overlap:
        tracer.event(f"Candidate {index}: no overlap with part, skipped", level="DEBUG")
        report = CandidateReport(
            index=index, status=CandidateStatus.SKIPPED, failure=FailureKind.NO_OVERLAP,
        )
        return report, analysis, None

    partition = partition_candidate(candidate, analysis.intervals, tolerances)
    if not partition.overlapping:
        message = "no overlapping sub-curve could be trimmed"
        tracer.event(f"Candidate {index}: {message}", level="WARN")
        report = _failed(index, FailureKind.TRIM_FAILED, message, overlap_length=analysis.total_length)
        return report, analysis, partition

    return None, analysis, partition


@trace(label="process_candidate")
def process_candidate(index, candidate, part, plane, distance, config, debug_writer=None):
    """
    Run one candidate through overlap, partition, offset and stitch.

    Returns:
        CandidateOutcome; never raises for a geometric failure
    """
    tracer = get_tracer()
    tolerances = config.tolerance

    report, analysis, partition = _overlap_and_partition(index, candidate, part, plane, config)
    if report is not None:
        return CandidateOutcome(index=index, report=report)

    metrics = {
        "overlap_length": analysis.total_length,
        "overlap_count": len(partition.overlapping),
        "complementary_count": len(partition.complementary),
        "trim_fallbacks": partition.trim_fallbacks,
    }

    offset = offset_segments(
        partition.overlapping, plane, distance, tolerances, config.offset, reference=part,
    )
    if not offset.ok:
        tracer.event(f"Candidate {index}: offset failed ({offset.failure})", level="ERROR")
        return CandidateOutcome(
            index=index,
            report=_failed(index, FailureKind.OFFSET_FAILED, str(offset.failure), **metrics),
        )
    metrics["offset_count"] = len(offset.pieces)

    stitched = stitch_candidate(
        candidate, partition.overlapping, partition.complementary, offset.pieces,
        tolerances, config.stitch,
    )
    metrics["bridge_count"] = len(stitched.bridges)

    tracer.event(
        f"Candidate {index}: case={stitched.case.value}, "
        f"overlap segments={metrics['overlap_count']}, "
        f"complementary={metrics['complementary_count']}",
        level="DEBUG",
    )

    pieces = {
        "overlapping": list(partition.overlapping),
        "complementary": list(partition.complementary),
        "offsets": list(offset.pieces),
        "bridges": list(stitched.bridges),
    }

    if debug_writer:
        _save_candidate_debug(debug_writer, candidate, part, plane, pieces, stitched, config)

    if not stitched.ok:
        tracer.event(f"Candidate {index}: {stitched.failure.value} ({stitched.message})", level="WARN")
        report = _failed(index, stitched.failure, stitched.message, stitch_case=stitched.case, **metrics)
        return CandidateOutcome(index=index, report=report, pieces=pieces)

    report = CandidateReport(
        index=index,
        status=CandidateStatus.OK,
        message=stitched.message,
        stitch_case=stitched.case,
        **metrics,
    )
    return CandidateOutcome(index=index, report=report, curve=stitched.curve, pieces=pieces)


def _save_candidate_debug(debug_writer, candidate, part, plane, pieces, stitched, config):
    """Per-stage debug artifacts for one candidate."""
    digits = config.export.precision

    debug_writer.save_curves([candidate], "01_input", "candidate.json", digits)
    debug_writer.save_curves(pieces["overlapping"], "02_partition", "overlapping.json", digits)
    debug_writer.save_curves(pieces["complementary"], "02_partition", "complementary.json", digits)
    debug_writer.save_svg(
        create_curves_svg([
            ("part", [part], config.export.part_color),
            ("overlapping", pieces["overlapping"], "red"),
            ("complementary", pieces["complementary"], "blue"),
        ], plane, config),
        "02_partition", "partition.svg",
    )
    debug_writer.save_curves(pieces["offsets"], "03_offset", "offsets.json", digits)
    debug_writer.save_curves(pieces["bridges"], "04_stitch", "bridges.json", digits)

    layers = [
        ("complementary", pieces["complementary"], "blue"),
        ("offsets", pieces["offsets"], "red"),
        ("bridges", pieces["bridges"], "green"),
    ]
    if stitched.curve is not None:
        layers.append(("output", [stitched.curve], config.export.offset_color))
    debug_writer.save_svg(create_curves_svg(layers, plane, config), "04_stitch", "stitch.svg")
    debug_writer.save_json(
        {
            "stitch_case": stitched.case.value,
            "failure": stitched.failure.value if stitched.failure else None,
            "message": stitched.message,
            "overlap_count": len(pieces["overlapping"]),
            "complementary_count": len(pieces["complementary"]),
            "bridge_count": len(pieces["bridges"]),
        },
        "04_stitch", "stitch_metrics.json",
    )


def _validate(part, candidates, plane, distance, reverse, config):
    """Validation shared by both entry points; returns (validation, report)."""
    if not candidates:
        raise ValueError("At least one candidate curve is required")

    validation = validate_inputs(part, candidates, plane, reverse, config.tolerance)
    report = RunReport(
        state=validation.state,
        message=validation.message,
        offset_distance=distance,
        reverse=reverse,
        candidate_count=len(candidates),
    )
    return validation, report


@trace(label="run_offset_overlap")
def run_offset_overlap(part, candidates, plane=None, distance=None, reverse=None, config=None, out_dir=None):
    """
    Produce one closed relief curve per overlapping candidate.

    Args:
        part: the part Curve
        candidates: list of candidate Curves (non-empty)
        plane: working Plane (default world XY)
        distance: signed offset distance (default from config)
        reverse: offset into the part (default from config)
        config: PipelineConfig (optional)
        out_dir: output directory for debug artifacts (optional)

    Returns:
        RunResult with the output curves in candidate order
    """
    tracer = get_tracer()

    if config is None:
        config = load_config()
    if plane is None:
        plane = Plane.world_xy()
    distance, reverse = resolve_settings(config, distance, reverse)

    validation, report = _validate(part, candidates, plane, distance, reverse, config)
    if not validation.ok:
        tracer.event(f"Validation failed: {validation.state.value}, no candidates processed", level="ERROR")
        return RunResult(report=report)

    result = RunResult(report=report)
    debug = config.debug.enabled and out_dir is not None

    for index, candidate in enumerate(validation.candidates):
        with tracer.span(f"candidate_{index}", module="pipeline"):
            debug_writer = DebugArtifactWriter(out_dir, index) if debug else None
            outcome = process_candidate(
                index, candidate, validation.part, plane, distance, config, debug_writer
            )
        result.outcomes.append(outcome)
        report.candidates.append(outcome.report)
        if outcome.ok:
            result.curves.append(outcome.curve)

    tracer.event(
        f"Offset overlap complete: {report.output_count} curves from {len(candidates)} candidates "
        f"({report.skipped_count} skipped, {report.failed_count} failed)"
    )

    return result


@trace(label="collect_overlap_offsets")
def collect_overlap_offsets(part, candidates, plane=None, distance=None, reverse=None, config=None):
    """
    Overlapping arcs and their offsets per candidate, without stitching.

    Returns:
        OverlapOffsetsResult with one entry per candidate that produced offsets
    """
    tracer = get_tracer()

    if config is None:
        config = load_config()
    if plane is None:
        plane = Plane.world_xy()
    distance, reverse = resolve_settings(config, distance, reverse)

    validation, report = _validate(part, candidates, plane, distance, reverse, config)
    if not validation.ok:
        tracer.event(f"Validation failed: {validation.state.value}, no candidates processed", level="ERROR")
        return OverlapOffsetsResult(report=report)

    result = OverlapOffsetsResult(report=report)

    for index, candidate in enumerate(validation.candidates):
        candidate_report, analysis, partition = _overlap_and_partition(
            index, candidate, validation.part, plane, config
        )
        if candidate_report is None:
            offset = offset_segments(
                partition.overlapping, plane, distance, config.tolerance, config.offset,
                reference=validation.part,
            )
            metrics = {
                "overlap_length": analysis.total_length,
                "overlap_count": len(partition.overlapping),
                "complementary_count": len(partition.complementary),
                "trim_fallbacks": partition.trim_fallbacks,
            }
            if offset.ok:
                candidate_report = CandidateReport(
                    index=index, status=CandidateStatus.OK, offset_count=len(offset.pieces), **metrics
                )
                result.entries.append(OverlapOffsets(index, partition.overlapping, offset.pieces))
            else:
                tracer.event(f"Candidate {index}: offset failed ({offset.failure})", level="ERROR")
                candidate_report = _failed(index, FailureKind.OFFSET_FAILED, str(offset.failure), **metrics)
        report.candidates.append(candidate_report)

    tracer.event(f"Collected overlap offsets for {len(result.entries)} candidates")

    return result


@trace(label="run_job")
def run_job(job_path, out_dir, config=None, config_path=None, offset=None, reverse=None,
            debug=False, overlap_only=False):
    """
    Run a job file and write all outputs.

    Command-line values override job values, which override the config.

    Creates:
    - offsets.json: output curves in candidate order
    - offsets.svg: part and output curves
    - report.json, report_summary.txt
    - debug/candidate_<i>/...: per-stage artifacts when debug is on

    Returns:
        RunResult, or OverlapOffsetsResult when overlap_only is set
    """
    tracer = get_tracer()

    if config is None:
        config = load_config(config_path)
    config = replace(config, debug=replace(config.debug, enabled=debug))

    job = load_job(job_path)
    part, candidates, plane = job_to_geometry(job)

    if offset is None:
        offset = job.offset
    if reverse is None:
        reverse = job.reverse

    ensure_dir(out_dir)
    digits = config.export.precision

    if overlap_only:
        result = collect_overlap_offsets(part, candidates, plane, offset, reverse, config)
        payload = [
            {
                "index": entry.index,
                "overlapping": curves_to_json(entry.overlapping, digits),
                "offsets": curves_to_json(entry.offsets, digits),
            }
            for entry in result.entries
        ]
        output_curves = [curve for entry in result.entries for curve in entry.offsets]
    else:
        result = run_offset_overlap(part, candidates, plane, offset, reverse, config, out_dir=out_dir)
        payload = [
            curve_to_record(outcome.index, outcome.curve, digits).model_dump()
            for outcome in result.outcomes if outcome.ok
        ]
        output_curves = result.curves

    save_json(payload, os.path.join(out_dir, "offsets.json"))
    generate_offsets_svg(part, output_curves, plane, os.path.join(out_dir, "offsets.svg"), config)
    generate_report(result.report, out_dir)

    tracer.event(f"Job complete, output saved to {out_dir}")

    return result

"""
Run report generation for OffsetOverlap.

Creates a JSON report and a human-readable summary of a run.
"""

import os

from offsetoverlap.io.save_artifacts import ensure_dir, save_json
from offsetoverlap.models import CandidateStatus
from offsetoverlap.tracer import get_tracer, trace


@trace(label="generate_report")
def generate_report(report, out_dir):
    """
    Generate report files.

    Creates:
    - report.json: full run report
    - report_summary.txt: human-readable summary
    """
    tracer = get_tracer()

    report_path = os.path.join(out_dir, "report.json")
    save_json(report, report_path)

    summary_lines = ["OffsetOverlap Run Report", "=" * 40, ""]
    summary_lines.append(f"Validation: {report.state.value}")
    if report.message:
        summary_lines.append(f"  {report.message}")
    summary_lines.append(f"Offset distance: {report.offset_distance}")
    summary_lines.append(f"Reverse: {report.reverse}")
    summary_lines.append("")
    summary_lines.append(f"Candidates: {report.candidate_count}")
    summary_lines.append(f"Output curves: {report.output_count}")
    summary_lines.append(f"Skipped: {report.skipped_count}")
    summary_lines.append(f"Failed: {report.failed_count}")
    summary_lines.append("")

    failed = [c for c in report.candidates if c.status == CandidateStatus.FAILED]
    if failed:
        summary_lines.append("FAILURES:")
        summary_lines.append("-" * 40)
        for candidate in failed:
            summary_lines.append(format_candidate_result(candidate))
        summary_lines.append("")

    if report.candidates:
        summary_lines.append("ALL CANDIDATES:")
        summary_lines.append("-" * 40)
        for candidate in report.candidates:
            summary_lines.append(format_candidate_result(candidate))

    summary_path = os.path.join(out_dir, "report_summary.txt")
    ensure_dir(os.path.dirname(summary_path))
    with open(summary_path, "w", encoding="utf-8") as f:
        f.write("\n".join(summary_lines))

    tracer.event(f"Report saved: {report.output_count}/{report.candidate_count} candidates produced output")

    return report_path, summary_path


def format_candidate_result(candidate):
    """Format a single candidate result for display."""
    line = f"[{candidate.status.value.upper()}] candidate {candidate.index}"
    if candidate.stitch_case is not None:
        line += f" ({candidate.stitch_case.value})"
    if candidate.failure is not None:
        line += f": {candidate.failure.value}"
    if candidate.message:
        line += f" - {candidate.message}"
    if candidate.status == CandidateStatus.OK:
        line += (
            f" overlap={candidate.overlap_length:.4g}"
            f" segments={candidate.overlap_count}/{candidate.complementary_count}"
            f" bridges={candidate.bridge_count}"
        )
    return line

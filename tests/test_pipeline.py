"""Tests for validation and the full offset-overlap pipeline."""

import json
import os

import numpy as np
import pytest


class TestValidation:
    """Tests for batch validation and orientation."""

    def test_valid_inputs(self, square_part, pocket, plane, default_config):
        """Test that planar inputs validate and keep their count."""
        from offsetoverlap.validate.rules import validate_inputs

        result = validate_inputs(square_part, [pocket], plane, False, default_config.tolerance)

        assert result.ok
        assert len(result.candidates) == 1

    def test_clockwise_part_is_reoriented(self, square_part, plane, default_config):
        """Test that validation returns an oriented copy without touching the input."""
        from offsetoverlap.kernel.curve import orientation_sign
        from offsetoverlap.validate.rules import validate_inputs

        clockwise = square_part.reversed()
        result = validate_inputs(clockwise, [square_part], plane, False, default_config.tolerance)

        assert orientation_sign(result.part, plane) == 1
        assert orientation_sign(clockwise, plane) == -1

    def test_reverse_flips_closed_curves_only(self, square_part, pocket, bottom_edge, plane, default_config):
        """Test that reverse flips the part and closed candidates but not open ones."""
        from offsetoverlap.kernel.curve import orientation_sign
        from offsetoverlap.validate.rules import validate_inputs

        result = validate_inputs(square_part, [pocket, bottom_edge], plane, True, default_config.tolerance)

        assert orientation_sign(result.part, plane) == -1
        assert orientation_sign(result.candidates[0], plane) == -1
        assert result.candidates[1] is bottom_edge

    def test_non_planar_part(self, pocket, plane, default_config):
        """Test that a non-planar part fails validation."""
        from offsetoverlap.kernel.curve import Curve
        from offsetoverlap.models import ValidationState
        from offsetoverlap.validate.rules import validate_inputs

        bent = Curve([[0, 0, 0], [100, 0, 0], [100, 100, 5], [0, 100, 0], [0, 0, 0]])
        result = validate_inputs(bent, [pocket], plane, False, default_config.tolerance)

        assert not result.ok
        assert result.state == ValidationState.PART_NON_PLANAR


class TestRunOffsetOverlap:
    """Tests for run_offset_overlap end to end."""

    def test_no_overlap_gives_no_output(self, square_part, far_square, default_config):
        """Test that a candidate away from the part is skipped."""
        from offsetoverlap.models import CandidateStatus, FailureKind
        from offsetoverlap.pipeline import run_offset_overlap

        result = run_offset_overlap(square_part, [far_square], config=default_config)

        assert result.curves == []
        assert result.report.candidates[0].status == CandidateStatus.SKIPPED
        assert result.report.candidates[0].failure == FailureKind.NO_OVERLAP

    def test_pocket_offset_outward(self, square_part, pocket, default_config):
        """Test that the overlapping edge of a pocket moves out of the part."""
        from offsetoverlap.models import StitchCase
        from offsetoverlap.pipeline import run_offset_overlap

        result = run_offset_overlap(square_part, [pocket], distance=10.0, config=default_config)

        assert len(result.curves) == 1
        curve = result.curves[0]
        assert curve.is_closed()
        assert curve.points[:, 0].min() == pytest.approx(-10.0)
        assert curve.length == pytest.approx(100.0)

        report = result.report.candidates[0]
        assert report.stitch_case == StitchCase.SINGLE_NONLINEAR
        assert report.bridge_count == 2
        assert report.overlap_length == pytest.approx(20.0, abs=1e-6)

    def test_reverse_offsets_into_part(self, square_part, pocket, default_config):
        """Test that reverse moves the overlapping edge inward."""
        from offsetoverlap.pipeline import run_offset_overlap

        result = run_offset_overlap(square_part, [pocket], distance=10.0, reverse=True, config=default_config)

        assert len(result.curves) == 1
        xs = result.curves[0].points[:, 0]
        assert xs.min() == pytest.approx(0.0, abs=1e-6)
        assert np.any(np.isclose(xs, 10.0))

    def test_clockwise_part_same_result(self, square_part, pocket, default_config):
        """Test that the part's given direction does not change the offset side."""
        from offsetoverlap.pipeline import run_offset_overlap

        result = run_offset_overlap(square_part.reversed(), [pocket], distance=10.0, config=default_config)

        assert result.curves[0].points[:, 0].min() == pytest.approx(-10.0)

    def test_edge_candidate(self, square_part, bottom_edge, default_config):
        """Test that a candidate equal to an edge gives the offset strip."""
        from offsetoverlap.models import StitchCase
        from offsetoverlap.pipeline import run_offset_overlap

        result = run_offset_overlap(square_part, [bottom_edge], distance=10.0, config=default_config)

        assert len(result.curves) == 1
        curve = result.curves[0]
        report = result.report.candidates[0]

        assert report.overlap_length == pytest.approx(100.0, abs=1e-6)
        assert report.stitch_case == StitchCase.SINGLE_LINEAR
        assert report.trim_fallbacks == 1
        assert report.bridge_count == 2
        assert curve.is_closed()
        assert curve.points[:, 1].min() == pytest.approx(-10.0)
        assert curve.length == pytest.approx(220.0)

    def test_two_disjoint_overlaps(self, square_part, band, default_config):
        """Test that two overlaps are stitched with four bridges into one loop."""
        from offsetoverlap.models import StitchCase
        from offsetoverlap.pipeline import run_offset_overlap

        result = run_offset_overlap(square_part, [band], distance=10.0, config=default_config)

        assert len(result.curves) == 1
        report = result.report.candidates[0]

        assert report.stitch_case == StitchCase.MULTI
        assert report.overlap_count == 2
        assert report.complementary_count == 2
        assert report.bridge_count == 4
        assert result.curves[0].is_closed()
        assert result.curves[0].points[:, 0].min() == pytest.approx(-10.0)
        assert result.curves[0].points[:, 0].max() == pytest.approx(110.0)

    def test_zero_offset(self, square_part, pocket, default_config):
        """Test that a zero distance stitches the unmoved overlap back on."""
        from offsetoverlap.pipeline import run_offset_overlap

        result = run_offset_overlap(square_part, [pocket], distance=0.0, config=default_config)

        assert len(result.curves) == 1
        assert result.curves[0].is_closed()
        assert result.curves[0].length == pytest.approx(pocket.length)
        assert result.report.candidates[0].bridge_count == 0

    def test_closed_candidate_on_part(self, square_part, default_config):
        """Test that a closed candidate lying on the part is offset as a whole loop."""
        from offsetoverlap.kernel.curve import Curve
        from offsetoverlap.pipeline import run_offset_overlap

        copy = Curve(square_part.points)
        result = run_offset_overlap(square_part, [copy], distance=10.0, config=default_config)

        assert len(result.curves) == 1
        curve = result.curves[0]
        report = result.report.candidates[0]

        assert report.complementary_count == 0
        assert curve.is_closed()
        assert curve.length == pytest.approx(480.0)
        assert curve.points[:, 0].min() == pytest.approx(-10.0)
        assert curve.points[:, 0].max() == pytest.approx(110.0)

    def test_offset_failure_drops_only_that_candidate(self, square_part, pocket, default_config):
        """Test that a collapsing offset fails its candidate while siblings are emitted."""
        from offsetoverlap.kernel.curve import Curve
        from offsetoverlap.models import CandidateStatus, FailureKind
        from offsetoverlap.pipeline import run_offset_overlap

        copy = Curve(square_part.points)
        result = run_offset_overlap(square_part, [copy, pocket], distance=-60.0, config=default_config)

        first, second = result.report.candidates
        assert first.status == CandidateStatus.FAILED
        assert first.failure == FailureKind.OFFSET_FAILED
        assert second.status == CandidateStatus.OK
        assert [o.index for o in result.outcomes if o.ok] == [1]
        assert len(result.curves) == 1
        assert result.curves[0].points[:, 0].max() == pytest.approx(60.0)

    def test_kernel_offset_failure_in_batch(self, monkeypatch, square_part, pocket, bottom_edge, default_config):
        """Test that a failed kernel offset is reported per candidate."""
        from offsetoverlap.kernel.offset import OffsetResult, offset_curve
        from offsetoverlap.models import FailureKind
        from offsetoverlap.pipeline import run_offset_overlap

        def fail_short_segments(segment, *args, **kwargs):
            if segment.length < 50.0:
                return OffsetResult(failure="offset failed: forced")
            return offset_curve(segment, *args, **kwargs)

        monkeypatch.setattr("offsetoverlap.stages.offset.offset_curve", fail_short_segments)
        result = run_offset_overlap(square_part, [pocket, bottom_edge], distance=10.0, config=default_config)

        first, second = result.report.candidates
        assert first.failure == FailureKind.OFFSET_FAILED
        assert "forced" in first.message
        assert second.failure is None
        assert len(result.curves) == 1
        assert result.curves[0].points[:, 1].min() == pytest.approx(-10.0)

    def test_every_output_closed_and_in_order(self, square_part, pocket, far_square, band, default_config):
        """Test that outputs are closed and follow candidate order."""
        from offsetoverlap.pipeline import run_offset_overlap

        result = run_offset_overlap(square_part, [band, far_square, pocket], config=default_config)

        assert [o.index for o in result.outcomes if o.ok] == [0, 2]
        assert all(curve.is_closed() for curve in result.curves)
        assert result.report.output_count == 2
        assert result.report.skipped_count == 1

    def test_idempotent(self, square_part, pocket, band, default_config):
        """Test that identical inputs give identical outputs."""
        from offsetoverlap.pipeline import run_offset_overlap

        first = run_offset_overlap(square_part, [pocket, band], config=default_config)
        second = run_offset_overlap(square_part, [pocket, band], config=default_config)

        assert len(first.curves) == len(second.curves)
        for a, b in zip(first.curves, second.curves):
            assert np.array_equal(a.points, b.points)

    def test_non_planar_candidate_fails_batch(self, square_part, pocket, default_config):
        """Test that one non-planar candidate stops the whole batch."""
        from offsetoverlap.kernel.curve import Curve
        from offsetoverlap.models import ValidationState
        from offsetoverlap.pipeline import run_offset_overlap

        bent = Curve([[0, 0, 0], [10, 0, 0], [10, 10, 3], [0, 10, 0], [0, 0, 0]])
        result = run_offset_overlap(square_part, [pocket, bent], config=default_config)

        assert not result.ok
        assert result.report.state == ValidationState.CANDIDATES_NON_PLANAR
        assert result.curves == []
        assert result.report.candidates == []

    def test_empty_candidates_rejected(self, square_part, default_config):
        """Test that an empty candidate list is an input error."""
        from offsetoverlap.pipeline import run_offset_overlap

        with pytest.raises(ValueError):
            run_offset_overlap(square_part, [], config=default_config)

    def test_config_supplies_defaults(self, square_part, pocket, default_config):
        """Test that distance and reverse fall back to the config."""
        from offsetoverlap.pipeline import run_offset_overlap

        default_config.offset.distance = 4.0
        result = run_offset_overlap(square_part, [pocket], config=default_config)

        assert result.report.offset_distance == 4.0
        assert result.curves[0].points[:, 0].min() == pytest.approx(-4.0)


class TestCollectOverlapOffsets:
    """Tests for the overlap-only variant."""

    def test_pocket(self, square_part, pocket, far_square, default_config):
        """Test that only overlapping candidates produce entries."""
        from offsetoverlap.pipeline import collect_overlap_offsets

        result = collect_overlap_offsets(square_part, [far_square, pocket], distance=10.0, config=default_config)

        assert len(result.entries) == 1
        entry = result.entries[0]
        assert entry.index == 1
        assert len(entry.overlapping) == 1
        assert len(entry.offsets) == 1
        assert np.allclose(entry.offsets[0].points[:, 0], -10.0)


class TestRunJob:
    """Tests for running a job file with outputs on disk."""

    def test_outputs_written(self, job_file, temp_dir):
        """Test that all output files are created."""
        from offsetoverlap.pipeline import run_job

        out_dir = os.path.join(temp_dir, "out")
        result = run_job(job_file, out_dir)

        for name in ["offsets.json", "offsets.svg", "report.json", "report_summary.txt"]:
            assert os.path.exists(os.path.join(out_dir, name)), f"Missing {name}"

        with open(os.path.join(out_dir, "offsets.json"), encoding="utf-8") as f:
            records = json.load(f)
        assert len(records) == 1
        assert records[0]["index"] == 0
        assert records[0]["closed"] is True
        assert result.report.output_count == 1

    def test_debug_artifacts(self, job_file, temp_dir):
        """Test that debug mode writes per-candidate stage artifacts."""
        from offsetoverlap.pipeline import run_job

        out_dir = os.path.join(temp_dir, "out")
        run_job(job_file, out_dir, debug=True)

        candidate_dir = os.path.join(out_dir, "debug", "candidate_0")
        assert os.path.exists(os.path.join(candidate_dir, "02_partition", "partition.svg"))
        assert os.path.exists(os.path.join(candidate_dir, "04_stitch", "stitch_metrics.json"))
        # Skipped candidates never reach the stages that write artifacts
        assert not os.path.exists(os.path.join(out_dir, "debug", "candidate_1"))

    def test_debug_flag_leaves_config_alone(self, job_file, temp_dir, default_config):
        """Test that the debug flag does not change the caller's config."""
        from offsetoverlap.pipeline import run_job

        out_dir = os.path.join(temp_dir, "out")
        run_job(job_file, out_dir, config=default_config, debug=True)

        assert default_config.debug.enabled is False
        assert os.path.exists(os.path.join(out_dir, "debug", "candidate_0"))

    def test_offset_override(self, job_file, temp_dir):
        """Test that an explicit offset wins over the job value."""
        from offsetoverlap.pipeline import run_job

        result = run_job(job_file, os.path.join(temp_dir, "out"), offset=2.5)

        assert result.report.offset_distance == 2.5

    def test_missing_job(self, temp_dir):
        """Test that a missing job file is an input error."""
        from offsetoverlap.pipeline import run_job

        with pytest.raises(ValueError):
            run_job(os.path.join(temp_dir, "nope.json"), os.path.join(temp_dir, "out"))

"""Pytest fixtures for OffsetOverlap tests."""

import json
import os
import tempfile

import pytest


SQUARE = [[0, 0], [100, 0], [100, 100], [0, 100], [0, 0]]

# Rectangular pocket touching the left edge of SQUARE between y=40 and y=60
POCKET = [[0, 40], [20, 40], [20, 60], [0, 60], [0, 40]]

# Full-width band touching both the left and the right edge of SQUARE
BAND = [[0, 30], [100, 30], [100, 70], [0, 70], [0, 30]]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def plane():
    from offsetoverlap.kernel.curve import Plane
    return Plane.world_xy()


@pytest.fixture
def square_part():
    """100x100 counter-clockwise square."""
    from offsetoverlap.kernel.curve import Curve
    return Curve(SQUARE)


@pytest.fixture
def pocket():
    from offsetoverlap.kernel.curve import Curve
    return Curve(POCKET)


@pytest.fixture
def band():
    from offsetoverlap.kernel.curve import Curve
    return Curve(BAND)


@pytest.fixture
def bottom_edge():
    """Open candidate equal to the bottom edge of the square."""
    from offsetoverlap.kernel.curve import Curve
    return Curve([[0, 0], [100, 0]])


@pytest.fixture
def far_square():
    """Closed candidate well away from the square."""
    from offsetoverlap.kernel.curve import Curve
    return Curve([[200, 200], [220, 200], [220, 220], [200, 220], [200, 200]])


@pytest.fixture
def default_config():
    """Create default pipeline configuration."""
    from offsetoverlap.config import PipelineConfig
    return PipelineConfig()


@pytest.fixture
def job_file(temp_dir):
    """Job file with the square part, the pocket and a far-away candidate."""
    path = os.path.join(temp_dir, "job.json")
    job = {
        "part": SQUARE,
        "candidates": [POCKET, [[200, 200], [220, 200], [220, 220], [200, 220], [200, 200]]],
        "offset": 10.0,
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(job, f)
    return path

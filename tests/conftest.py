"""
Shared test fixtures: test client and sample measurements.
"""

import pytest
from fastapi.testclient import TestClient

from roofing_estimator.main import app
from roofing_estimator.models import CoatingMeasurements, MembraneMeasurements


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def coating_measurements():
    """1,600 sq ft coating job with both seam directions."""
    return CoatingMeasurements(square_footage=1600, vertical_seams_lf=800, horizontal_seams_lf=150)


@pytest.fixture
def membrane_measurements():
    """10,000 sq ft TPO roof with walls and base flashing."""
    return MembraneMeasurements(roof_area=10000, wall_linear_ft=200, wall_height=3,
                                base_flashing_lf=100)

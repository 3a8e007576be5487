import pytest

from geothermal import Mesh2d


@pytest.fixture
def small_mesh():
    """Structured 4x2 mesh of [0, 2] x [0, 1]."""
    return Mesh2d.rectangle(0.0, 0.0, 2.0, 1.0, 4, 2)


@pytest.fixture
def section_mesh():
    """Coarse mesh of the 7 km x 3.6 km subsurface section."""
    return Mesh2d.rectangle(0.0, -3600.0, 7000.0, 3600.0, 6, 5)

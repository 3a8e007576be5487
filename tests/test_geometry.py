"""Tests for the .geo geometry writer.

Run with: uv run pytest tests/test_geometry.py -v
"""

import pytest

from geothermal import SubsurfaceDomain, write_geo
from geothermal.geometry import strip_extension


class TestWriteGeo:
    """Test the gmsh geometry description."""

    def test_corner_points(self, tmp_path):
        """Corners span [x_0, x_end] x [-y_end, y_top]."""
        path = write_geo(tmp_path / "2dmodel", 10, 7000, 3600)
        text = path.read_text()
        assert "Point(1) = {0, -3600, 0, 1.0};" in text
        assert "Point(2) = {0, 0, 0, 1.0};" in text
        assert "Point(3) = {7000, 0, 0, 1.0};" in text
        assert "Point(4) = {7000, -3600, 0, 1.0};" in text

    def test_physical_groups(self, tmp_path):
        """Every side carries its named physical group."""
        text = write_geo(tmp_path / "2dmodel", 10, 7000, 3600).read_text()
        assert 'Physical Surface("domain", 5) = {1};' in text
        assert 'Physical Curve("top", 6) = {2};' in text
        assert 'Physical Curve("sidewalls", 7) = {1, 3};' in text
        assert 'Physical Curve("bottom", 8) = {4};' in text

    def test_transfinite_density(self, tmp_path):
        """The density sets the number of points on every side."""
        text = write_geo(tmp_path / "2dmodel", 25, 7000, 3600).read_text()
        assert "Transfinite Curve {1, 2, 3, 4} = 25 Using Progression 1;" in text
        assert "Transfinite Surface {1};" in text
        assert "Curve Loop(1) = {2, 3, 4, 1};" in text

    def test_offset_domain(self, tmp_path):
        """Non-zero origin and surface elevation are written as given."""
        text = write_geo(tmp_path / "m", 5, 100, 50, x_0=-100, y_top=20).read_text()
        assert "Point(1) = {-100, -50, 0, 1.0};" in text
        assert "Point(3) = {100, 20, 0, 1.0};" in text

    def test_creates_parent_directories(self, tmp_path):
        path = write_geo(tmp_path / "meshes" / "run1" / "model", 4, 10, 5)
        assert path.exists()
        assert path.parent == tmp_path / "meshes" / "run1"

    @pytest.mark.parametrize("density", [0, 1, 2.5])
    def test_invalid_density(self, tmp_path, density):
        with pytest.raises(ValueError, match="density"):
            write_geo(tmp_path / "m", density, 10, 5)

    def test_invalid_extent(self, tmp_path):
        with pytest.raises(ValueError):
            write_geo(tmp_path / "m", 4, 0, 5)
        with pytest.raises(ValueError):
            write_geo(tmp_path / "m", 4, 10, -5)
        with pytest.raises(ValueError, match="depth"):
            write_geo(tmp_path / "m", 4, 10, -5, y_top=10)
        assert not (tmp_path / "m.geo").exists()


class TestFileNames:
    """Test extension handling of output names."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("2dmodel", "2dmodel"),
            ("2dmodel.geo", "2dmodel"),
            ("2dmodel.msh", "2dmodel"),
            ("2dmodel.geo.bak", "2dmodel"),
        ],
    )
    def test_strip_extension(self, tmp_path, name, expected):
        assert strip_extension(tmp_path / name) == tmp_path / expected

    def test_extension_replaced_by_geo(self, tmp_path):
        """Passing a .msh name still writes a .geo file."""
        path = write_geo(tmp_path / "model.msh", 4, 10, 5)
        assert path == tmp_path / "model.geo"
        assert not (tmp_path / "model.msh").exists()


class TestSubsurfaceDomain:
    """Test the domain dataclass."""

    def test_defaults(self):
        domain = SubsurfaceDomain()
        assert domain.bounds == (0.0, 7000.0, -3600.0, 0.0)
        assert domain.width == 7000.0
        assert domain.height == 3600.0

    def test_height_includes_topography(self):
        domain = SubsurfaceDomain(y_top=200.0, y_end=1000.0)
        assert domain.height == 1200.0

    def test_write_geo(self, tmp_path):
        domain = SubsurfaceDomain(x_end=500.0, y_end=300.0, density=6)
        text = domain.write_geo(tmp_path / "domain").read_text()
        assert "Point(4) = {500.0, -300.0, 0, 1.0};" in text
        assert "= 6 Using Progression 1;" in text

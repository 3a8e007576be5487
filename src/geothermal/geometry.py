"""
Geometry description of a vertical section of the subsurface.

The domain is a rectangle written as a gmsh ``.geo`` file. The top edge is
the ground surface, the bottom edge the base of the model and the two
vertical edges are the sidewalls. Each edge is labelled with a physical group
so the mesh reader can apply boundary conditions by name.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .datastructures import BOTTOM, DOMAIN, SIDEWALLS, TOP

log = logging.getLogger(__name__)

GEO_TEMPLATE = """\
// Coordinates for rectangle corners
Point(1) = {{{x_0}, -{y_end}, 0, 1.0}};
Point(2) = {{{x_0}, {y_top}, 0, 1.0}};
Point(3) = {{{x_end}, {y_top}, 0, 1.0}};
Point(4) = {{{x_end}, -{y_end}, 0, 1.0}};

// Lines connecting two points given on the right side
Line(1) = {{1, 2}};
Line(2) = {{2, 3}};
Line(3) = {{3, 4}};
Line(4) = {{4, 1}};

// Connecting lines, creating a full rectangle
Curve Loop(1) = {{2, 3, 4, 1}};

// Defining the plane, later labeled as domain
Plane Surface(1) = {{1}};
Physical Surface("domain", {domain}) = {{1}};

// Defining the boundaries and labeling it
Physical Curve("top", {top}) = {{2}};
Physical Curve("sidewalls", {sidewalls}) = {{1, 3}};
Physical Curve("bottom", {bottom}) = {{4}};

// Mesh density: each side is divided into `density` points, not cells
Transfinite Curve {{1, 2, 3, 4}} = {density} Using Progression 1;
Transfinite Surface {{1}};
"""


def strip_extension(filename: str | Path) -> Path:
    """Remove every extension from the file name, keeping parent directories."""
    path = Path(filename)
    return path.with_name(path.name.split(".")[0])


def write_geo(
    filename: str | Path,
    density: int,
    x_end: float,
    y_end: float,
    x_0: float = 0,
    y_top: float = 0,
) -> Path:
    """
    Write the rectangular subsurface geometry as a gmsh ``.geo`` file.

    Parameters
    ----------
    filename : str or Path
        Output name. Any extension is replaced by ``.geo``.
    density : int
        Number of points along each side of the rectangle.
    x_end : float
        x-coordinate of the right sidewall.
    y_end : float
        Depth of the model base, as a positive number (the base lies at ``-y_end``).
    x_0 : float
        x-coordinate of the left sidewall.
    y_top : float
        Elevation of the ground surface.

    Returns
    -------
    Path
        Path of the written ``.geo`` file.
    """
    if int(density) != density or density < 2:
        raise ValueError(f"density must be an integer >= 2, got {density}")
    if x_end <= x_0:
        raise ValueError(f"x_end ({x_end}) must be larger than x_0 ({x_0})")
    if y_end <= 0:
        raise ValueError(f"y_end is the depth of the base and must be positive, got {y_end}")
    if -y_end >= y_top:
        raise ValueError(f"base at {-y_end} must lie below the surface at {y_top}")

    geo_text = GEO_TEMPLATE.format(
        x_0=x_0,
        x_end=x_end,
        y_end=y_end,
        y_top=y_top,
        density=int(density),
        domain=DOMAIN,
        top=TOP,
        sidewalls=SIDEWALLS,
        bottom=BOTTOM,
    )

    geo_path = strip_extension(filename).with_suffix(".geo")
    geo_path.parent.mkdir(parents=True, exist_ok=True)
    geo_path.write_text(geo_text)
    log.info(f"Wrote geometry to {geo_path} (density={density})")
    return geo_path


@dataclass
class SubsurfaceDomain:
    """Rectangular vertical section [x_0, x_end] x [-y_end, y_top] in metres."""

    x_0: float = 0.0
    x_end: float = 7000.0
    y_top: float = 0.0
    y_end: float = 3600.0
    density: int = 10

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """Return (x_min, x_max, y_min, y_max)."""
        return self.x_0, self.x_end, -self.y_end, self.y_top

    @property
    def width(self) -> float:
        return self.x_end - self.x_0

    @property
    def height(self) -> float:
        return self.y_top + self.y_end

    def write_geo(self, filename: str | Path) -> Path:
        return write_geo(filename, self.density, self.x_end, self.y_end, self.x_0, self.y_top)

"""VTK output for ParaView."""
from __future__ import annotations

import logging
from pathlib import Path

import meshio
import numpy as np

from .datastructures import Mesh2d
from .geometry import strip_extension
from .problem import Solution

log = logging.getLogger(__name__)


def _to_meshio(mesh: Mesh2d, **kwargs) -> meshio.Mesh:
    points = np.column_stack([mesh.VX, mesh.VY, np.zeros(mesh.nonodes)])
    return meshio.Mesh(points, [("triangle", mesh.EToV)], **kwargs)


def write_mesh_vtk(mesh: Mesh2d, filename: str | Path) -> Path:
    """Write the mesh with its physical surface tags to ``<filename>.vtu``."""
    path = strip_extension(filename).with_suffix(".vtu")
    path.parent.mkdir(parents=True, exist_ok=True)
    _to_meshio(mesh, cell_data={"tag": [mesh.cell_tags]}).write(path)
    log.info(f"Saved {path}")
    return path


def write_solution_vtk(solution: Solution, filename: str | Path) -> Path:
    """
    Write temperature (point data) and heat flow (cell data) to ``<filename>.vtu``.

    Quadratic temperature fields are written through their vertex values.
    """
    path = strip_extension(filename).with_suffix(".vtu")
    path.parent.mkdir(parents=True, exist_ok=True)

    mesh = solution.mesh
    heat_flow = np.column_stack([solution.heat_flow, np.zeros(mesh.noelms)])
    _to_meshio(
        mesh,
        point_data={"temperature": solution.temperature_at_vertices()},
        cell_data={"heat flow": [heat_flow]},
    ).write(path)
    log.info(f"Saved {path}")
    return path

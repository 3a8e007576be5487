"""Mesh generation through the gmsh Python API."""
from __future__ import annotations

import logging
from pathlib import Path

from .datastructures import BOUNDARY_TOL, Mesh2d
from .geometry import strip_extension

log = logging.getLogger(__name__)


def write_msh(filename_geo: str | Path, dim: int = 2, verbose: bool = False) -> Path:
    """
    Mesh a ``.geo`` file with gmsh and write the ``.msh`` file next to it.

    Parameters
    ----------
    filename_geo : str or Path
        Geometry file name, with or without extension.
    dim : int
        Dimension of the generated mesh.
    verbose : bool
        Forward gmsh messages to the terminal.

    Returns
    -------
    Path
        Path of the written ``.msh`` file.
    """
    base = strip_extension(filename_geo)
    geo_path = base.with_suffix(".geo")
    msh_path = base.with_suffix(".msh")
    if not geo_path.exists():
        raise FileNotFoundError(f"Geometry file not found: {geo_path}")

    import gmsh

    gmsh.initialize()
    try:
        gmsh.option.setNumber("General.Terminal", 1 if verbose else 0)
        gmsh.model.add("subsurface")
        gmsh.open(str(geo_path))
        gmsh.model.mesh.generate(dim)
        gmsh.write(str(msh_path))
    finally:
        gmsh.finalize()

    log.info(f"Saved mesh to {msh_path}")
    return msh_path


def read_mesh(filename: str | Path, tol: float = BOUNDARY_TOL) -> Mesh2d:
    """Load a ``.msh`` file (extension optional) as a Mesh2d."""
    msh_path = strip_extension(filename).with_suffix(".msh")
    mesh = Mesh2d.from_meshio(msh_path, tol=tol)
    log.info(f"Mesh: {mesh.nonodes} nodes, {mesh.noelms} elements, tags={sorted(mesh.tags)}")
    return mesh

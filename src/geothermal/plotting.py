"""Figures of the conduction solution."""
from __future__ import annotations

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .plot_style import save_figure, setup_style
from .problem import Solution

log = logging.getLogger(__name__)


def plot_profile(
    profile: pd.DataFrame,
    filename: str | Path,
    reference: pd.Series | np.ndarray | None = None,
    title: str = "Temperature-depth profile",
) -> Path:
    """Plot a borehole profile from ``temperature_profile`` with depth pointing down."""
    setup_style()
    fig, ax = plt.subplots()
    ax.plot(profile["temperature"], profile["depth"], color="tab:red", lw=1.8, label="FEM")
    if reference is not None:
        ax.plot(np.asarray(reference), profile["depth"], "k--", lw=1.0, label="1D conductive")
        ax.legend()
    ax.invert_yaxis()
    ax.set_xlabel("Temperature (°C)")
    ax.set_ylabel("Depth (m)")
    ax.set_title(title)
    path = save_figure(fig, filename)
    plt.close(fig)
    return path


def plot_field(solution: Solution, filename: str | Path, cmap: str = "inferno") -> Path:
    """Off-screen pyvista rendering of the temperature field with heat flow arrows."""
    import pyvista as pv

    mesh = solution.mesh
    points = np.column_stack([mesh.VX, mesh.VY, np.zeros(mesh.nonodes)])
    cells = np.column_stack([np.full(mesh.noelms, 3), mesh.EToV]).ravel()
    cell_types = np.full(mesh.noelms, pv.CellType.TRIANGLE, dtype=np.uint8)
    grid = pv.UnstructuredGrid(cells, cell_types, points)
    grid.point_data["temperature"] = solution.temperature_at_vertices()
    grid.cell_data["heat flow"] = np.column_stack([solution.heat_flow, np.zeros(mesh.noelms)])

    plotter = pv.Plotter(off_screen=True)
    plotter.add_mesh(grid, scalars="temperature", cmap=cmap, show_edges=True)
    centers = grid.cell_centers()
    centers["heat flow"] = grid.cell_data["heat flow"]
    arrow_length = 0.03 * max(np.ptp(mesh.VX), np.ptp(mesh.VY))
    plotter.add_mesh(centers.glyph(orient="heat flow", scale=False, factor=arrow_length), color="white")
    plotter.view_xy()

    path = Path(filename)
    path.parent.mkdir(parents=True, exist_ok=True)
    plotter.screenshot(str(path))
    plotter.close()
    log.info(f"Saved {path}")
    return path

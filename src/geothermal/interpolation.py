from __future__ import annotations

import numpy as np
import pandas as pd
from numba import njit
from numpy.typing import NDArray

from .elements import shape_functions
from .problem import Solution
from .spaces import LagrangeSpace


@njit
def _locate_points(x1, y1, x2, y2, x3, y3, px, py, tol):
    """Numba-accelerated point location. Returns element index and (xi, eta)."""
    n_pts = len(px)
    n_elem = len(x1)
    elem = np.full(n_pts, -1, dtype=np.int64)
    xi = np.zeros(n_pts)
    eta = np.zeros(n_pts)

    for i in range(n_pts):
        for e in range(n_elem):
            det = (x2[e] - x1[e]) * (y3[e] - y1[e]) - (x3[e] - x1[e]) * (y2[e] - y1[e])
            dx = px[i] - x1[e]
            dy = py[i] - y1[e]
            s = ((y3[e] - y1[e]) * dx - (x3[e] - x1[e]) * dy) / det
            t = (-(y2[e] - y1[e]) * dx + (x2[e] - x1[e]) * dy) / det
            if s >= -tol and t >= -tol and s + t <= 1.0 + tol:
                elem[i] = e
                xi[i] = s
                eta[i] = t
                break

    return elem, xi, eta


def interpolate_fem(
    space: LagrangeSpace,
    coeffs: NDArray[np.float64],
    points: NDArray[np.float64],
    tol: float = 1e-10,
) -> NDArray[np.float64]:
    """Evaluate a Lagrange field at arbitrary points (NaN outside the mesh)."""
    points = np.atleast_2d(np.asarray(points, dtype=np.float64))
    x1, y1, x2, y2, x3, y3 = space.mesh.vertex_coords
    elem, xi, eta = _locate_points(x1, y1, x2, y2, x3, y3, points[:, 0].copy(), points[:, 1].copy(), tol)

    values = np.full(len(points), np.nan)
    found = elem >= 0
    if np.any(found):
        phi = shape_functions(space.order, xi[found], eta[found])
        local = coeffs[space.cell_dofs[elem[found]]]
        values[found] = np.sum(phi * local, axis=1)
    return values


def temperature_profile(
    solution: Solution,
    x: float | None = None,
    n_points: int = 100,
) -> pd.DataFrame:
    """
    Temperature-depth log along a vertical line (a virtual borehole).

    Parameters
    ----------
    solution : Solution
        Solved temperature field.
    x : float, optional
        Horizontal position of the borehole, defaults to the domain centre.
    n_points : int
        Number of samples from the surface to the base.

    Returns
    -------
    pd.DataFrame
        Columns ``y``, ``depth`` and ``temperature``.
    """
    x_min, x_max, y_min, y_max = solution.mesh.bounds
    if x is None:
        x = 0.5 * (x_min + x_max)
    if not x_min <= x <= x_max:
        raise ValueError(f"x={x} lies outside the domain [{x_min}, {x_max}]")

    y = np.linspace(y_max, y_min, n_points)
    points = np.column_stack([np.full(n_points, x), y])
    T = interpolate_fem(solution.u_space, solution.temperature, points)
    return pd.DataFrame({"y": y, "depth": y_max - y, "temperature": T})

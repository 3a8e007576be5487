from __future__ import annotations

from typing import Iterable

import numpy as np
from numpy.typing import NDArray
from scipy.sparse import diags, spmatrix

from .assembly import Coefficient, evaluate_coefficient
from .datastructures import EDGE_VERTICES, Mesh2d
from .elements import edge_local_dofs, edge_shape_functions
from .quadrature import gauss_legendre
from .spaces import LagrangeSpace


def get_boundary_nodes(mesh: Mesh2d, names: str | Iterable[str] | None = None) -> NDArray[np.int64]:
    """Vertex indices on the boundary, optionally restricted to tagged sides."""
    beds = mesh.boundary_edges if names is None else mesh.boundary_edges_for(names)
    if len(beds) == 0:
        return np.array([], dtype=np.int64)
    local = EDGE_VERTICES[beds[:, 1]]
    return np.unique(mesh.EToV[beds[:, 0, None], local])


def dirbc_2d(
    dofs: NDArray[np.int64],
    values: NDArray[np.float64] | float,
    A: spmatrix,
    b: NDArray[np.float64],
) -> tuple[spmatrix, NDArray[np.float64]]:
    """Impose u[dofs] = values by eliminating rows and columns of A."""
    n = A.shape[0]
    A_csr = A.tocsr()
    values = np.broadcast_to(np.asarray(values, dtype=np.float64), dofs.shape)

    # A[:, dofs] @ values == A @ f_full where f_full is zero except at dofs
    f_full = np.zeros(n)
    f_full[dofs] = values
    b = b - A_csr @ f_full
    b[dofs] = values

    # Zero constrained rows/cols and put 1 on their diagonal
    scale = np.ones(n)
    scale[dofs] = 0

    row_scale = np.repeat(scale, np.diff(A_csr.indptr))
    col_scale = scale[A_csr.indices]

    A_new = A_csr.copy()
    A_new.data *= row_scale * col_scale
    A_new = A_new + diags(1.0 - scale, format="csr")
    A_new.eliminate_zeros()

    return A_new, b


def _get_edge_coords(
    beds: NDArray[np.int64],
    mesh: Mesh2d,
) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
    """Start and end coordinates (xa, ya, xb, yb) of boundary edges."""
    local = EDGE_VERTICES[beds[:, 1]]
    va = mesh.EToV[beds[:, 0], local[:, 0]]
    vb = mesh.EToV[beds[:, 0], local[:, 1]]
    return mesh.VX[va], mesh.VY[va], mesh.VX[vb], mesh.VY[vb]


def neubc_2d(
    space: LagrangeSpace,
    beds: NDArray[np.int64],
    g: Coefficient,
    b: NDArray[np.float64],
    n_quad: int = 3,
) -> NDArray[np.float64]:
    """
    Add the natural boundary term ∫_Γ g v ds to the load vector.

    Parameters
    ----------
    space : LagrangeSpace
        Space of the test functions v.
    beds : ndarray (N, 2)
        Boundary edges as (element, local edge).
    g : float or callable g(x, y)
        Heat flow into the domain (-σ·n) in W/m².
    b : ndarray
        Load vector, updated in place.
    """
    if len(beds) == 0:
        return b

    t, wt = gauss_legendre(n_quad)
    s = 0.5 * (t + 1.0)
    xa, ya, xb, yb = _get_edge_coords(beds, space.mesh)
    lengths = np.hypot(xb - xa, yb - ya)

    x = xa[:, None] + np.outer(xb - xa, s)
    y = ya[:, None] + np.outer(yb - ya, s)
    gq = evaluate_coefficient(g, x, y)

    phi = edge_shape_functions(space.order, s)
    contrib = np.einsum("q,e,eq,qi->ei", 0.5 * wt, lengths, gq, phi)

    local = np.array([edge_local_dofs(space.order, k) for k in beds[:, 1]])
    dofs = space.cell_dofs[beds[:, 0, None], local]
    np.add.at(b, dofs.ravel(), contrib.ravel())
    return b


def get_edge_midpoints(
    beds: NDArray[np.int64],
    mesh: Mesh2d,
) -> NDArray[np.float64]:
    """Get midpoint coordinates for each boundary edge."""
    if len(beds) == 0:
        return np.empty((0, 2))
    xa, ya, xb, yb = _get_edge_coords(beds, mesh)
    midpoints = np.empty((len(beds), 2), dtype=np.float64)
    midpoints[:, 0] = (xa + xb) / 2
    midpoints[:, 1] = (ya + yb) / 2
    return midpoints

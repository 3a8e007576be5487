"""Lagrange shape functions on the reference triangle (0,0)-(1,0)-(0,1).

Local numbering: vertices 0, 1, 2 first, then (order 2) the midpoints of the
local edges [0,1], [1,2], [2,0].
"""
import numpy as np

from .datastructures import EDGE_VERTICES

# Gradients of the barycentric coordinates L0 = 1 - xi - eta, L1 = xi, L2 = eta
_DL = np.array([[-1.0, -1.0], [1.0, 0.0], [0.0, 1.0]])


def n_local(order: int) -> int:
    """Number of local shape functions of a scalar Lagrange element."""
    if order not in (0, 1, 2):
        raise ValueError(f"Unsupported element order {order}. Use 0, 1 or 2.")
    return (order + 1) * (order + 2) // 2


def _barycentric(xi, eta):
    xi = np.atleast_1d(np.asarray(xi, dtype=np.float64))
    eta = np.atleast_1d(np.asarray(eta, dtype=np.float64))
    return np.stack([1.0 - xi - eta, xi, eta], axis=-1)


def shape_functions(order: int, xi, eta) -> np.ndarray:
    """
    Evaluate the shape functions at reference points.

    Parameters
    ----------
    order : int
        Polynomial order (0, 1 or 2).
    xi, eta : array_like (n_pts,)
        Reference coordinates.

    Returns
    -------
    phi : ndarray (n_pts, n_local)
    """
    L = _barycentric(xi, eta)
    n = n_local(order)
    if order == 0:
        return np.ones((len(L), 1))
    if order == 1:
        return L
    phi = np.empty((len(L), n))
    phi[:, :3] = L * (2.0 * L - 1.0)
    for k, (a, b) in enumerate(EDGE_VERTICES):
        phi[:, 3 + k] = 4.0 * L[:, a] * L[:, b]
    return phi


def shape_gradients(order: int, xi, eta) -> np.ndarray:
    """
    Reference gradients of the shape functions.

    Returns
    -------
    dphi : ndarray (n_pts, n_local, 2)
    """
    L = _barycentric(xi, eta)
    n = n_local(order)
    dphi = np.zeros((len(L), n, 2))
    if order == 1:
        dphi[:] = _DL
    elif order == 2:
        for i in range(3):
            dphi[:, i, :] = (4.0 * L[:, i] - 1.0)[:, None] * _DL[i]
        for k, (a, b) in enumerate(EDGE_VERTICES):
            dphi[:, 3 + k, :] = 4.0 * (L[:, b, None] * _DL[a] + L[:, a, None] * _DL[b])
    return dphi


def edge_shape_functions(order: int, s) -> np.ndarray:
    """
    Traces of the shape functions on an edge, parametrised by s in [0, 1].

    Columns follow ``edge_local_dofs``: start vertex, end vertex, midpoint.
    """
    s = np.atleast_1d(np.asarray(s, dtype=np.float64))
    if order == 1:
        return np.column_stack([1.0 - s, s])
    if order == 2:
        return np.column_stack([(1.0 - s) * (1.0 - 2.0 * s), s * (2.0 * s - 1.0), 4.0 * s * (1.0 - s)])
    raise ValueError(f"Unsupported edge order {order}. Use 1 or 2.")


def edge_local_dofs(order: int, k: int) -> list[int]:
    """Local DOFs of an element that live on its local edge k."""
    a, b = EDGE_VERTICES[k]
    if order == 1:
        return [int(a), int(b)]
    return [int(a), int(b), 3 + k]

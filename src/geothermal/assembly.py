"""Global assembly of the conduction operators.

Element integrals are evaluated for all elements at once with affine maps
from the reference triangle. Element matrices are scattered into a CSR matrix
through a pre-computed sparsity pattern.
"""
from __future__ import annotations

from typing import Callable, Union

import numpy as np
from numpy.typing import NDArray
from scipy.sparse import bmat, csr_matrix

from .datastructures import Mesh2d
from .elements import shape_functions, shape_gradients
from .quadrature import triangle_rule
from .spaces import DiscontinuousVectorSpace, LagrangeSpace

Coefficient = Union[float, Callable[[NDArray, NDArray], NDArray]]


# =============================================================================
# Sparse scatter
# =============================================================================
def csr_pattern(
    row_dofs: NDArray[np.int64],
    col_dofs: NDArray[np.int64],
    n_rows: int,
) -> tuple[NDArray[np.int64], NDArray[np.int64], NDArray[np.int64]]:
    """Compute the CSR sparsity pattern of an element-by-element matrix.

    Returns
    -------
    indptr, indices : CSR structure of the unique (row, col) pairs
    data_map : position in the CSR data array of every element matrix entry
    """
    n_r, n_c = row_dofs.shape[1], col_dofs.shape[1]
    rows = np.repeat(row_dofs, n_c, axis=1).ravel()
    cols = np.tile(col_dofs, n_r).ravel()

    # Sort by (row, col) to group duplicates
    sort_order = np.lexsort((cols, rows))
    sorted_rows = rows[sort_order]
    sorted_cols = cols[sort_order]

    row_diff = np.diff(sorted_rows, prepend=-1)
    col_diff = np.diff(sorted_cols, prepend=-1)
    is_new_pair = (row_diff != 0) | (col_diff != 0)

    unique_rows = sorted_rows[is_new_pair]
    indices = sorted_cols[is_new_pair]

    indptr = np.zeros(n_rows + 1, dtype=np.int64)
    np.add.at(indptr, unique_rows + 1, 1)
    np.cumsum(indptr, out=indptr)

    # Invert sort to get mapping for original (unsorted) order
    data_map = np.empty(len(rows), dtype=np.int64)
    data_map[sort_order] = np.cumsum(is_new_pair) - 1
    return indptr, indices, data_map


def assemble_matrix(
    row_dofs: NDArray[np.int64],
    col_dofs: NDArray[np.int64],
    Ke_all: NDArray[np.float64],
    shape: tuple[int, int],
) -> csr_matrix:
    """Sum element matrices Ke_all (noelms, n_r, n_c) into a global CSR matrix."""
    indptr, indices, data_map = csr_pattern(row_dofs, col_dofs, shape[0])
    data = np.zeros(len(indices), dtype=np.float64)
    np.add.at(data, data_map, Ke_all.ravel())
    return csr_matrix((data, indices, indptr), shape=shape)


# =============================================================================
# Element geometry
# =============================================================================
def element_geometry(mesh: Mesh2d) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """
    Jacobian determinants and inverse-transposed Jacobians of the affine maps.

    Returns
    -------
    detJ : ndarray (noelms,)
        Twice the element area.
    invJT : ndarray (noelms, 2, 2)
        Maps reference gradients to physical gradients.
    """
    x1, y1, x2, y2, x3, y3 = mesh.vertex_coords
    detJ = 2.0 * mesh.delta

    invJT = np.empty((mesh.noelms, 2, 2))
    invJT[:, 0, 0] = (y3 - y1) / detJ
    invJT[:, 0, 1] = -(y2 - y1) / detJ
    invJT[:, 1, 0] = -(x3 - x1) / detJ
    invJT[:, 1, 1] = (x2 - x1) / detJ
    return detJ, invJT


def physical_points(
    mesh: Mesh2d, xi: NDArray[np.float64], eta: NDArray[np.float64]
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Map reference points to every element, shape (noelms, n_pts)."""
    x1, y1, x2, y2, x3, y3 = mesh.vertex_coords
    x = x1[:, None] + np.outer(x2 - x1, xi) + np.outer(x3 - x1, eta)
    y = y1[:, None] + np.outer(y2 - y1, xi) + np.outer(y3 - y1, eta)
    return x, y


def evaluate_coefficient(f: Coefficient, x: NDArray, y: NDArray) -> NDArray[np.float64]:
    """Evaluate a constant or callable f(x, y) at the given points."""
    if callable(f):
        return np.broadcast_to(np.asarray(f(x, y), dtype=np.float64), x.shape)
    return np.full(x.shape, float(f))


def physical_gradients(space: LagrangeSpace, xi, eta) -> NDArray[np.float64]:
    """Physical shape function gradients, shape (noelms, n_pts, nloc, 2)."""
    _, invJT = element_geometry(space.mesh)
    dphi = shape_gradients(space.order, xi, eta)
    return np.einsum("edk,qik->eqid", invJT, dphi)


# =============================================================================
# Primal operators
# =============================================================================
def stiffness_matrix(
    space: LagrangeSpace,
    conductivity: float = 1.0,
    quad_degree: int = 2,
) -> csr_matrix:
    """Assemble K_ij = ∫ λ ∇φ_i · ∇φ_j dΩ."""
    xi, eta, w = triangle_rule(max(quad_degree, 2 * (space.order - 1)))
    detJ, _ = element_geometry(space.mesh)
    G = physical_gradients(space, xi, eta)
    Ke_all = conductivity * np.einsum("q,e,eqid,eqjd->eij", w, np.abs(detJ), G, G)
    return assemble_matrix(space.cell_dofs, space.cell_dofs, Ke_all, (space.ndofs, space.ndofs))


def load_vector(
    space: LagrangeSpace,
    f: Coefficient = 0.0,
    quad_degree: int = 2,
) -> NDArray[np.float64]:
    """Assemble F_i = ∫ f φ_i dΩ."""
    xi, eta, w = triangle_rule(quad_degree)
    detJ, _ = element_geometry(space.mesh)
    x, y = physical_points(space.mesh, xi, eta)
    fq = evaluate_coefficient(f, x, y)
    phi = shape_functions(space.order, xi, eta)
    be = np.einsum("q,e,eq,qi->ei", w, np.abs(detJ), fq, phi)
    return np.bincount(space.cell_dofs.ravel(), weights=be.ravel(), minlength=space.ndofs)


def assembly_2d(
    space: LagrangeSpace,
    conductivity: float = 1.0,
    f: Coefficient = 0.0,
    quad_degree: int = 2,
) -> tuple[csr_matrix, NDArray[np.float64]]:
    """Stiffness matrix and load vector of -∇·(λ∇u) = f."""
    A = stiffness_matrix(space, conductivity, quad_degree)
    b = load_vector(space, f, quad_degree)
    return A, b


# =============================================================================
# Mixed operators
# =============================================================================
def mass_matrix(sigma_space: DiscontinuousVectorSpace, quad_degree: int = 2) -> csr_matrix:
    """Assemble M_ij = ∫ τ_i · τ_j dΩ (block diagonal)."""
    xi, eta, w = triangle_rule(max(quad_degree, 2 * sigma_space.order))
    detJ, _ = element_geometry(sigma_space.mesh)
    psi = shape_functions(sigma_space.order, xi, eta)
    Ms = np.einsum("q,e,qi,qj->eij", w, np.abs(detJ), psi, psi)

    n = sigma_space.nloc
    Me_all = np.zeros((sigma_space.mesh.noelms, 2 * n, 2 * n))
    Me_all[:, :n, :n] = Ms
    Me_all[:, n:, n:] = Ms
    shape = (sigma_space.ndofs, sigma_space.ndofs)
    return assemble_matrix(sigma_space.cell_dofs, sigma_space.cell_dofs, Me_all, shape)


def gradient_coupling(
    sigma_space: DiscontinuousVectorSpace,
    u_space: LagrangeSpace,
    quad_degree: int = 2,
) -> csr_matrix:
    """Assemble D_ij = ∫ ∇φ_j · τ_i dΩ (rows: flux DOFs, columns: temperature DOFs)."""
    if sigma_space.mesh is not u_space.mesh:
        raise ValueError("Flux and temperature spaces must share the same mesh")
    xi, eta, w = triangle_rule(max(quad_degree, sigma_space.order + u_space.order - 1))
    detJ, _ = element_geometry(u_space.mesh)
    psi = shape_functions(sigma_space.order, xi, eta)
    G = physical_gradients(u_space, xi, eta)

    De = np.einsum("q,e,qi,eqjc->ecij", w, np.abs(detJ), psi, G)
    De_all = De.reshape(u_space.mesh.noelms, 2 * sigma_space.nloc, u_space.nloc)
    shape = (sigma_space.ndofs, u_space.ndofs)
    return assemble_matrix(sigma_space.cell_dofs, u_space.cell_dofs, De_all, shape)


def assemble_mixed(
    sigma_space: DiscontinuousVectorSpace,
    u_space: LagrangeSpace,
    conductivity: float = 1.0,
    f: Coefficient = 0.0,
    quad_degree: int = 2,
) -> tuple[csr_matrix, NDArray[np.float64]]:
    """
    Assemble the flux-temperature system

        ∫ (σ·τ + λ∇u·τ) dΩ = 0                         ∀ τ
        ∫ σ·∇v dΩ          = -∫ f v dΩ (- ∫ g v dΓ)     ∀ v

    The boundary integral is not included, subtract ``neubc_2d`` from the
    temperature rows of ``b``.

    Returns
    -------
    A : csr_matrix
        Block matrix [[M, λD], [Dᵀ, 0]].
    b : ndarray
        Right-hand side [0, -F].
    """
    M = mass_matrix(sigma_space, quad_degree)
    D = gradient_coupling(sigma_space, u_space, quad_degree)
    A = bmat([[M, conductivity * D], [D.T, None]], format="csr")

    b = np.zeros(sigma_space.ndofs + u_space.ndofs)
    b[sigma_space.ndofs:] = -load_vector(u_space, f, quad_degree)
    return A, b

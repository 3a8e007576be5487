"""Finite element spaces on a Mesh2d.

LagrangeSpace               continuous P1/P2 scalar field (temperature)
DiscontinuousVectorSpace    element-wise P0/P1 vector field (heat flow)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

import numpy as np
from numpy.typing import NDArray

from .datastructures import Mesh2d
from .elements import edge_local_dofs, n_local


@dataclass
class LagrangeSpace:
    """H1-conforming Lagrange space. Vertex DOFs first, then edge DOFs."""

    mesh: Mesh2d
    order: int = 1

    nloc: int = field(init=False)
    ndofs: int = field(init=False)
    cell_dofs: NDArray[np.int64] = field(init=False, repr=False)
    X: NDArray[np.float64] = field(init=False, repr=False)
    Y: NDArray[np.float64] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.order not in (1, 2):
            raise ValueError(f"Lagrange order must be 1 or 2, got {self.order}")
        mesh = self.mesh
        self.nloc = n_local(self.order)
        if self.order == 1:
            self.cell_dofs = mesh.EToV
            self.X, self.Y = mesh.VX, mesh.VY
        else:
            self.cell_dofs = np.hstack([mesh.EToV, mesh.nonodes + mesh.EToE])
            a, b = mesh.edges[:, 0], mesh.edges[:, 1]
            self.X = np.concatenate([mesh.VX, 0.5 * (mesh.VX[a] + mesh.VX[b])])
            self.Y = np.concatenate([mesh.VY, 0.5 * (mesh.VY[a] + mesh.VY[b])])
        self.ndofs = len(self.X)

    def boundary_dofs(self, names: str | Iterable[str]) -> NDArray[np.int64]:
        """Unique DOFs on the boundary edges tagged with any of ``names``."""
        beds = self.mesh.boundary_edges_for(names)
        if len(beds) == 0:
            return np.array([], dtype=np.int64)
        local = np.array([edge_local_dofs(self.order, k) for k in beds[:, 1]])
        return np.unique(self.cell_dofs[beds[:, 0, None], local])

    def vertex_values(self, coeffs: NDArray[np.float64]) -> NDArray[np.float64]:
        """Restrict a coefficient vector to the mesh vertices."""
        return coeffs[: self.mesh.nonodes]


@dataclass
class DiscontinuousVectorSpace:
    """Vector field, polynomial of ``order`` on each element, no continuity.

    Local DOF ``c * nloc + i`` is scalar shape function i in component c.
    """

    mesh: Mesh2d
    order: int = 0

    nloc: int = field(init=False)
    ndofs: int = field(init=False)
    cell_dofs: NDArray[np.int64] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.order not in (0, 1):
            raise ValueError(f"Discontinuous flux order must be 0 or 1, got {self.order}")
        self.nloc = n_local(self.order)
        n_cell = 2 * self.nloc
        self.ndofs = self.mesh.noelms * n_cell
        self.cell_dofs = np.arange(self.ndofs, dtype=np.int64).reshape(self.mesh.noelms, n_cell)

    def cell_averages(self, coeffs: NDArray[np.float64]) -> NDArray[np.float64]:
        """Mean value of the field on each element, shape (noelms, 2)."""
        local = coeffs[self.cell_dofs].reshape(self.mesh.noelms, 2, self.nloc)
        # The mean of a linear function over a triangle is the mean of its vertex values
        return local.mean(axis=2)

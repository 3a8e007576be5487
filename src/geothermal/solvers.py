"""
Steady heat conduction in a vertical section of the subsurface.

Introducing the heat flow σ = -λ∇u as an additional unknown, the problem reads

    σ + λ∇u = 0      in Ω
    ∇·σ     = f      in Ω
    u       = u_0    on Γ_D  (surface temperature)
    -σ·n    = g      on Γ_N  (basal heat flow)

The Dirichlet condition is essential and the Neumann condition natural. The
flux is discretised with discontinuous P_k vectors and the temperature with
continuous P_{k+1} Lagrange elements, so ∇V_h ⊂ Σ_h and the block system is
invertible as soon as Γ_D is not empty.
"""
from __future__ import annotations

import logging
import time

import numpy as np
from numpy.typing import NDArray
from scipy.sparse import spmatrix
from scipy.sparse.linalg import splu

from .assembly import assemble_mixed, assembly_2d, physical_gradients
from .boundary import dirbc_2d, neubc_2d
from .datastructures import Mesh2d
from .problem import Metrics, Parameters, Solution
from .spaces import DiscontinuousVectorSpace, LagrangeSpace

log = logging.getLogger(__name__)


class SingularSystemError(RuntimeError):
    """The assembled system has no unique solution."""


def _solve_linear(A: spmatrix, b: NDArray[np.float64]) -> tuple[NDArray[np.float64], float]:
    """Sparse LU solve. Returns the solution and the relative residual."""
    try:
        lu = splu(A.tocsc())
    except RuntimeError as exc:
        raise SingularSystemError(f"Sparse LU factorization failed: {exc}") from exc

    x = lu.solve(b)
    if not np.all(np.isfinite(x)):
        raise SingularSystemError("Linear solve produced non-finite values")

    b_norm = np.linalg.norm(b)
    residual = np.linalg.norm(A @ x - b) / (b_norm if b_norm > 0 else 1.0)
    return x, float(residual)


def _dirichlet_data(u_space: LagrangeSpace, params: Parameters) -> NDArray[np.int64]:
    dofs = u_space.boundary_dofs(params.dirichlet_tags)
    if len(dofs) == 0:
        raise SingularSystemError(
            f"No Dirichlet DOFs on tags {params.dirichlet_tags}: the temperature is only "
            "determined up to a constant"
        )
    return dofs


def _neumann_vector(u_space: LagrangeSpace, params: Parameters) -> NDArray[np.float64]:
    g = np.zeros(u_space.ndofs)
    if params.neumann_tags:
        beds = u_space.mesh.boundary_edges_for(params.neumann_tags)
        neubc_2d(u_space, beds, params.heat_flow, g)
    return g


def _collect_metrics(
    solution: Solution,
    n_dofs: int,
    residual: float,
    wall_time: float,
) -> Metrics:
    """Summary values. Basal temperature is read on the "bottom" group whatever the boundary data."""
    mesh = solution.mesh
    T = solution.temperature
    bottom = solution.u_space.boundary_dofs("bottom") if "bottom" in mesh.tags else np.array([], dtype=np.int64)
    weights = mesh.delta / mesh.area
    return Metrics(
        n_dofs=n_dofs,
        n_temperature_dofs=solution.u_space.ndofs,
        n_elements=mesh.noelms,
        wall_time_seconds=wall_time,
        residual=residual,
        T_min=float(T.min()),
        T_max=float(T.max()),
        T_bottom_mean=float(T[bottom].mean()) if len(bottom) else float("nan"),
        mean_heat_flow=float(np.sum(weights * solution.heat_flow[:, 1])),
    )


def recover_heat_flow(u_space: LagrangeSpace, u: NDArray[np.float64], conductivity: float) -> NDArray[np.float64]:
    """Cell-averaged heat flow -λ∇u_h, shape (noelms, 2)."""
    # Average over the vertices: exact for the (at most linear) gradient of P1/P2 fields
    xi = np.array([0.0, 1.0, 0.0])
    eta = np.array([0.0, 0.0, 1.0])
    G = physical_gradients(u_space, xi, eta)
    grad = np.einsum("eqid,ei->eqd", G, u[u_space.cell_dofs]).mean(axis=1)
    return -conductivity * grad


def solve_mixed(mesh: Mesh2d, params: Parameters | None = None) -> Solution:
    """Solve for heat flow (discontinuous P_k) and temperature (P_{k+1})."""
    params = params or Parameters()
    start = time.perf_counter()

    sigma_space = DiscontinuousVectorSpace(mesh, params.order)
    u_space = LagrangeSpace(mesh, params.order + 1)
    n_sigma = sigma_space.ndofs
    log.info(
        f"Mixed problem: {n_sigma} flux DOFs (P{params.order} disc.), "
        f"{u_space.ndofs} temperature DOFs (P{params.order + 1})"
    )

    A, b = assemble_mixed(sigma_space, u_space, params.conductivity, params.source, params.quad_degree)
    b[n_sigma:] -= _neumann_vector(u_space, params)

    dirichlet = _dirichlet_data(u_space, params)
    A, b = dirbc_2d(n_sigma + dirichlet, params.T_top, A, b)

    x, residual = _solve_linear(A, b)
    sigma, u = x[:n_sigma], x[n_sigma:]

    solution = Solution(
        formulation="mixed",
        u_space=u_space,
        temperature=u,
        heat_flow=sigma_space.cell_averages(sigma),
        sigma_space=sigma_space,
        sigma=sigma,
    )
    solution.metrics = _collect_metrics(solution, len(x), residual, time.perf_counter() - start)
    log.info(
        f"Solved in {solution.metrics.wall_time_seconds:.3f}s: "
        f"T in [{solution.metrics.T_min:.2f}, {solution.metrics.T_max:.2f}] °C, "
        f"residual={residual:.2e}"
    )
    return solution


def solve_conduction(mesh: Mesh2d, params: Parameters | None = None) -> Solution:
    """Solve -∇·(λ∇u) = f with the standard Galerkin method on P_{k+1}."""
    params = params or Parameters()
    start = time.perf_counter()

    u_space = LagrangeSpace(mesh, params.order + 1)
    log.info(f"Primal problem: {u_space.ndofs} temperature DOFs (P{params.order + 1})")

    A, b = assembly_2d(u_space, params.conductivity, params.source, params.quad_degree)
    b += _neumann_vector(u_space, params)

    dirichlet = _dirichlet_data(u_space, params)
    A, b = dirbc_2d(dirichlet, params.T_top, A, b)

    u, residual = _solve_linear(A, b)

    solution = Solution(
        formulation="primal",
        u_space=u_space,
        temperature=u,
        heat_flow=recover_heat_flow(u_space, u, params.conductivity),
    )
    solution.metrics = _collect_metrics(solution, len(u), residual, time.perf_counter() - start)
    log.info(f"Solved in {solution.metrics.wall_time_seconds:.3f}s, residual={residual:.2e}")
    return solution


def solve(mesh: Mesh2d, params: Parameters | None = None) -> Solution:
    """Dispatch on ``params.formulation``."""
    params = params or Parameters()
    if params.formulation == "mixed":
        return solve_mixed(mesh, params)
    return solve_conduction(mesh, params)


def conductive_geotherm(
    y: NDArray[np.float64],
    T_top: float,
    heat_flow: float,
    conductivity: float,
    y_top: float = 0.0,
    depth: float = 0.0,
    source: float = 0.0,
) -> NDArray[np.float64]:
    """
    1D steady geotherm for a surface temperature and a basal heat flow.

    With z = y_top - y and total thickness ``depth``, solves
    -λ u'' = f, u(0) = T_top, λ u'(depth) = heat_flow:

        u(z) = T_top + (heat_flow + f·depth) z / λ - f z² / (2λ)
    """
    z = y_top - np.asarray(y, dtype=np.float64)
    return T_top + (heat_flow + source * depth) * z / conductivity - source * z**2 / (2 * conductivity)

"""Tests for element integrals and global assembly.

Run with: uv run pytest tests/test_assembly.py -v
"""

import numpy as np
import pytest

from geothermal import (
    DiscontinuousVectorSpace,
    LagrangeSpace,
    assemble_mixed,
    assembly_2d,
    dirbc_2d,
    gradient_coupling,
    load_vector,
    mass_matrix,
    neubc_2d,
    stiffness_matrix,
)
from geothermal.assembly import assemble_matrix
from geothermal.elements import shape_functions, shape_gradients
from geothermal.quadrature import gauss_legendre, triangle_rule


class TestQuadrature:
    """Test quadrature rules."""

    @pytest.mark.parametrize("degree", [1, 2, 3, 4])
    def test_triangle_rule_exactness(self, degree):
        """Monomials xi^a eta^b with a + b <= degree integrate to a! b! / (a + b + 2)!."""
        from math import factorial

        xi, eta, w = triangle_rule(degree)
        for a in range(degree + 1):
            for b in range(degree + 1 - a):
                exact = factorial(a) * factorial(b) / factorial(a + b + 2)
                assert np.isclose(np.sum(w * xi**a * eta**b), exact, atol=1e-12)

    def test_triangle_rule_too_high(self):
        with pytest.raises(ValueError):
            triangle_rule(7)

    def test_gauss_legendre_weights(self):
        for n in [1, 2, 3, 5]:
            _, w = gauss_legendre(n)
            assert np.isclose(np.sum(w), 2.0)


class TestShapeFunctions:
    """Test reference element shape functions."""

    @pytest.mark.parametrize("order", [1, 2])
    def test_partition_of_unity(self, order):
        xi, eta, _ = triangle_rule(4)
        assert np.allclose(shape_functions(order, xi, eta).sum(axis=1), 1.0)
        assert np.allclose(shape_gradients(order, xi, eta).sum(axis=1), 0.0)

    def test_p2_nodal(self):
        """Each P2 shape function is one at its own node and zero at the others."""
        xi = np.array([0.0, 1.0, 0.0, 0.5, 0.5, 0.0])
        eta = np.array([0.0, 0.0, 1.0, 0.0, 0.5, 0.5])
        assert np.allclose(shape_functions(2, xi, eta), np.eye(6))


class TestLagrangeSpace:
    """Test DOF numbering of the temperature space."""

    def test_p1_dofs(self, small_mesh):
        space = LagrangeSpace(small_mesh, 1)
        assert space.ndofs == small_mesh.nonodes
        assert space.cell_dofs.shape == (small_mesh.noelms, 3)

    def test_p2_dofs(self, small_mesh):
        space = LagrangeSpace(small_mesh, 2)
        assert space.ndofs == small_mesh.nonodes + len(small_mesh.edges)
        assert space.cell_dofs.shape == (small_mesh.noelms, 6)

    def test_p2_boundary_dofs(self, small_mesh):
        """Top boundary holds 5 vertices and 4 edge midpoints."""
        space = LagrangeSpace(small_mesh, 2)
        dofs = space.boundary_dofs("top")
        assert len(dofs) == 9
        assert np.allclose(space.Y[dofs], 1.0)

    def test_invalid_order(self, small_mesh):
        with pytest.raises(ValueError):
            LagrangeSpace(small_mesh, 3)
        with pytest.raises(ValueError):
            DiscontinuousVectorSpace(small_mesh, 2)


class TestPrimalAssembly:
    """Test stiffness matrix and load vector."""

    @pytest.mark.parametrize("order", [1, 2])
    def test_stiffness_symmetric(self, small_mesh, order):
        K = stiffness_matrix(LagrangeSpace(small_mesh, order))
        assert np.allclose((K - K.T).toarray(), 0.0)

    @pytest.mark.parametrize("order", [1, 2])
    def test_stiffness_constant_kernel(self, small_mesh, order):
        """Constants are in the kernel of K."""
        K = stiffness_matrix(LagrangeSpace(small_mesh, order))
        assert np.allclose(K @ np.ones(K.shape[0]), 0.0, atol=1e-12)

    @pytest.mark.parametrize("order", [1, 2])
    def test_stiffness_energy(self, small_mesh, order):
        """u = a x + b y gives u^T K u = λ (a² + b²) |Ω|."""
        space = LagrangeSpace(small_mesh, order)
        K = stiffness_matrix(space, conductivity=2.5)
        u = 3.0 * space.X - 2.0 * space.Y
        assert np.isclose(u @ K @ u, 2.5 * 13.0 * small_mesh.area)

    @pytest.mark.parametrize("order", [1, 2])
    def test_load_total(self, small_mesh, order):
        b = load_vector(LagrangeSpace(small_mesh, order), f=4.0)
        assert np.isclose(b.sum(), 4.0 * small_mesh.area)

    def test_load_callable(self, small_mesh):
        """∫ x dΩ over [0, 2] x [0, 1] is 2."""
        b = load_vector(LagrangeSpace(small_mesh, 2), f=lambda x, y: x)
        assert np.isclose(b.sum(), 2.0)

    def test_assembly_2d(self, small_mesh):
        space = LagrangeSpace(small_mesh, 1)
        A, b = assembly_2d(space, conductivity=3.0, f=1.0)
        assert A.shape == (space.ndofs, space.ndofs)
        assert np.allclose(A.toarray(), 3.0 * stiffness_matrix(space).toarray())
        assert np.isclose(b.sum(), small_mesh.area)

    def test_assemble_matrix_sums_duplicates(self):
        """Shared DOFs accumulate contributions of all elements."""
        dofs = np.array([[0, 1], [1, 2]])
        Ke = np.ones((2, 2, 2))
        A = assemble_matrix(dofs, dofs, Ke, (3, 3)).toarray()
        assert np.allclose(A, [[1, 1, 0], [1, 2, 1], [0, 1, 1]])


class TestMixedAssembly:
    """Test the flux mass matrix and the gradient coupling."""

    @pytest.mark.parametrize("order", [0, 1])
    def test_mass_total(self, small_mesh, order):
        """Σ_ij M_ij = ∫ |(1, 1)|² dΩ for the sum of all basis functions."""
        space = DiscontinuousVectorSpace(small_mesh, order)
        M = mass_matrix(space)
        assert M.shape == (space.ndofs, space.ndofs)
        assert np.isclose(M.sum(), 2.0 * small_mesh.area)

    def test_mass_p0_diagonal(self, small_mesh):
        M = mass_matrix(DiscontinuousVectorSpace(small_mesh, 0)).toarray()
        assert np.allclose(M, np.diag(np.repeat(small_mesh.delta, 2)))

    @pytest.mark.parametrize("order", [0, 1])
    def test_schur_complement_is_stiffness(self, small_mesh, order):
        """∇V_h ⊂ Σ_h, so Dᵀ M⁻¹ D reproduces the Lagrange stiffness matrix."""
        sigma_space = DiscontinuousVectorSpace(small_mesh, order)
        u_space = LagrangeSpace(small_mesh, order + 1)
        M = mass_matrix(sigma_space).toarray()
        D = gradient_coupling(sigma_space, u_space).toarray()
        K = stiffness_matrix(u_space).toarray()
        assert np.allclose(D.T @ np.linalg.solve(M, D), K, atol=1e-10)

    def test_coupling_mesh_mismatch(self, small_mesh, section_mesh):
        with pytest.raises(ValueError):
            gradient_coupling(DiscontinuousVectorSpace(small_mesh), LagrangeSpace(section_mesh))

    def test_block_structure(self, small_mesh):
        sigma_space = DiscontinuousVectorSpace(small_mesh, 1)
        u_space = LagrangeSpace(small_mesh, 2)
        A, b = assemble_mixed(sigma_space, u_space, conductivity=2.0, f=1.0)
        n = sigma_space.ndofs
        assert A.shape == (n + u_space.ndofs, n + u_space.ndofs)
        D = gradient_coupling(sigma_space, u_space)
        assert np.allclose(A[:n, n:].toarray(), 2.0 * D.toarray())
        assert np.allclose(A[n:, :n].toarray(), D.T.toarray())
        assert A[n:, n:].nnz == 0
        assert np.allclose(b[:n], 0.0)
        assert np.isclose(b[n:].sum(), -small_mesh.area)


class TestBoundaryConditions:
    """Test Dirichlet elimination and Neumann integrals."""

    @pytest.mark.parametrize("order", [1, 2])
    def test_neumann_total(self, small_mesh, order):
        """∫ g ds over the bottom edge is g times its length."""
        space = LagrangeSpace(small_mesh, order)
        b = neubc_2d(space, small_mesh.boundary_edges_for("bottom"), 0.08, np.zeros(space.ndofs))
        assert np.isclose(b.sum(), 0.08 * 2.0)
        assert np.allclose(b[space.Y > 1e-12], 0.0)

    def test_neumann_callable(self, small_mesh):
        """∫_0^2 x dx = 2 along the bottom."""
        space = LagrangeSpace(small_mesh, 2)
        b = neubc_2d(space, small_mesh.boundary_edges_for("bottom"), lambda x, y: x, np.zeros(space.ndofs))
        assert np.isclose(b.sum(), 2.0)

    def test_neumann_empty(self, small_mesh):
        space = LagrangeSpace(small_mesh, 1)
        b = neubc_2d(space, np.empty((0, 2), dtype=np.int64), 1.0, np.zeros(space.ndofs))
        assert np.allclose(b, 0.0)

    def test_dirichlet_elimination(self, small_mesh):
        space = LagrangeSpace(small_mesh, 1)
        A, b = assembly_2d(space, f=1.0)
        dofs = space.boundary_dofs("top")
        A_bc, b_bc = dirbc_2d(dofs, 7.0, A, b)

        assert np.allclose(b_bc[dofs], 7.0)
        dense = A_bc.toarray()
        assert np.allclose(dense[dofs][:, dofs], np.eye(len(dofs)))
        free = np.setdiff1d(np.arange(space.ndofs), dofs)
        assert np.allclose(dense[np.ix_(dofs, free)], 0.0)
        assert np.allclose(dense[np.ix_(free, dofs)], 0.0)
        # Symmetry is preserved
        assert np.allclose(dense, dense.T)

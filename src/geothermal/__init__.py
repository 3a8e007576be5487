"""2D finite element model of steady heat conduction in the subsurface.

A rectangular vertical section is written as a gmsh geometry, meshed with
triangles and solved for temperature and heat flow with a constant surface
temperature (Dirichlet, top) and a constant basal heat flow (Neumann, bottom).

Main components:
- write_geo, write_msh: geometry description and gmsh meshing
- Mesh2d: triangular mesh with physical boundary tags
- LagrangeSpace, DiscontinuousVectorSpace: temperature and flux spaces
- assembly_2d, assemble_mixed: global operators
- dirbc_2d, neubc_2d: boundary condition application
- solve_mixed, solve_conduction: high-level solvers
"""

from .datastructures import (
    Mesh2d,
    DOMAIN,
    TOP,
    SIDEWALLS,
    BOTTOM,
    PHYSICAL_GROUPS,
    BOUNDARY_TOL,
    EDGE_VERTICES,
)
from .geometry import SubsurfaceDomain, write_geo
from .mesh import write_msh, read_mesh
from .spaces import LagrangeSpace, DiscontinuousVectorSpace
from .assembly import (
    assembly_2d,
    assemble_mixed,
    stiffness_matrix,
    load_vector,
    mass_matrix,
    gradient_coupling,
)
from .boundary import (
    dirbc_2d,
    neubc_2d,
    get_boundary_nodes,
    get_edge_midpoints,
)
from .problem import Parameters, Metrics, Solution
from .solvers import (
    SingularSystemError,
    solve,
    solve_mixed,
    solve_conduction,
    conductive_geotherm,
)
from .interpolation import interpolate_fem, temperature_profile
from .export import write_mesh_vtk, write_solution_vtk

__all__ = [
    # Mesh
    "Mesh2d",
    "DOMAIN",
    "TOP",
    "SIDEWALLS",
    "BOTTOM",
    "PHYSICAL_GROUPS",
    "BOUNDARY_TOL",
    "EDGE_VERTICES",
    # Geometry / meshing
    "SubsurfaceDomain",
    "write_geo",
    "write_msh",
    "read_mesh",
    # Spaces
    "LagrangeSpace",
    "DiscontinuousVectorSpace",
    # Assembly
    "assembly_2d",
    "assemble_mixed",
    "stiffness_matrix",
    "load_vector",
    "mass_matrix",
    "gradient_coupling",
    # Boundary conditions
    "dirbc_2d",
    "neubc_2d",
    "get_boundary_nodes",
    "get_edge_midpoints",
    # Solvers
    "Parameters",
    "Metrics",
    "Solution",
    "SingularSystemError",
    "solve",
    "solve_mixed",
    "solve_conduction",
    "conductive_geotherm",
    # Post-processing
    "interpolate_fem",
    "temperature_profile",
    "write_mesh_vtk",
    "write_solution_vtk",
]

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    import meshio

# Physical group ids (must match the .geo template in geometry.py)
DOMAIN, TOP, SIDEWALLS, BOTTOM = 5, 6, 7, 8

PHYSICAL_GROUPS = {
    "domain": DOMAIN,
    "top": TOP,
    "sidewalls": SIDEWALLS,
    "bottom": BOTTOM,
}

# Relative tolerance for boundary node detection (scaled by domain size)
BOUNDARY_TOL = 1e-8

# Local edge k connects these vertex positions in EToV
EDGE_VERTICES = np.array([[0, 1], [1, 2], [2, 0]])


@dataclass
class Mesh2d:
    """2D triangular mesh with tagged boundary edges."""

    VX: NDArray[np.float64]
    VY: NDArray[np.float64]
    EToV: NDArray[np.int64]
    boundary_edges: NDArray[np.int64]
    boundary_sides: NDArray[np.int64]
    tags: dict[str, int] = field(default_factory=lambda: dict(PHYSICAL_GROUPS))
    cell_tags: NDArray[np.int64] | None = None

    # Computed mesh properties
    noelms: int = field(init=False)
    nonodes: int = field(init=False)
    delta: NDArray[np.float64] = field(init=False, repr=False)
    edges: NDArray[np.int64] = field(init=False, repr=False)
    EToE: NDArray[np.int64] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.noelms = len(self.EToV)
        self.nonodes = len(self.VX)
        if self.cell_tags is None:
            self.cell_tags = np.full(self.noelms, self.tags.get("domain", DOMAIN), dtype=np.int64)
        self._compute_area()
        if np.any(self.delta <= 0.0):
            raise ValueError("Mesh contains degenerate or clockwise elements")
        self._compute_edges()

    def _compute_area(self) -> None:
        x1, y1, x2, y2, x3, y3 = self.vertex_coords
        self.delta = 0.5 * (x1 * (y2 - y3) + x2 * (y3 - y1) + x3 * (y1 - y2))

    def _compute_edges(self) -> None:
        """Build the unique edge table and the element-to-edge map."""
        local = np.sort(self.EToV[:, EDGE_VERTICES], axis=2).reshape(-1, 2)
        self.edges, inverse = np.unique(local, axis=0, return_inverse=True)
        self.EToE = inverse.reshape(self.noelms, 3)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def rectangle(
        cls,
        x0: float,
        y0: float,
        L1: float,
        L2: float,
        noelms1: int,
        noelms2: int,
    ) -> Mesh2d:
        """Structured triangulation of [x0, x0+L1] x [y0, y0+L2]."""
        if noelms1 < 1 or noelms2 < 1:
            raise ValueError("noelms1 and noelms2 must be positive")
        nonodes1, nonodes2 = noelms1 + 1, noelms2 + 1
        noelms = 2 * noelms1 * noelms2

        temp_x = np.linspace(x0, x0 + L1, nonodes1)
        temp_y = np.linspace(y0 + L2, y0, nonodes2)

        XX, YY = np.meshgrid(temp_x, temp_y)
        VX = XX.flatten(order="F")
        VY = YY.flatten(order="F")

        col, row = np.meshgrid(np.arange(noelms1), np.arange(noelms2))
        col, row = col.flatten(order="F"), row.flatten(order="F")

        UL = row + col * nonodes2
        LL = UL + 1
        UR = UL + nonodes2
        LR = UR + 1

        EToV = np.empty((noelms, 3), dtype=np.int64)
        # Upper triangles: [UL, LR, UR]
        EToV[0::2, 0] = UL
        EToV[0::2, 1] = LR
        EToV[0::2, 2] = UR
        # Lower triangles: [LL, LR, UL]
        EToV[1::2, 0] = LL
        EToV[1::2, 1] = LR
        EToV[1::2, 2] = UL

        boundary_edges, boundary_sides = _classify_boundary_edges(VX, VY, EToV, BOUNDARY_TOL)
        return cls(VX=VX, VY=VY, EToV=EToV, boundary_edges=boundary_edges, boundary_sides=boundary_sides)

    @classmethod
    def from_meshio(
        cls,
        mesh: meshio.Mesh | str | Path,
        tol: float = BOUNDARY_TOL,
    ) -> Mesh2d:
        """
        Create Mesh2d from a meshio mesh or mesh file.

        Parameters
        ----------
        mesh : meshio.Mesh or str or Path
            Either a meshio Mesh object or path to a mesh file.
        tol : float
            Relative tolerance for boundary node detection, used only when
            the mesh carries no physical line tags.

        Returns
        -------
        Mesh2d
            The mesh object with all computed properties.
        """
        import meshio as mio

        if isinstance(mesh, (str, Path)):
            mesh = mio.read(mesh)

        triangles = [block.data for block in mesh.cells if block.type == "triangle"]
        if not triangles:
            raise ValueError("No triangle cells found in mesh")
        EToV = np.concatenate(triangles).astype(np.int64)

        # Drop nodes no triangle refers to (gmsh keeps geometry points)
        used = np.unique(EToV)
        remap = np.full(len(mesh.points), -1, dtype=np.int64)
        remap[used] = np.arange(len(used))
        EToV = remap[EToV]
        VX = mesh.points[used, 0].astype(np.float64)
        VY = mesh.points[used, 1].astype(np.float64)

        EToV = _orient_ccw(VX, VY, EToV)

        tags = {
            name: int(data[0])
            for name, data in (mesh.field_data or {}).items()
            if len(data) > 1 and int(data[1]) in (1, 2)
        }

        physical = mesh.cell_data_dict.get("gmsh:physical", {})
        line_cells = mesh.cells_dict.get("line")
        line_tags = physical.get("line")
        cell_tags = physical.get("triangle")

        if line_cells is not None and line_tags is not None:
            boundary_edges, boundary_sides = _boundary_edges_from_tags(
                EToV, remap[line_cells], np.asarray(line_tags, dtype=np.int64)
            )
        else:
            boundary_edges, boundary_sides = _classify_boundary_edges(VX, VY, EToV, tol)
            tags = {**PHYSICAL_GROUPS, **tags}

        if not tags:
            tags = dict(PHYSICAL_GROUPS)

        return cls(
            VX=VX,
            VY=VY,
            EToV=EToV,
            boundary_edges=boundary_edges,
            boundary_sides=boundary_sides,
            tags=tags,
            cell_tags=None if cell_tags is None else np.asarray(cell_tags, dtype=np.int64),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def tag_ids(self, names: str | Iterable[str]) -> list[int]:
        """Map physical group names to their ids."""
        if isinstance(names, str):
            names = [names]
        ids = []
        for name in names:
            if name not in self.tags:
                raise ValueError(
                    f"Unknown boundary tag '{name}', available tags: {sorted(self.tags)}"
                )
            ids.append(self.tags[name])
        return ids

    def boundary_edges_for(self, names: str | Iterable[str]) -> NDArray[np.int64]:
        """Boundary edges (elem, local_edge) carrying any of the given tags."""
        mask = np.isin(self.boundary_sides, self.tag_ids(names))
        return self.boundary_edges[mask]

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """Return (x_min, x_max, y_min, y_max)."""
        return float(self.VX.min()), float(self.VX.max()), float(self.VY.min()), float(self.VY.max())

    @property
    def area(self) -> float:
        return float(np.sum(self.delta))

    @property
    def vertex_coords(
        self,
    ) -> tuple[
        NDArray[np.float64],
        NDArray[np.float64],
        NDArray[np.float64],
        NDArray[np.float64],
        NDArray[np.float64],
        NDArray[np.float64],
    ]:
        """Return (x1, y1, x2, y2, x3, y3) coordinates for all elements."""
        v1, v2, v3 = self.EToV[:, 0], self.EToV[:, 1], self.EToV[:, 2]
        return (
            self.VX[v1],
            self.VY[v1],
            self.VX[v2],
            self.VY[v2],
            self.VX[v3],
            self.VY[v3],
        )


def _orient_ccw(
    VX: NDArray[np.float64],
    VY: NDArray[np.float64],
    EToV: NDArray[np.int64],
) -> NDArray[np.int64]:
    """Swap the last two vertices of clockwise triangles."""
    x1, y1 = VX[EToV[:, 0]], VY[EToV[:, 0]]
    x2, y2 = VX[EToV[:, 1]], VY[EToV[:, 1]]
    x3, y3 = VX[EToV[:, 2]], VY[EToV[:, 2]]
    cw = (x2 - x1) * (y3 - y1) - (x3 - x1) * (y2 - y1) < 0
    EToV = EToV.copy()
    EToV[cw] = EToV[cw][:, [0, 2, 1]]
    return EToV


def _boundary_edges_from_tags(
    EToV: NDArray[np.int64],
    line_cells: NDArray[np.int64],
    line_tags: NDArray[np.int64],
) -> tuple[NDArray[np.int64], NDArray[np.int64]]:
    """
    Match tagged line elements to element edges.

    Parameters
    ----------
    line_cells : (N, 2) array of node indices (0-based, already remapped)
    line_tags : (N,) array of physical tags
    """
    edge_to_tag = {}
    for (n1, n2), tag in zip(line_cells, line_tags):
        edge_to_tag[(min(n1, n2), max(n1, n2))] = int(tag)

    boundary_edges_list = []
    boundary_sides_list = []
    for elem, vertices in enumerate(EToV):
        for k in range(3):
            va, vb = vertices[EDGE_VERTICES[k]]
            edge = (min(va, vb), max(va, vb))
            if edge in edge_to_tag:
                boundary_edges_list.append([elem, k])
                boundary_sides_list.append(edge_to_tag[edge])

    return (
        np.array(boundary_edges_list, dtype=np.int64).reshape(-1, 2),
        np.array(boundary_sides_list, dtype=np.int64),
    )


def _classify_boundary_edges(
    VX: NDArray[np.float64],
    VY: NDArray[np.float64],
    EToV: NDArray[np.int64],
    tol: float = BOUNDARY_TOL,
) -> tuple[NDArray[np.int64], NDArray[np.int64]]:
    """Find edges on the bounding box and label them top / bottom / sidewalls."""
    x_min, x_max = VX.min(), VX.max()
    y_min, y_max = VY.min(), VY.max()
    atol = tol * max(x_max - x_min, y_max - y_min, 1.0)

    va = EToV[:, EDGE_VERTICES[:, 0]]
    vb = EToV[:, EDGE_VERTICES[:, 1]]
    xa, ya, xb, yb = VX[va], VY[va], VX[vb], VY[vb]

    def on_line(a, b, value):
        return (np.abs(a - value) < atol) & (np.abs(b - value) < atol)

    side = np.zeros(va.shape, dtype=np.int64)
    side[on_line(ya, yb, y_min)] = BOTTOM
    side[on_line(ya, yb, y_max)] = TOP
    side[on_line(xa, xb, x_min) | on_line(xa, xb, x_max)] = SIDEWALLS

    elems, local = np.nonzero(side)
    boundary_edges = np.column_stack([elems, local]).astype(np.int64)
    return boundary_edges, side[elems, local]

"""
Mesh generation script for the subsurface section.

Writes the gmsh geometry (.geo) and the triangular mesh (.msh), and optionally
a .vtu copy of the mesh for ParaView.

Typical usage:
  python meshing/generate_mesh.py --name 2dmodel --density 10 --x-end 7000 --y-end 3600
"""

import argparse
import logging
from pathlib import Path

from geothermal import SubsurfaceDomain, read_mesh, write_mesh_vtk, write_msh


def main():
    parser = argparse.ArgumentParser(description="Generate the subsurface mesh using gmsh")
    parser.add_argument("--name", default="2dmodel", help="Base name of the output files")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path(__file__).parent,
        help="Output directory for mesh files",
    )
    parser.add_argument("--density", type=int, default=10, help="Points per side")
    parser.add_argument("--x0", type=float, default=0.0, help="x-coordinate of the left sidewall")
    parser.add_argument("--x-end", type=float, default=7000.0, help="x-coordinate of the right sidewall")
    parser.add_argument("--y-top", type=float, default=0.0, help="Elevation of the surface")
    parser.add_argument("--y-end", type=float, default=3600.0, help="Depth of the model base")
    parser.add_argument("--vtk", action="store_true", help="Also write the mesh as .vtu")
    parser.add_argument("--verbose", action="store_true", help="Show gmsh output")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    domain = SubsurfaceDomain(
        x_0=args.x0,
        x_end=args.x_end,
        y_top=args.y_top,
        y_end=args.y_end,
        density=args.density,
    )
    geo_path = domain.write_geo(args.output_dir / args.name)
    msh_path = write_msh(geo_path, verbose=args.verbose)

    if args.vtk:
        write_mesh_vtk(read_mesh(msh_path), msh_path)


if __name__ == "__main__":
    main()

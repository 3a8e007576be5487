"""
Subsurface conduction model - unified entry point.

Writes the geometry, meshes it with gmsh, solves for temperature and heat
flow and writes VTK output for ParaView.

Usage:
    uv run python main.py
    uv run python main.py solver.formulation=primal geometry.density=40
    uv run python main.py problem.heat_flow=0.1 mlflow.enabled=true
"""

import logging
import os
from pathlib import Path

import hydra
import mlflow
import numpy as np
from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf

from geothermal import (
    Parameters,
    SingularSystemError,
    SubsurfaceDomain,
    conductive_geotherm,
    read_mesh,
    solve,
    temperature_profile,
    write_mesh_vtk,
    write_msh,
    write_solution_vtk,
)

load_dotenv()

log = logging.getLogger(__name__)


def build_parameters(cfg: DictConfig) -> Parameters:
    """Merge the problem and solver groups into solver Parameters."""
    problem = OmegaConf.to_container(cfg.problem, resolve=True)
    solver = OmegaConf.to_container(cfg.solver, resolve=True)
    return Parameters(**problem, **solver)


def setup_mlflow(cfg: DictConfig) -> str:
    """Setup MLflow tracking and return experiment name."""
    tracking_uri = cfg.mlflow.get("tracking_uri", "./mlruns")
    os.environ["MLFLOW_TRACKING_URI"] = str(tracking_uri)
    mlflow.set_tracking_uri(tracking_uri)
    mlflow.set_experiment(cfg.mlflow.experiment_name)
    return cfg.mlflow.experiment_name


def log_run(cfg: DictConfig, params: Parameters, solution, artifacts: list[Path]) -> str:
    """Log parameters, metrics and output files of one solve to MLflow."""
    run_name = f"{cfg.name}_{params.formulation}_k{params.order}_n{cfg.geometry.density}"
    with mlflow.start_run(run_name=run_name, tags={"formulation": params.formulation}) as run:
        mlflow.log_params({**params.to_mlflow(), "density": cfg.geometry.density})
        mlflow.log_dict(OmegaConf.to_container(cfg), "config.yaml")
        mlflow.log_metrics(solution.metrics.to_mlflow())
        for path in artifacts:
            mlflow.log_artifact(str(path))
        return run.info.run_id


@hydra.main(version_base=None, config_path="conf", config_name="config")
def main(cfg: DictConfig) -> float:
    """Run the full pipeline. Returns the mean basal temperature."""
    output_dir = Path(cfg.output_dir)
    base = output_dir / cfg.name
    output_dir.mkdir(parents=True, exist_ok=True)
    log.info(f"Output directory: {output_dir.resolve()}")

    with open(output_dir / "config_resolved.yaml", "w") as f:
        OmegaConf.save(cfg, f)

    # 1. Geometry and mesh
    domain = SubsurfaceDomain(**cfg.geometry)
    geo_path = domain.write_geo(base)
    msh_path = write_msh(geo_path)
    mesh = read_mesh(msh_path)

    artifacts = []
    if cfg.output.vtk:
        artifacts.append(write_mesh_vtk(mesh, base))

    # 2. Solve
    params = build_parameters(cfg)
    try:
        solution = solve(mesh, params)
    except SingularSystemError as exc:
        log.error(f"Could not solve the {params.formulation} problem: {exc}")
        raise

    metrics = solution.metrics
    log.info(
        f"T_bottom={metrics.T_bottom_mean:.2f} °C, mean heat flow={metrics.mean_heat_flow:.4f} W/m², "
        f"{metrics.n_dofs} DOFs"
    )
    metrics.to_dataframe().to_csv(output_dir / "metrics.csv", index=False)

    # 3. Output
    if cfg.output.vtk:
        artifacts.append(write_solution_vtk(solution, f"{base}_solution"))

    profile = None
    if cfg.output.profile:
        profile = temperature_profile(solution, x=cfg.output.profile_x)
        profile["reference"] = conductive_geotherm(
            profile["y"].to_numpy(),
            params.T_top,
            params.heat_flow,
            params.conductivity,
            y_top=domain.y_top,
            depth=domain.height,
            source=params.source,
        )
        profile_path = output_dir / f"{cfg.name}_profile.csv"
        profile.to_csv(profile_path, index=False)
        artifacts.append(profile_path)
        max_dev = np.nanmax(np.abs(profile["temperature"] - profile["reference"]))
        log.info(f"Saved {profile_path} (max deviation from 1D geotherm: {max_dev:.3e} °C)")

    if cfg.output.plots:
        from geothermal.plotting import plot_field, plot_profile

        if profile is not None:
            artifacts.append(plot_profile(profile, output_dir / f"{cfg.name}_profile.png", profile["reference"]))
        artifacts.append(plot_field(solution, output_dir / f"{cfg.name}_temperature.png"))

    # 4. Tracking
    if cfg.mlflow.enabled:
        log.info(f"MLflow experiment: {setup_mlflow(cfg)}")
        run_id = log_run(cfg, params, solution, artifacts)
        log.info(f"Logged run {run_id[:8]}")

    return metrics.T_bottom_mean


if __name__ == "__main__":
    main()

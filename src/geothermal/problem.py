"""Data structures for the conduction problem configuration and results.

             Params (input/config)         Metrics (output/results)
             ─────────────────────         ────────────────────────
Global       Parameters                    Metrics
             T_top, λ, q, order...         wall_time, residual, T range...

Spatial      -                             Solution
                                           temperature, heat flow
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd
from numpy.typing import NDArray

if TYPE_CHECKING:
    from .datastructures import Mesh2d
    from .spaces import DiscontinuousVectorSpace, LagrangeSpace


FORMULATIONS = ("mixed", "primal")


# ============================================================================
# Parameters (Input Configuration) - logged to MLflow as params
# ============================================================================


@dataclass
class Parameters:
    """Physical and numerical inputs of the steady conduction model."""

    T_top: float = 11.0  # °C, surface temperature
    conductivity: float = 3.0  # W/(m K), single rock type
    heat_flow: float = 0.08  # W/m², basal heat flow into the domain
    source: float = 0.0  # W/m³, radiogenic heat production
    order: int = 1  # flux order k, temperature order k + 1
    quad_degree: int = 2
    formulation: str = "mixed"
    dirichlet_tags: tuple[str, ...] = ("top",)
    neumann_tags: tuple[str, ...] = ("bottom",)

    def __post_init__(self) -> None:
        if self.formulation not in FORMULATIONS:
            raise ValueError(f"Unknown formulation '{self.formulation}', use one of {FORMULATIONS}")
        if self.conductivity <= 0:
            raise ValueError(f"conductivity must be positive, got {self.conductivity}")
        if self.order not in (0, 1):
            raise ValueError(f"order must be 0 or 1, got {self.order}")
        self.dirichlet_tags = tuple(self.dirichlet_tags)
        self.neumann_tags = tuple(self.neumann_tags)

    def to_mlflow(self) -> dict:
        """Convert to MLflow-compatible params dict."""
        return {
            k: (",".join(v) if isinstance(v, tuple) else v) for k, v in asdict(self).items()
        }

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([self.to_mlflow()])


# ============================================================================
# Metrics (Output Results) - logged to MLflow as metrics
# ============================================================================


@dataclass
class Metrics:
    """Solve statistics and summary values of the computed fields."""

    n_dofs: int = 0
    n_temperature_dofs: int = 0
    n_elements: int = 0
    wall_time_seconds: float = 0.0
    residual: float = float("inf")  # ||Ax - b|| / ||b||
    T_min: float = 0.0
    T_max: float = 0.0
    T_bottom_mean: float = 0.0  # mean over the physical "bottom" group, independent of neumann_tags
    mean_heat_flow: float = 0.0  # area-averaged vertical heat flow (W/m²)

    def to_mlflow(self) -> dict:
        """Convert to MLflow-compatible dict (skip inf)."""
        return {k: v for k, v in asdict(self).items() if v != float("inf")}

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([self.to_mlflow()])


# ============================================================================
# Solution (Spatial Fields)
# ============================================================================


@dataclass
class Solution:
    """Temperature and heat flow fields on a mesh."""

    formulation: str
    u_space: LagrangeSpace
    temperature: NDArray[np.float64]  # coefficients in u_space
    heat_flow: NDArray[np.float64]  # cell averages, shape (noelms, 2)
    sigma_space: DiscontinuousVectorSpace | None = None
    sigma: NDArray[np.float64] | None = None  # coefficients in sigma_space
    metrics: Metrics = field(default_factory=Metrics)

    @property
    def mesh(self) -> Mesh2d:
        return self.u_space.mesh

    def temperature_at_vertices(self) -> NDArray[np.float64]:
        return self.u_space.vertex_values(self.temperature)

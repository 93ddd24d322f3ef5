"""
Settings for one terrain generation run.

Every option the engine understands is enumerated here and validated once,
before any graph is built. Field names are snake_case; the camelCase names
used by UI forms are accepted as aliases.
"""

import random
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class EdgeMode(str, Enum):
    """How edge cutting combines with the existing elevation."""

    ADD = "add"
    REPLACE = "replace"


class EdgeShape(str, Enum):
    """Falloff curve of edge cutting."""

    LINEAR = "linear"
    PARABOLIC = "parabolic"


class GenerationSettings(BaseModel):
    """Validated options for ``generate``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True,
                              extra="forbid", frozen=True)

    # Graph
    seed: int = Field(default_factory=lambda: random.randrange(10_000_000),
                      description="Seed for jitter, noise and tie-breaking")
    size: float = Field(default=1024.0, gt=0, description="Width and height of the map")
    node_size: float = Field(default=8.0, gt=0, description="Lattice spacing")
    node_randomness: float = Field(default=0.5, ge=0, le=1, description="Position jitter")

    # Height synthesis
    amplitude: float = Field(default=60.0, description="Height noise amplitude")
    feature_size: float = Field(default=300.0, gt=0, description="Height noise wavelength")
    base_height: float = Field(default=10.0, description="Constant added to the height field")
    warp_size: float = Field(default=150.0, gt=0, description="Warp noise wavelength")
    warp_effect: float = Field(default=30.0, ge=0, description="Warp displacement")

    # Edge cutting
    edge_height: float = Field(default=-30.0, description="Target elevation at the map edge")
    edge_percentage: float = Field(default=10.0, ge=0, description="Border width in half-percent of size")
    edge_mode: EdgeMode = Field(default=EdgeMode.ADD, description="Add to or replace elevation")
    edge_shape: EdgeShape = Field(default=EdgeShape.PARABOLIC, description="Border falloff curve")

    # Watershed
    plains_slope: float = Field(default=0.005, ge=0, description="Slope of filled dry depressions")
    lake_amount: float = Field(default=0.3, ge=0, le=1, description="Share of depressions kept as lakes")
    lake_size: float = Field(default=150.0, gt=0, description="Lake mask noise wavelength")
    lake_depth: float = Field(default=0.5, ge=0, le=1, description="Lake depth on the first pass")

    # Accumulation
    rainfall: float = Field(default=1.0, ge=0, description="Water per unit area")
    cohesion: float = Field(default=1.0, ge=0, description="Slope exponent for outflow splitting")
    slowing: float = Field(default=0.99, ge=0, le=1, description="Momentum retained per unit length")

    # Transport loop
    base_erosion: float = Field(default=0.02, ge=0, description="Erosion rate")
    momentum_erosion: float = Field(default=0.005, ge=0, description="Erosion rate per unit momentum")
    deposition: float = Field(default=0.5, ge=0, description="Deposition rate")
    deposition_depth_factor: float = Field(default=0.1, ge=0, description="Extra deposition per unit depth")
    iterations: int = Field(default=10, ge=0, description="Number of erosion iterations")
    erosion_step: float = Field(default=0.9, ge=0, description="Erosion weight multiplier per iteration")
    compensate_erosion: bool = Field(default=True, description="Normalise total erosion over iterations")
    skip_final_depose: bool = Field(default=False, description="Skip deposition after the last erosion")
    detail_amplitude: float = Field(default=5.0, description="Detail noise amplitude")
    detail_size: float = Field(default=50.0, gt=0, description="Detail noise wavelength")
    detail_step: float = Field(default=0.8, gt=0, description="Detail amplitude and size decay per iteration")

    @field_validator("seed", mode="before")
    @classmethod
    def _resolve_seed(cls, value: Optional[int]) -> int:
        if value is None:
            return random.randrange(10_000_000)
        return value

    @property
    def edge_distance(self) -> float:
        return self.size * 0.005 * self.edge_percentage

    @property
    def accumulation_slowing(self) -> float:
        """Momentum retained per node for the configured spacing."""
        return self.slowing ** self.node_size


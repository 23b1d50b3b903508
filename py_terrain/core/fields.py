"""
Elevation and moisture field synthesis.

This module implements:
- Layered OpenSimplex noise for elevation with ridged detail
- Moisture noise biased wetter below sea level
- Double-buffered neighbor-averaging smoothing over the cell graph
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np
import structlog
from opensimplex import OpenSimplex

from .noise import fbm
from .voronoi_graph import CellGraph
from ..utils.random import derive_seed

logger = structlog.get_logger()


@dataclass(frozen=True)
class FieldOptions:
    """Field synthesis options."""

    elevation_octaves: int = 5  # Octaves for the base elevation term
    ridge_octaves: int = 4  # Octaves for the rectified ridge term
    moisture_octaves: int = 4
    ridge_weight: float = 0.3  # Weight of |ridge term| added to elevation
    ridge_scale_divisor: float = 4.0  # Ridge term runs this much finer than the base
    elevation_bias: float = 0.15  # Subtracted so most of the map sits near or below sea level
    ocean_moisture_bonus: float = 0.5  # Added to moisture where raw elevation < 0
    smoothing_iterations: int = 2
    max_offset: float = 1000.0  # Noise-space offsets are drawn from [0, max_offset)

    def __post_init__(self):
        for name in ("elevation_octaves", "ridge_octaves", "moisture_octaves"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1")
        if self.ridge_scale_divisor <= 0:
            raise ValueError("ridge_scale_divisor must be positive")
        if self.smoothing_iterations < 0:
            raise ValueError("smoothing_iterations must not be negative")


@dataclass(frozen=True)
class FieldContext:
    """Per-run random state for field synthesis.

    Drawn once per generation so successive runs decorrelate, then passed
    explicitly into synthesize_fields().
    """

    noise_seed: int
    elevation_scale: float
    moisture_scale: float
    elevation_offset: Tuple[float, float]
    ridge_offset: Tuple[float, float]
    moisture_offset: Tuple[float, float]

    @classmethod
    def random(cls, rng: np.random.Generator, width: float, height: float,
               options: FieldOptions = FieldOptions()) -> "FieldContext":
        """Draw scales and offsets for a domain."""
        min_side = max(min(width, height), 1e-9)

        def offset():
            return (float(rng.uniform(0, options.max_offset)),
                    float(rng.uniform(0, options.max_offset)))

        return cls(
            noise_seed=derive_seed(rng),
            elevation_scale=min_side * (0.5 + float(rng.random()) * 0.5),
            moisture_scale=min_side * (0.5 + float(rng.random()) * 0.5),
            elevation_offset=offset(),
            ridge_offset=offset(),
            moisture_offset=offset(),
        )


def synthesize_fields(points: np.ndarray, context: FieldContext,
                      options: FieldOptions = FieldOptions()) -> Tuple[np.ndarray, np.ndarray]:
    """
    Generate raw elevation and moisture for every cell.

    Args:
        points: [n, 2] cell sites
        context: Per-run scales and offsets
        options: Field synthesis options

    Returns:
        Tuple of (elevations, moisture), both float64[n]
    """
    n_cells = len(points)
    elevations = np.zeros(n_cells, dtype=np.float64)
    moisture = np.zeros(n_cells, dtype=np.float64)

    noise = OpenSimplex(seed=context.noise_seed)
    ridge_scale = context.elevation_scale / options.ridge_scale_divisor

    for i in range(n_cells):
        x, y = points[i]

        h = fbm(noise, x, y, options.elevation_octaves,
                context.elevation_scale, context.elevation_offset)
        h += abs(fbm(noise, x, y, options.ridge_octaves,
                     ridge_scale, context.ridge_offset)) * options.ridge_weight
        elevations[i] = h - options.elevation_bias

        m = fbm(noise, x, y, options.moisture_octaves,
                context.moisture_scale, context.moisture_offset)
        if elevations[i] < 0:
            m += options.ocean_moisture_bonus
        moisture[i] = m

    if n_cells:
        logger.info("Fields synthesized", cells=n_cells,
                    ocean_fraction=round(float(np.mean(elevations <= 0)), 3),
                    elevation_min=round(float(elevations.min()), 3),
                    elevation_max=round(float(elevations.max()), 3))

    return elevations, moisture


def smooth_field(values: np.ndarray, graph: CellGraph, iterations: int = 2) -> np.ndarray:
    """
    Blur a per-cell field by neighbor averaging.

    Every iteration replaces each value with the mean of itself and its
    cached neighbors. Reads come only from the previous iteration's buffer,
    then the buffers swap.

    Args:
        values: float[n] field
        graph: Cell graph providing adjacency
        iterations: Number of averaging passes

    Returns:
        New smoothed array; the input is left untouched
    """
    current = np.array(values, dtype=np.float64)
    if len(current) == 0 or iterations <= 0:
        return current

    owners = np.repeat(np.arange(graph.cell_count), graph.degrees)
    counts = graph.degrees + 1.0
    following = np.empty_like(current)

    for _ in range(iterations):
        sums = np.bincount(owners, weights=current[graph.neighbor_indices],
                           minlength=graph.cell_count)
        np.divide(current + sums, counts, out=following)
        current, following = following, current

    return current

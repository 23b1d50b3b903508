"""
World generation pipeline.

Runs the stages in order, each on the previous stage's output:

    sample_points -> build_cell_graph -> synthesize_fields + smooth_field
                  -> fill_sinks -> Hydrology.run_full_simulation

and publishes the results as a read-only World.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import structlog

from ..config import settings
from ..utils.random import get_rng
from .drainage import DEFAULT_EPSILON, SEA_LEVEL, fill_sinks
from .fields import FieldContext, FieldOptions, smooth_field, synthesize_fields
from .hydrology import Hydrology, HydrologyOptions, RiverSegment, segments_to_array
from .point_sampler import SamplingOptions, sample_points
from .voronoi_graph import CellGraph, GridConfig, build_cell_graph

logger = structlog.get_logger()


@dataclass(frozen=True)
class WorldOptions:
    """Options for every generation stage."""

    sampling: SamplingOptions = field(default_factory=SamplingOptions)
    fields: FieldOptions = field(default_factory=FieldOptions)
    hydrology: HydrologyOptions = field(default_factory=HydrologyOptions)
    drainage_epsilon: float = DEFAULT_EPSILON


def _freeze(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


class World:
    """Generated terrain, read-only once constructed."""

    def __init__(self, config: GridConfig, graph: CellGraph, elevations: np.ndarray,
                 moisture: np.ndarray, hydrology: Hydrology):
        self.config = config
        self._graph = graph
        self.points = _freeze(graph.points)
        self.elevations = _freeze(elevations)
        self.moisture = _freeze(moisture)
        self.coast_distance = _freeze(hydrology.coast_distance)
        self.flow_directions = _freeze(hydrology.flow_directions)
        self.water_flux = _freeze(hydrology.water_flux)
        self.rivers: List[RiverSegment] = list(hydrology.rivers)

        for array in graph.cell_neighbors + graph.cell_polygons:
            _freeze(array)
        _freeze(graph.cell_border_flags)

    @property
    def width(self) -> float:
        return self.config.width

    @property
    def height(self) -> float:
        return self.config.height

    @property
    def cell_count(self) -> int:
        return len(self.points)

    def neighbors_of(self, cell_id: int) -> np.ndarray:
        return self._graph.neighbors_of(cell_id)

    def polygon_of(self, cell_id: int) -> np.ndarray:
        return self._graph.polygon_of(cell_id)

    def is_border(self, cell_id: int) -> bool:
        return bool(self._graph.cell_border_flags[cell_id])

    def find_cell(self, x: float, y: float) -> int:
        return self._graph.find_cell(x, y)

    def river_array(self) -> np.ndarray:
        """River segments as [k, 5] rows of x1, y1, x2, y2, flow."""
        return segments_to_array(self.rivers)

    def summary(self) -> Dict[str, Any]:
        """Headline statistics of the generated world."""
        if self.cell_count == 0:
            return {"cells": 0, "ocean_cells": 0, "land_cells": 0,
                    "river_segments": 0, "max_flow": 0.0}
        ocean = int(np.sum(self.elevations <= SEA_LEVEL))
        return {
            "cells": self.cell_count,
            "ocean_cells": ocean,
            "land_cells": self.cell_count - ocean,
            "river_segments": len(self.rivers),
            "max_flow": float(self.water_flux.max()),
        }


def generate_world(config: GridConfig, seed: Optional[int] = None,
                   options: Optional[WorldOptions] = None) -> World:
    """
    Generate a complete world.

    Degenerate sizes or counts give an empty world rather than an error.

    Args:
        config: Domain size and desired cell count
        seed: Random seed for reproducibility
        options: Stage options

    Returns:
        World with terrain, hydrology and the cell graph
    """
    options = options or WorldOptions()
    if config.cells_desired > settings.max_cells:
        raise ValueError(
            f"cells_desired={config.cells_desired} exceeds max_cells={settings.max_cells}"
        )

    log = logger.bind(width=config.width, height=config.height,
                      cells_desired=config.cells_desired, seed=seed)
    log.info("Generating world")
    rng = get_rng(seed)
    started = time.perf_counter()

    stage_started = time.perf_counter()
    points = sample_points(config.width, config.height, config.cells_desired,
                           rng, options.sampling)
    log.info("Stage complete", stage="points", elapsed=round(time.perf_counter() - stage_started, 4))

    stage_started = time.perf_counter()
    graph = build_cell_graph(points, config.width, config.height)
    log.info("Stage complete", stage="graph", elapsed=round(time.perf_counter() - stage_started, 4))

    stage_started = time.perf_counter()
    context = FieldContext.random(rng, config.width, config.height, options.fields)
    elevations, moisture = synthesize_fields(graph.points, context, options.fields)
    log.info("Stage complete", stage="fields", elapsed=round(time.perf_counter() - stage_started, 4))

    stage_started = time.perf_counter()
    elevations = smooth_field(elevations, graph, options.fields.smoothing_iterations)
    moisture = smooth_field(moisture, graph, options.fields.smoothing_iterations)
    log.info("Stage complete", stage="smoothing", elapsed=round(time.perf_counter() - stage_started, 4))

    stage_started = time.perf_counter()
    elevations = fill_sinks(elevations, graph.cell_neighbors, options.drainage_epsilon)
    log.info("Stage complete", stage="drainage", elapsed=round(time.perf_counter() - stage_started, 4))

    stage_started = time.perf_counter()
    hydrology = Hydrology(graph.points, elevations, graph.cell_neighbors, options.hydrology)
    hydrology.run_full_simulation()
    log.info("Stage complete", stage="rivers", elapsed=round(time.perf_counter() - stage_started, 4))

    world = World(config, graph, elevations, moisture, hydrology)
    log.info("World generated", elapsed=round(time.perf_counter() - started, 4),
             **world.summary())
    return world

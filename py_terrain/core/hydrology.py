"""
Hydrology system for river generation and water flow simulation.

This module implements:
- Hop distance from every cell to the nearest ocean cell
- Downhill flow direction per land cell
- Flow accumulation from high to low elevation
- River segment extraction above a flow threshold
"""

from collections import deque
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Sequence

import numpy as np
import structlog

from .drainage import SEA_LEVEL

logger = structlog.get_logger()

UNKNOWN_DISTANCE = -1
NO_TARGET = -1


@dataclass(frozen=True)
class HydrologyOptions:
    """Hydrology calculation options."""

    min_river_elevation: float = 0.05  # Cells at or below this never get a flow direction
    river_threshold: float = 50.0  # Accumulated flow a cell needs to emit a river segment

    def __post_init__(self):
        if self.river_threshold < 0:
            raise ValueError("river_threshold must not be negative")


class RiverSegment(NamedTuple):
    """One drainage link carrying enough flow to be drawn as river."""
    x1: float
    y1: float
    x2: float
    y2: float
    flow: float
    source_cell: int
    target_cell: int


def calculate_coast_distance(elevations: np.ndarray,
                             cell_neighbors: Sequence[np.ndarray],
                             sea_level: float = SEA_LEVEL) -> np.ndarray:
    """
    Breadth-first hop count from the nearest cell at or below sea level.

    Args:
        elevations: float[n] elevations
        cell_neighbors: Cached adjacency
        sea_level: Ocean threshold

    Returns:
        int32[n] distances, UNKNOWN_DISTANCE where no ocean cell is reachable
    """
    n_cells = len(elevations)
    distance = np.full(n_cells, UNKNOWN_DISTANCE, dtype=np.int32)

    ocean = np.flatnonzero(np.asarray(elevations) <= sea_level)
    distance[ocean] = 0
    queue = deque(int(cell) for cell in ocean)

    while queue:
        current = queue.popleft()
        next_distance = distance[current] + 1
        for neighbor in cell_neighbors[current]:
            if distance[neighbor] == UNKNOWN_DISTANCE:
                distance[neighbor] = next_distance
                queue.append(int(neighbor))

    return distance


def calculate_flow_directions(elevations: np.ndarray,
                              cell_neighbors: Sequence[np.ndarray],
                              coast_distance: np.ndarray,
                              min_elevation: float = 0.05) -> np.ndarray:
    """
    Pick the single downhill neighbor each land cell drains into.

    Only strictly lower neighbors qualify and the lowest wins. Between
    equally low candidates the one closer to the coast wins; unknown
    distance ranks behind every known one. Reads coast_distance, so it must
    be computed first.

    Args:
        elevations: float[n] drained elevations
        cell_neighbors: Cached adjacency
        coast_distance: Output of calculate_coast_distance()
        min_elevation: Cells at or below this get no direction

    Returns:
        int32[n] target cell per cell, NO_TARGET for endpoints
    """
    n_cells = len(elevations)
    flow_directions = np.full(n_cells, NO_TARGET, dtype=np.int32)

    # Unknown distances sort last
    rank = np.where(coast_distance == UNKNOWN_DISTANCE,
                    np.iinfo(np.int32).max, coast_distance)

    for cell_id in np.flatnonzero(elevations > min_elevation):
        best = NO_TARGET
        best_height = elevations[cell_id]
        best_rank = 0

        for neighbor in cell_neighbors[cell_id]:
            height = elevations[neighbor]
            if height < best_height or (
                best != NO_TARGET and height == best_height and rank[neighbor] < best_rank
            ):
                best = neighbor
                best_height = height
                best_rank = rank[neighbor]

        flow_directions[cell_id] = best

    return flow_directions


def accumulate_flux(elevations: np.ndarray, flow_directions: np.ndarray,
                    coast_distance: np.ndarray) -> np.ndarray:
    """
    Accumulate runoff along flow directions.

    Every cell starts with one unit. Cells are visited by elevation
    descending, then coast distance descending, so each cell has received
    all upstream flow before passing its total on.

    Args:
        elevations: float[n] drained elevations
        flow_directions: Output of calculate_flow_directions()
        coast_distance: Output of calculate_coast_distance()

    Returns:
        float64[n] accumulated flow
    """
    n_cells = len(elevations)
    water_flux = np.ones(n_cells, dtype=np.float64)

    order = np.lexsort((-coast_distance.astype(np.int64), -elevations))

    for cell_id in order:
        target = flow_directions[cell_id]
        if target != NO_TARGET and elevations[cell_id] > SEA_LEVEL:
            water_flux[target] += water_flux[cell_id]

    return water_flux


def extract_river_segments(points: np.ndarray, elevations: np.ndarray,
                           flow_directions: np.ndarray, water_flux: np.ndarray,
                           threshold: float = 50.0) -> List[RiverSegment]:
    """
    Emit one segment per land cell whose flow exceeds the threshold.

    Segments are not chained into polylines.

    Returns:
        List of RiverSegment in cell order
    """
    mask = (water_flux > threshold) & (elevations > SEA_LEVEL) & (flow_directions != NO_TARGET)

    segments = []
    for cell_id in np.flatnonzero(mask):
        target = int(flow_directions[cell_id])
        x1, y1 = points[cell_id]
        x2, y2 = points[target]
        segments.append(RiverSegment(
            x1=float(x1), y1=float(y1), x2=float(x2), y2=float(y2),
            flow=float(water_flux[cell_id]),
            source_cell=int(cell_id), target_cell=target,
        ))
    return segments


def segments_to_array(segments: Sequence[RiverSegment]) -> np.ndarray:
    """Flatten segments into [k, 5] rows of x1, y1, x2, y2, flow."""
    if not segments:
        return np.empty((0, 5), dtype=np.float64)
    return np.array([segment[:5] for segment in segments], dtype=np.float64)


class Hydrology:
    """Handles water flow simulation and river generation."""

    def __init__(self, points: np.ndarray, elevations: np.ndarray,
                 cell_neighbors: Sequence[np.ndarray],
                 options: Optional[HydrologyOptions] = None):
        """
        Initialize hydrology system.

        Args:
            points: [n, 2] cell sites
            elevations: Drained elevations (after fill_sinks)
            cell_neighbors: Cached adjacency
            options: Hydrology calculation options
        """
        self.points = points
        self.elevations = np.asarray(elevations, dtype=np.float64)
        self.cell_neighbors = cell_neighbors
        self.options = options or HydrologyOptions()

        self.coast_distance = None
        self.flow_directions = None
        self.water_flux = None
        self.rivers: List[RiverSegment] = []

    def run_full_simulation(self) -> List[RiverSegment]:
        """
        Run all hydrology passes in dependency order.

        Coast distance feeds the flow direction tie-break, and both feed the
        accumulation order, so the sequence is fixed.
        """
        logger.info("Starting hydrology simulation", cells=len(self.elevations))

        self.coast_distance = calculate_coast_distance(self.elevations, self.cell_neighbors)
        self.flow_directions = calculate_flow_directions(
            self.elevations, self.cell_neighbors, self.coast_distance,
            self.options.min_river_elevation,
        )
        self.water_flux = accumulate_flux(self.elevations, self.flow_directions,
                                          self.coast_distance)
        self.rivers = extract_river_segments(
            self.points, self.elevations, self.flow_directions, self.water_flux,
            self.options.river_threshold,
        )

        logger.info("Hydrology simulation completed",
                    draining_cells=int(np.sum(self.flow_directions != NO_TARGET)),
                    unreached_cells=int(np.sum(self.coast_distance == UNKNOWN_DISTANCE)),
                    max_flow=float(self.water_flux.max()) if len(self.water_flux) else 0.0,
                    river_segments=len(self.rivers))
        return self.rivers

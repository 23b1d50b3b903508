"""
Depression filling so every land cell can drain to the sea.

A priority-flood from the coastline: cells are expanded lowest first, and
any unvisited neighbor lying below the cell that reaches it is raised to
just above that cell.
"""

from typing import Sequence

import numpy as np
import structlog

from .priority_queue import PriorityQueue

logger = structlog.get_logger()

SEA_LEVEL = 0.0
DEFAULT_EPSILON = 1e-5


def fill_sinks(elevations: np.ndarray, cell_neighbors: Sequence[np.ndarray],
               epsilon: float = DEFAULT_EPSILON,
               sea_level: float = SEA_LEVEL) -> np.ndarray:
    """
    Remove pits above sea level.

    Seeds the queue with every cell at or below sea level, then grows a
    visited frontier in order of increasing elevation. A neighbor lower than
    the cell expanding into it is raised to that cell's elevation plus
    epsilon, which keeps a strict gradient back toward the coast. Cells no
    seed can reach keep their raw elevation.

    Args:
        elevations: float[n] elevations
        cell_neighbors: Cached adjacency
        epsilon: Strictly positive rise applied to filled cells
        sea_level: Seed threshold

    Returns:
        New array of filled elevations
    """
    if epsilon <= 0:
        raise ValueError("epsilon must be strictly positive")

    filled = np.array(elevations, dtype=np.float64)
    n_cells = len(filled)
    if n_cells == 0:
        return filled

    queue = PriorityQueue(key=lambda cell: filled[cell])
    visited = np.zeros(n_cells, dtype=bool)

    for cell in np.flatnonzero(filled <= sea_level):
        queue.push(int(cell))
        visited[cell] = True

    seeds = len(queue)
    raised = 0

    while queue:
        current = queue.pop()
        current_height = filled[current]

        for neighbor in cell_neighbors[current]:
            if visited[neighbor]:
                continue

            if filled[neighbor] < current_height:
                filled[neighbor] = current_height + epsilon
                raised += 1

            visited[neighbor] = True
            queue.push(int(neighbor))

    unreached = n_cells - int(visited.sum())
    logger.info("Sinks filled", seeds=seeds, cells_raised=raised,
                unreached_cells=unreached)
    if seeds == 0:
        logger.warning("No cells at or below sea level, drainage left unchanged")

    return filled

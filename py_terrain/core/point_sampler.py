"""Blue-noise point sampling for the cell grid."""

import math
from dataclasses import dataclass

import numpy as np
import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class SamplingOptions:
    """Point sampling options."""

    separation_factor: float = 0.85  # Fraction of the ideal spacing kept as minimum distance
    max_attempts: int = 10  # Candidates tried around each active point

    def __post_init__(self):
        if self.separation_factor <= 0:
            raise ValueError("separation_factor must be positive")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")


def min_separation(width: float, height: float, target_count: int,
                   separation_factor: float = 0.85) -> float:
    """
    Minimum distance between sampled points for a target density.

    Returns 0.0 for degenerate input.
    """
    if width <= 0 or height <= 0 or target_count <= 0:
        return 0.0
    return math.sqrt((width * height) / target_count) * separation_factor


def sample_points(width: float, height: float, target_count: int,
                  rng: np.random.Generator,
                  options: SamplingOptions = SamplingOptions()) -> np.ndarray:
    """
    Generate Poisson-disk distributed points inside the domain.

    Dart throwing around an active list: every accepted point spawns up to
    ``max_attempts`` candidates in the annulus [r, 2r) around itself, and a
    candidate is accepted when no existing point lies closer than r. A
    background grid with cell size r / sqrt(2) holds at most one point per
    cell, so only the surrounding 5x5 block needs checking.

    Args:
        width: Domain width
        height: Domain height
        target_count: Desired number of points (realized count is approximate)
        rng: Random generator
        options: Sampling options

    Returns:
        Array of [x, y] point coordinates in [0, width) x [0, height)
    """
    radius = min_separation(width, height, target_count, options.separation_factor)
    if radius <= 0:
        logger.info("Degenerate sampling domain", width=width, height=height,
                    target_count=target_count)
        return np.empty((0, 2), dtype=np.float64)

    cell_size = radius / math.sqrt(2)
    grid_w = int(math.ceil(width / cell_size))
    grid_h = int(math.ceil(height / cell_size))
    grid = np.full((grid_h, grid_w), -1, dtype=np.int64)
    radius_sq = radius * radius

    points = []
    active = []

    def grid_coords(x, y):
        return min(int(y / cell_size), grid_h - 1), min(int(x / cell_size), grid_w - 1)

    def fits(x, y):
        gy, gx = grid_coords(x, y)
        for j in range(max(gy - 2, 0), min(gy + 3, grid_h)):
            for i in range(max(gx - 2, 0), min(gx + 3, grid_w)):
                idx = grid[j, i]
                if idx >= 0:
                    px, py = points[idx]
                    if (px - x) ** 2 + (py - y) ** 2 < radius_sq:
                        return False
        return True

    def accept(x, y):
        gy, gx = grid_coords(x, y)
        grid[gy, gx] = len(points)
        points.append((x, y))
        active.append(len(points) - 1)

    accept(rng.uniform(0, width), rng.uniform(0, height))

    while active:
        slot = int(rng.integers(len(active)))
        ox, oy = points[active[slot]]
        placed = False

        for _ in range(options.max_attempts):
            angle = rng.uniform(0, 2 * math.pi)
            distance = rng.uniform(radius, 2 * radius)
            x = ox + math.cos(angle) * distance
            y = oy + math.sin(angle) * distance
            if 0 <= x < width and 0 <= y < height and fits(x, y):
                accept(x, y)
                placed = True
                break

        if not placed:
            # Swap-remove keeps removal O(1)
            active[slot] = active[-1]
            active.pop()

    logger.info("Points sampled", target_count=target_count,
                realized_count=len(points), min_distance=round(radius, 3))

    return np.array(points, dtype=np.float64)

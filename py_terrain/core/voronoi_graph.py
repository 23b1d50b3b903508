"""Voronoi cell graph construction."""

from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Tuple

import numpy as np
import structlog
from scipy.spatial import Voronoi, cKDTree

logger = structlog.get_logger()

# Fraction of the longer side that diagram sites are kept away from the edges
EDGE_MARGIN = 1e-7


class GridConfig(NamedTuple):
    """Configuration for grid generation."""
    width: float
    height: float
    cells_desired: int


@dataclass
class CellGraph:
    """Cell adjacency and polygon cache for a sampled point set.

    Built once by build_cell_graph(). Every later stage reads the cached
    neighbor lists instead of going back to the Voronoi diagram.
    """
    width: float
    height: float
    points: np.ndarray                 # points[i] = [x, y] cell site

    cell_neighbors: List[np.ndarray]   # cell_neighbors[i] = sorted neighbor cell IDs
    cell_polygons: List[np.ndarray]    # cell_polygons[i] = [k, 2] counter-clockwise ring
    cell_border_flags: np.ndarray      # 1 if the cell touches the domain edge

    # Flattened adjacency, derived from cell_neighbors
    neighbor_indices: np.ndarray = field(init=False, repr=False)
    neighbor_offsets: np.ndarray = field(init=False, repr=False)
    _tree: Optional[cKDTree] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        degrees = np.array([len(n) for n in self.cell_neighbors], dtype=np.int64)
        self.neighbor_offsets = np.zeros(len(degrees) + 1, dtype=np.int64)
        np.cumsum(degrees, out=self.neighbor_offsets[1:])
        if len(degrees):
            self.neighbor_indices = np.concatenate(self.cell_neighbors).astype(np.int64)
        else:
            self.neighbor_indices = np.empty(0, dtype=np.int64)

    @property
    def cell_count(self) -> int:
        return len(self.points)

    @property
    def degrees(self) -> np.ndarray:
        """Number of neighbors per cell."""
        return np.diff(self.neighbor_offsets)

    def neighbors_of(self, cell_id: int) -> np.ndarray:
        return self.cell_neighbors[cell_id]

    def polygon_of(self, cell_id: int) -> np.ndarray:
        return self.cell_polygons[cell_id]

    def find_cell(self, x: float, y: float) -> int:
        """
        Find the cell containing the given coordinates.

        The nearest site is by definition the Voronoi cell that contains the
        point, so a k-d tree query is exact.

        Returns:
            Cell index, or -1 for an empty graph
        """
        if self.cell_count == 0:
            return -1
        if self._tree is None:
            self._tree = cKDTree(self.points)
        _, idx = self._tree.query([x, y])
        return int(idx)


def get_mirrored_points(points: np.ndarray, width: float, height: float) -> np.ndarray:
    """
    Reflect every point across the four domain edges.

    Reflected sites are always farther from any in-domain location than
    their originals, and each original's cell is bounded by the bisectors
    with its own reflections, which are exactly the domain edges. The
    original cells therefore come out already clipped to the rectangle.

    Args:
        points: [n, 2] original points
        width: Domain width
        height: Domain height

    Returns:
        [4n, 2] reflected points (left, right, top, bottom)
    """
    x = points[:, 0]
    y = points[:, 1]
    return np.vstack([
        np.column_stack([-x, y]),
        np.column_stack([2 * width - x, y]),
        np.column_stack([x, -y]),
        np.column_stack([x, 2 * height - y]),
    ])


def build_cell_connectivity(vor: Voronoi, n_points: int) -> Tuple[List[np.ndarray], np.ndarray]:
    """
    Build cell neighbor lists from scipy Voronoi ridges.

    Args:
        vor: scipy Voronoi diagram over original + reflected points
        n_points: Number of original points (reflections follow them)

    Returns:
        Tuple of (cell_neighbors, border_flags)
    """
    ridges = np.asarray(vor.ridge_points, dtype=np.int64)
    border_flags = np.zeros(n_points, dtype=np.uint8)

    inner = ridges[(ridges[:, 0] < n_points) & (ridges[:, 1] < n_points)]
    # A ridge with a reflected site is a segment of the domain boundary
    outer = ridges[(ridges[:, 0] < n_points) != (ridges[:, 1] < n_points)]
    border_flags[outer[outer < n_points]] = 1

    # Both directions, sorted by (cell, neighbor) with duplicates removed
    pairs = np.vstack([inner, inner[:, ::-1]])
    if len(pairs):
        pairs = np.unique(pairs, axis=0)

    counts = np.bincount(pairs[:, 0], minlength=n_points)
    cell_neighbors = [
        chunk.astype(np.int32)
        for chunk in np.split(pairs[:, 1], np.cumsum(counts)[:-1])
    ]

    return cell_neighbors, border_flags


def build_cell_polygons(vor: Voronoi, points: np.ndarray,
                        width: float, height: float) -> List[np.ndarray]:
    """
    Build the boundary polygon of every original cell.

    Cells are convex and contain their site, so sorting vertices by angle
    around the site gives a counter-clockwise ring.

    Args:
        vor: scipy Voronoi diagram over original + reflected points
        points: [n, 2] original points
        width: Domain width
        height: Domain height

    Returns:
        List of [k, 2] vertex arrays, one per cell
    """
    polygons = []
    for i, site in enumerate(points):
        region = vor.regions[vor.point_region[i]]
        if not region or -1 in region:
            logger.warning("Cell has no bounded region", cell=i)
            polygons.append(np.empty((0, 2), dtype=np.float64))
            continue

        vertices = vor.vertices[region]
        angles = np.arctan2(vertices[:, 1] - site[1], vertices[:, 0] - site[0])
        vertices = vertices[np.argsort(angles)]

        # Bisectors with reflections sit exactly on the edges; clamp float noise
        vertices[:, 0] = np.clip(vertices[:, 0], 0.0, width)
        vertices[:, 1] = np.clip(vertices[:, 1], 0.0, height)
        polygons.append(vertices)

    return polygons


def build_cell_graph(points: np.ndarray, width: float, height: float) -> CellGraph:
    """
    Build the cell graph for a point set.

    Args:
        points: [n, 2] point coordinates inside the domain
        width: Domain width
        height: Domain height

    Returns:
        CellGraph with cached adjacency and polygons
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    n_points = len(points)

    if n_points == 0:
        logger.info("Empty point set, building empty cell graph")
        return CellGraph(
            width=width,
            height=height,
            points=points,
            cell_neighbors=[],
            cell_polygons=[],
            cell_border_flags=np.zeros(0, dtype=np.uint8),
        )

    # A site on an edge coincides with its own reflection and Qhull merges
    # the pair, so diagram sites are kept a hair inside the rectangle
    margin = EDGE_MARGIN * max(width, height)
    sites = np.column_stack([
        np.clip(points[:, 0], margin, width - margin),
        np.clip(points[:, 1], margin, height - margin),
    ])

    all_points = np.vstack([sites, get_mirrored_points(sites, width, height)])
    vor = Voronoi(all_points)

    logger.info("Voronoi diagram calculated",
                vertices=len(vor.vertices), ridges=len(vor.ridge_points))

    cell_neighbors, border_flags = build_cell_connectivity(vor, n_points)
    cell_polygons = build_cell_polygons(vor, sites, width, height)

    graph = CellGraph(
        width=width,
        height=height,
        points=points,
        cell_neighbors=cell_neighbors,
        cell_polygons=cell_polygons,
        cell_border_flags=border_flags,
    )

    logger.info("Cell graph built", cells=n_points,
                border_cells=int(border_flags.sum()),
                mean_degree=round(float(graph.degrees.mean()), 2))
    return graph

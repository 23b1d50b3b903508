"""
Core terrain generation functionality.
"""

from .voronoi_graph import GridConfig, CellGraph, build_cell_graph
from .point_sampler import SamplingOptions, sample_points
from .fields import FieldContext, FieldOptions, synthesize_fields, smooth_field
from .drainage import fill_sinks
from .hydrology import Hydrology, HydrologyOptions, RiverSegment
from .world import World, WorldOptions, generate_world

__all__ = ['GridConfig', 'CellGraph', 'build_cell_graph',
           'SamplingOptions', 'sample_points',
           'FieldContext', 'FieldOptions', 'synthesize_fields', 'smooth_field',
           'fill_sinks',
           'Hydrology', 'HydrologyOptions', 'RiverSegment',
           'World', 'WorldOptions', 'generate_world']

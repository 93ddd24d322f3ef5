"""
Core terrain hydrology functionality.
"""

from .node_graph import Coordinate, Node, NodeGraph
from .hydrology import Hydrology, HydrologyOptions
from .erosion import Erosion, SedimentLedger, erosion_compensation
from .invariants import InvariantError, check_world
from .world import World
from .generator import GenerationStage, generate, generate_stages

__all__ = ['Coordinate', 'Node', 'NodeGraph', 'Hydrology', 'HydrologyOptions',
           'Erosion', 'SedimentLedger', 'erosion_compensation', 'InvariantError',
           'check_world', 'World', 'GenerationStage', 'generate', 'generate_stages']

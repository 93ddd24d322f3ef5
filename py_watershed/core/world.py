"""World: a node graph plus the sediment ledger of one generation run."""

from typing import Dict, List, Optional, Sequence

import structlog

from .erosion import Erosion, SedimentLedger
from .height_field import cut_edge, heighten
from .hydrology import Hydrology, HydrologyOptions
from .node_graph import Coordinate, Node, NodeGraph

logger = structlog.get_logger()


class World:
    """
    Owns the graph for the duration of a run and exposes every pass over it.

    All passes mutate the graph in place and run to completion; callers may
    observe the world between passes.
    """

    def __init__(self, graph: NodeGraph, options: Optional[HydrologyOptions] = None,
                 strict: bool = False):
        self.graph = graph
        self.sediment = SedimentLedger()
        self.strict = strict
        self.hydrology = Hydrology(graph, options, self.sediment, strict)
        self.erosion = Erosion(graph, self.sediment, strict)
        self.shore_levels: Dict[Coordinate, float] = {}

    @property
    def options(self) -> HydrologyOptions:
        return self.hydrology.options

    def heighten(self, seed: int, amplitude: float, feature_size: float, base: float = 0.0,
                 warp_size: float = 1.0, warp_effect: float = 0.0) -> None:
        heighten(self.graph, seed, amplitude, feature_size, base, warp_size, warp_effect)

    def cut_edge(self, base_height: float, distance: float, additive: bool = False,
                 parabolic: bool = False) -> None:
        cut_edge(self.graph, base_height, distance, additive, parabolic)

    def land(self, base_erosion: float = 0.0, momentum_erosion: float = 0.0,
             lake_depth: Optional[float] = None) -> List[Node]:
        return self.hydrology.land(base_erosion, momentum_erosion, lake_depth)

    def drain(self, nodes: Sequence[Node], rainfall: Optional[float] = None,
              cohesion: Optional[float] = None, slowing: Optional[float] = None) -> None:
        self.hydrology.drain(nodes, rainfall, cohesion, slowing)

    def erode(self, nodes: Sequence[Node], base_erosion: float,
              momentum_erosion: float) -> float:
        return self.erosion.erode(nodes, base_erosion, momentum_erosion)

    def depose(self, nodes: Sequence[Node], amount: float, depth_factor: float) -> float:
        return self.erosion.depose(nodes, amount, depth_factor)

    def amplify_water(self) -> Dict[Coordinate, float]:
        """Compute and keep shoreline water levels for renderers."""
        self.shore_levels = self.hydrology.shore_levels()
        return self.shore_levels

    def log_sediment(self) -> None:
        logger.info("Sediment balance",
                    created=self.sediment.created,
                    deposited=self.sediment.deposited,
                    lost=self.sediment.lost,
                    balance=self.sediment.balance)

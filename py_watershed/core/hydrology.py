"""
Hydrology system for drainage, lakes and discharge.

This module implements:
- Priority flood from the map boundary that settles node elevations,
  fills depressions into lakes and seas and builds the drainage DAG
- Bounded erosion applied while the flood advances
- Flow accumulation of rainfall down the drainage DAG
- Shoreline water levels for renderers
"""

import heapq
import itertools
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import structlog

from .erosion import SedimentLedger, clamp
from .invariants import report_anomaly
from .lattice_hash import hash32, randf
from .node_graph import Coordinate, Node, NodeGraph
from .noise import FractalNoise

logger = structlog.get_logger()

# Tie-breaking offset scale; keeps flood order strict without visible terraces
TIE_EPSILON = 1e-7

LAKE_OCTAVES = 8
LAKE_SALT = 23790
FLOOD_SALT = 4890
PLAINS_SALT = 8429


@dataclass
class HydrologyOptions:
    """Watershed and accumulation parameters."""
    plains_slope: float = 0.005  # Rise per unit distance of filled dry depressions
    lake_amount: float = 0.3  # 0 keeps depressions dry, 1 floods nearly all of them
    lake_size: float = 150.0  # Wavelength of the lake mask noise
    lake_depth: float = 0.5  # Fraction of a depression left as open water
    rainfall: float = 1.0  # Water added per unit area
    cohesion: float = 1.0  # Exponent applied to slopes when splitting outflow
    slowing: float = 0.95  # Momentum retained per node


class Hydrology:
    """Builds drainage and discharge on a node graph."""

    def __init__(self, graph: NodeGraph, options: Optional[HydrologyOptions] = None,
                 ledger: Optional[SedimentLedger] = None, strict: bool = False):
        """
        Initialize hydrology system.

        Args:
            graph: Node graph with base heights populated
            options: Watershed and accumulation options
            ledger: Sediment ledger credited by in-flood erosion
            strict: Raise on invariant violations instead of logging them
        """
        self.graph = graph
        self.options = options or HydrologyOptions()
        self.ledger = ledger if ledger is not None else SedimentLedger()
        self.strict = strict

    def land(self, base_erosion: float = 0.0, momentum_erosion: float = 0.0,
             lake_depth: Optional[float] = None) -> List[Node]:
        """
        Priority flood from every sink.

        Nodes are taken from the fringe lowest first. Each newly reached
        neighbour is eroded toward the node that reached it, then raised to
        just above that node if it lies lower: as sea when the reaching node
        is sea, otherwise as a lake or a filled plain depending on the lake
        mask. Every node not yet taken records each taken neighbour as a
        drain, so drainage always points to earlier nodes.

        Args:
            base_erosion: Erosion rate independent of momentum
            momentum_erosion: Additional erosion rate per unit of momentum
            lake_depth: Override of ``options.lake_depth`` for this pass

        Returns:
            Nodes in the order they were finalized (non-decreasing height)
        """
        lake_depth = self.options.lake_depth if lake_depth is None else lake_depth
        lake_noise = FractalNoise(hash32(self.graph.seed ^ LAKE_SALT), LAKE_OCTAVES,
                                  1 / self.options.lake_size)

        counter = itertools.count()
        fringe = []
        visited = set()
        processed = set()
        order = []

        for node in self.graph.sinks():
            # Sinks below the datum become sea up to it
            node.water_height = max(0.0, -node.base_height)
            node.drains = []
            heapq.heappush(fringe, (node.height(), next(counter), node))
            visited.add(node.id)

        eroded = 0.0
        while fringe:
            _, _, node = heapq.heappop(fringe)
            order.append(node)
            processed.add(node.id)

            for neighbour in node.neighbours:
                if neighbour.id not in visited:
                    eroded += self._erode_into(node, neighbour, base_erosion, momentum_erosion)

                    neighbour.water_height = 0.0
                    neighbour.sea = False
                    neighbour.drains = []
                    if neighbour.height() < node.height():
                        self._fill(node, neighbour, lake_noise, lake_depth)

                    heapq.heappush(fringe, (neighbour.height(), next(counter), neighbour))
                    visited.add(neighbour.id)

                if neighbour.id not in processed and not neighbour.is_sink():
                    neighbour.drains.append(node.id)

        self.ledger.created += eroded
        logger.info("Land pass completed",
                    nodes=len(order),
                    sea=sum(1 for node in order if node.is_sea()),
                    lakes=sum(1 for node in order if node.is_water_body() and not node.is_sea()),
                    eroded=eroded)
        return order

    def _erode_into(self, node: Node, neighbour: Node, base_erosion: float,
                    momentum_erosion: float) -> float:
        """Lower ``neighbour`` toward ``node`` in proportion to the discharge at ``node``."""
        dh = neighbour.base_height - node.height()
        if dh <= 0 or neighbour.is_water_body() or not (base_erosion or momentum_erosion):
            return 0.0

        water = 1.0 if node.is_sink() else node.water
        erosion = (math.sqrt(water) * (base_erosion + momentum_erosion * neighbour.momentum)
                   / neighbour.size)
        if not math.isfinite(erosion) or erosion < 0:
            report_anomaly(self.strict, "Invalid erosion coefficient", node=neighbour.id,
                           erosion=erosion, water=water, momentum=neighbour.momentum)
            return 0.0

        floor = node.height()
        new_height = clamp(floor + dh / (1 + erosion), floor, neighbour.base_height)
        eroded = neighbour.base_height - new_height
        neighbour.change_ground(-eroded)
        neighbour.sediment += eroded
        return eroded

    def _fill(self, node: Node, neighbour: Node, lake_noise: FractalNoise,
              lake_depth: float) -> None:
        """Raise a neighbour lying below ``node`` to just above it."""
        seed = self.graph.seed
        surface = node.height() + TIE_EPSILON * (2 + randf(neighbour.id, seed ^ FLOOD_SALT))

        if node.is_sea():
            neighbour.sea = True
            neighbour.water_height = surface - neighbour.base_height
            return

        x, y = neighbour.position
        fraction = clamp(lake_noise.noise(x, y) + self.options.lake_amount * 2 - 1, 0.0, 1.0)
        fraction *= lake_depth
        if fraction > 0:
            # Part of the depression is filled with ground, the rest is open water
            neighbour.base_height = neighbour.base_height * fraction + surface * (1 - fraction)
            neighbour.water_height = surface - neighbour.base_height
        else:
            neighbour.base_height = (
                node.height()
                + self.options.plains_slope * neighbour.size
                + TIE_EPSILON * (2 + randf(neighbour.id, seed ^ PLAINS_SALT))
            )

    def drain(self, nodes: Sequence[Node], rainfall: Optional[float] = None,
              cohesion: Optional[float] = None, slowing: Optional[float] = None) -> None:
        """
        Accumulate rainfall down the drainage DAG.

        Nodes are processed in reverse finalized order, so a node's discharge
        is complete before it is split among its drains. Water bodies split
        evenly; dry nodes split by ``drop ** cohesion``.

        Args:
            nodes: Finalized order returned by ``land``
            rainfall: Water per unit area, defaults to the options value
            cohesion: Slope exponent, defaults to the options value
            slowing: Momentum retention, defaults to the options value
        """
        rainfall = self.options.rainfall if rainfall is None else rainfall
        cohesion = self.options.cohesion if cohesion is None else cohesion
        slowing = self.options.slowing if slowing is None else slowing

        for node in nodes:
            node.water = 0.0
            node.outflow = []
            node.momentum = 0.0

        for node in reversed(nodes):
            if node.is_sink():
                continue
            node.water += rainfall * node.size * node.size

            drains = self.graph.drains(node)
            if drains is None:
                continue

            height = node.height()
            weights = []
            for drain in drains:
                dh = height - drain.height()
                if dh < 0:
                    report_anomaly(self.strict, "Drain order violated", node=node.id,
                                   drain=drain.id, dh=dh)
                    dh = 0.0
                node.momentum += dh
                weights.append(1.0 if node.is_water_body() else dh ** cohesion)
            node.momentum *= slowing

            total = sum(weights)
            if not total > 0 or not math.isfinite(total):
                # Flat ground: split evenly rather than dividing by zero
                weights = [1.0] * len(drains)
                total = float(len(drains))

            node.outflow = [(drain, weight / total) for drain, weight in zip(drains, weights)]
            for drain, fraction in node.outflow:
                drain.water += node.water * fraction
                drain.momentum += node.momentum * fraction

        logger.info("Drain pass completed",
                    discharge=sum(node.water for node in nodes if node.is_sink()))

    def shore_levels(self) -> Dict[Coordinate, float]:
        """
        Water level to draw at each dry node touching a water body.

        Returns:
            Mapping of node id to ``min(height, mean wet neighbour surface)``
        """
        levels = {}
        for node in self.graph.all():
            if node.is_water_body():
                continue
            wet = [n for n in node.neighbours if n.is_water_body()]
            if wet:
                levels[node.id] = min(node.height(), sum(n.height() for n in wet) / len(wet))
        return levels

"""Triangular lattice node graph for terrain hydrology."""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

import numpy as np
import structlog

from .lattice_hash import randf

logger = structlog.get_logger()

TRIHEIGHT = 0.866

# Axial offsets of the six lattice neighbours
NEIGHBOUR_OFFSETS = ((1, 0), (-1, 0), (0, 1), (0, -1), (1, -1), (-1, 1))

# Standing water shallower than this is float noise, not a water body
WATER_EPSILON = 1e-8


class Coordinate(NamedTuple):
    """Axial integer coordinate of a lattice cell."""
    x: int
    y: int

    def offset(self, dx: int, dy: int) -> "Coordinate":
        return Coordinate(self.x + dx, self.y + dy)


@dataclass(eq=False)
class Node:
    """One elevation sample of the lattice.

    ``water_height`` is the depth of standing water above ``base_height``;
    the surface of a node is ``height()``.
    """
    id: Coordinate
    position: Tuple[float, float]
    size: float
    base_height: float = 0.0
    water_height: float = 0.0
    sink: bool = False
    sea: bool = False

    # Per-pass flow state
    water: float = 0.0
    momentum: float = 0.0
    sediment: float = 0.0
    outflow: List[Tuple["Node", float]] = field(default_factory=list)
    drains: List[Coordinate] = field(default_factory=list)

    neighbours: List["Node"] = field(default_factory=list, repr=False)

    def height(self) -> float:
        return self.base_height + self.water_height

    def water_volume(self) -> float:
        return max(self.water_height, 0.0)

    def is_sink(self) -> bool:
        return self.sink

    def is_sea(self) -> bool:
        return self.sea or self.sink

    def is_water_body(self) -> bool:
        return self.is_sea() or self.water_height > WATER_EPSILON

    def change_ground(self, ground: float) -> None:
        self.base_height += ground


class NodeGraph:
    """
    Owns every lattice node and its fixed adjacency.

    Rows are horizontally offset by half a cell per row, so the left edge of
    row ``y`` sits at axial ``x = -(y // 2)``. Boundary cells are permanent
    sinks.
    """

    def __init__(self, seed: int, size: Tuple[float, float], node_size: float = 8,
                 node_randomness: float = 0.0):
        """
        Build the lattice.

        Args:
            seed: Seed for deterministic position jitter
            size: (width, height) of the map in world units
            node_size: Lattice spacing
            node_randomness: Jitter amount in [0, 1] (fraction of spacing)
        """
        width, height = size
        if width <= 0 or height <= 0:
            raise ValueError(f"Map size must be positive, got {size}")
        if node_size <= 0:
            raise ValueError(f"Node size must be positive, got {node_size}")
        if not 0 <= node_randomness <= 1:
            raise ValueError(f"Node randomness must be in [0, 1], got {node_randomness}")

        self.seed = seed
        self.size = (float(width), float(height))
        self.node_size = node_size
        self.nodes: Dict[Coordinate, Node] = {}

        self._columns = width / node_size
        self._top_y = 0
        self._bottom_y = math.ceil(height / node_size / TRIHEIGHT)

        for y in range(self._top_y, self._bottom_y + 1):
            x = self._left_x(y)
            while x <= self._right_x(y):
                coord = Coordinate(x, y)
                angle = randf(coord, 930 * seed) * 2 * math.pi
                r = randf(coord, 872 * seed)
                radius = (1 - r * r) * node_randomness / 2
                position = (
                    (x + y / 2 + math.cos(angle) * radius) * node_size,
                    (y * TRIHEIGHT + math.sin(angle) * radius) * node_size,
                )
                self.nodes[coord] = Node(coord, position, node_size)
                x += 1

        for node in self.sinks():
            node.sink = True
        for node in self.nodes.values():
            node.neighbours = self.neighbours(node)

        logger.info("Node graph built", nodes=len(self.nodes),
                    rows=self._bottom_y + 1, node_size=node_size, seed=seed)

    def _left_x(self, y: int) -> int:
        return -(y // 2)

    def _right_x(self, y: int) -> float:
        return self._left_x(y) + self._columns

    def __len__(self) -> int:
        return len(self.nodes)

    def get_node(self, coord: Coordinate) -> Optional[Node]:
        return self.nodes.get(coord)

    def all(self) -> Iterator[Node]:
        return iter(self.nodes.values())

    def sinks(self) -> List[Node]:
        """Enumerate boundary nodes: top and bottom rows plus both ends of every row."""
        coords = []
        for y in (self._top_y, self._bottom_y):
            x = self._left_x(y)
            while x <= self._right_x(y):
                coords.append(Coordinate(x, y))
                x += 1
        for y in range(self._top_y + 1, self._bottom_y):
            coords.append(Coordinate(self._left_x(y), y))
            coords.append(Coordinate(int(math.floor(self._right_x(y))), y))

        sinks = []
        seen = set()
        for coord in coords:
            node = self.nodes.get(coord)
            if node is not None and coord not in seen:
                seen.add(coord)
                sinks.append(node)
        return sinks

    def neighbours(self, node: Node) -> List[Node]:
        result = []
        for dx, dy in NEIGHBOUR_OFFSETS:
            neighbour = self.nodes.get(node.id.offset(dx, dy))
            if neighbour is not None:
                result.append(neighbour)
        return result

    def drains(self, node: Node) -> Optional[List[Node]]:
        """
        Resolve the downstream nodes recorded for ``node``.

        Returns:
            List of drain nodes, an empty list for sinks, or None when a
            non-sink node has no recorded drains
        """
        if not node.drains:
            if node.is_sink():
                return []
            logger.error("No drains found", node=node.id, height=node.height())
            return None
        return [self.nodes[coord] for coord in node.drains]

    def nearest(self, point: Tuple[float, float]) -> Optional[Node]:
        """Find the lattice node closest to a world-space point."""
        px, py = point
        vy = py / self.node_size / TRIHEIGHT
        vx = px / self.node_size - vy / 2
        xf, yf = math.floor(vx), math.floor(vy)
        xc, yc = math.ceil(vx), math.ceil(vy)
        candidates = [Coordinate(xf, yc), Coordinate(xc, yf),
                      Coordinate(xc, yc), Coordinate(xf, yf)]

        best = None
        best_distance = math.inf
        for coord in candidates:
            node = self.nodes.get(coord)
            if node is None:
                continue
            distance = math.hypot(node.position[0] - px, node.position[1] - py)
            if distance < best_distance:
                best_distance = distance
                best = node
        return best

    def triangles(self) -> List[Tuple[Node, Node, Node]]:
        """Two triangles per lattice cell, for mesh renderers."""
        tris = []
        for node in self.nodes.values():
            right = self.nodes.get(node.id.offset(1, 0))
            bottom = self.nodes.get(node.id.offset(0, 1))
            bottom_left = self.nodes.get(node.id.offset(-1, 1))
            if right is not None and bottom is not None:
                tris.append((node, bottom, right))
            if bottom is not None and bottom_left is not None:
                tris.append((node, bottom_left, bottom))
        return tris

    def reset(self, preserve_discharge: bool = False, preserve_water: bool = False) -> None:
        """
        Clear per-iteration state while keeping topology and base heights.

        Args:
            preserve_discharge: Keep ``water`` and ``momentum`` from the last
                accumulation pass, which weight erosion in the next flood
            preserve_water: Keep standing water and sea flags so the next flood
                can still tell which nodes were water bodies
        """
        for node in self.nodes.values():
            if not preserve_discharge:
                node.water = 0.0
                node.momentum = 0.0
            node.outflow = []
            node.sediment = 0.0
            node.drains = []
            if not preserve_water:
                node.water_height = 0.0
                node.sea = False

    def to_arrays(self) -> Dict[str, np.ndarray]:
        """
        Export node data as numpy arrays in a stable node order.

        Returns:
            Dictionary with ``ids``, ``positions``, ``base_height``,
            ``water_height``, ``height``, ``water``, ``sea`` and ``water_body``
        """
        nodes = list(self.nodes.values())
        return {
            "ids": np.array([node.id for node in nodes], dtype=np.int32).reshape(-1, 2),
            "positions": np.array([node.position for node in nodes], dtype=np.float64).reshape(-1, 2),
            "base_height": np.array([node.base_height for node in nodes], dtype=np.float64),
            "water_height": np.array([node.water_height for node in nodes], dtype=np.float64),
            "height": np.array([node.height() for node in nodes], dtype=np.float64),
            "water": np.array([node.water for node in nodes], dtype=np.float64),
            "sea": np.array([node.is_sea() for node in nodes], dtype=bool),
            "water_body": np.array([node.is_water_body() for node in nodes], dtype=bool),
        }

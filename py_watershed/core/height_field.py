"""
Height field synthesis on a node graph.

This module implements:
- Fractal noise heightening with optional domain warp
- Edge cutting toward a target elevation near the map boundary
"""

import structlog

from .node_graph import NodeGraph
from .noise import FractalNoise

logger = structlog.get_logger()

HEIGHT_OCTAVES = 8
WARP_OCTAVES = 4

# Seed perturbations for the two warp fields
X_WARP_SALT = 123
Y_WARP_SALT = 321


def heighten(graph: NodeGraph, seed: int, amplitude: float, feature_size: float,
             base: float = 0.0, warp_size: float = 1.0, warp_effect: float = 0.0) -> None:
    """
    Add ``base + amplitude * noise`` to every node's base height.

    The noise is sampled at the node position displaced by two independent
    warp fields scaled by ``warp_effect``.

    Args:
        graph: Node graph to modify in place
        seed: Seed for the height field; warp fields use derived seeds
        amplitude: Noise amplitude
        feature_size: Wavelength of the base octave
        base: Constant offset added to every node
        warp_size: Wavelength of the warp fields
        warp_effect: Displacement scale of the warp
    """
    if feature_size <= 0:
        raise ValueError(f"Feature size must be positive, got {feature_size}")
    if warp_effect and warp_size <= 0:
        raise ValueError(f"Warp size must be positive, got {warp_size}")

    noise = FractalNoise(seed, HEIGHT_OCTAVES, 1 / feature_size)
    if warp_effect:
        x_warp = FractalNoise(seed ^ X_WARP_SALT, WARP_OCTAVES, 1 / warp_size)
        y_warp = FractalNoise(seed ^ Y_WARP_SALT, WARP_OCTAVES, 1 / warp_size)

    for node in graph.all():
        x, y = node.position
        if warp_effect:
            dx = x_warp.noise(x, y) * warp_effect
            dy = y_warp.noise(x, y) * warp_effect
            x, y = x + dx, y + dy
        node.change_ground(base + amplitude * noise.noise(x, y))

    logger.debug("Heightened", seed=seed, amplitude=amplitude,
                 feature_size=feature_size, warp_effect=warp_effect)


def _edge_factor(coordinate: float, extent: float, distance: float) -> float:
    d = min(coordinate, extent - coordinate, distance) / distance
    return min(max(d, 0.0), 1.0)


def cut_edge(graph: NodeGraph, base_height: float, distance: float,
             additive: bool = False, parabolic: bool = False) -> None:
    """
    Blend elevations toward ``base_height`` near the map boundary.

    Args:
        graph: Node graph to modify in place
        base_height: Target elevation at the very edge
        distance: Width of the blended border; no-op when not positive
        additive: Keep the node elevation and add the offset instead of
            interpolating it away
        parabolic: Use a softer ``1 - (1 - d)^2`` falloff
    """
    if distance <= 0:
        return

    width, height = graph.size
    for node in graph.all():
        x, y = node.position
        d = _edge_factor(x, width, distance) * _edge_factor(y, height, distance)
        if parabolic:
            d = 1 - (1 - d) ** 2
        node.base_height = node.base_height * (1 if additive else d) + base_height * (1 - d)

    logger.debug("Edge cut", base_height=base_height, distance=distance,
                 additive=additive, parabolic=parabolic)

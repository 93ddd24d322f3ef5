"""
Generation pipeline: one complete terrain run from settings to eroded world.

Stages are yielded one at a time so a caller can observe the world between
passes; no pass is ever interrupted half way.
"""

import time
from typing import Callable, Iterator, NamedTuple, Optional

import structlog

from ..config.config import settings as runtime_settings
from ..config.generation_settings import EdgeMode, EdgeShape, GenerationSettings
from .erosion import erosion_compensation
from .hydrology import HydrologyOptions
from .invariants import InvariantError, check_order, check_world
from .node_graph import NodeGraph
from .world import World

logger = structlog.get_logger()

HEIGHT_SALT = 61882
DETAIL_SALT = 9009


def hydrology_options(settings: GenerationSettings) -> HydrologyOptions:
    """Watershed and accumulation options for a run."""
    return HydrologyOptions(
        plains_slope=settings.plains_slope,
        lake_amount=settings.lake_amount,
        lake_size=settings.lake_size,
        lake_depth=settings.lake_depth,
        rainfall=settings.rainfall,
        cohesion=settings.cohesion,
        slowing=settings.accumulation_slowing,
    )


def _raise_problems(problems) -> None:
    if problems:
        raise InvariantError("; ".join(problems[:10]))


class GenerationStage(NamedTuple):
    """Snapshot handed to observers after a pass completes."""
    name: str
    iteration: Optional[int]
    world: World


def generate_stages(settings: GenerationSettings,
                    strict: Optional[bool] = None) -> Iterator[GenerationStage]:
    """
    Run the generation pipeline, yielding after every pass.

    Args:
        settings: Validated generation settings
        strict: Raise on invariant violations; defaults to the runtime setting

    Yields:
        GenerationStage after each pass, the last one named ``done``
    """
    if strict is None:
        strict = runtime_settings.strict_invariants

    logger.info("Starting generation", seed=settings.seed, size=settings.size,
                node_size=settings.node_size, iterations=settings.iterations)
    start = time.perf_counter()

    def timed(name, fn, iteration=None):
        stage_start = time.perf_counter()
        result = fn()
        logger.info("Stage completed", stage=name, iteration=iteration,
                    seconds=round(time.perf_counter() - stage_start, 3))
        return result

    graph = timed("initialize graph", lambda: NodeGraph(
        settings.seed, (settings.size, settings.size), settings.node_size,
        settings.node_randomness))
    world = World(graph, hydrology_options(settings), strict=strict)
    yield GenerationStage("initialize graph", None, world)

    timed("heighten", lambda: world.heighten(
        settings.seed ^ HEIGHT_SALT, settings.amplitude, settings.feature_size,
        settings.base_height, settings.warp_size, settings.warp_effect))
    yield GenerationStage("heighten", None, world)

    timed("cut edge", lambda: world.cut_edge(
        settings.edge_height, settings.edge_distance,
        settings.edge_mode == EdgeMode.ADD, settings.edge_shape == EdgeShape.PARABOLIC))
    yield GenerationStage("cut edge", None, world)

    order = timed("land", lambda: world.land(0.0, 0.0))
    if strict:
        _raise_problems(check_order(order))
    yield GenerationStage("land", None, world)
    timed("drain", lambda: world.drain(order))
    yield GenerationStage("drain", None, world)

    erosion_scale = 1.0
    if settings.compensate_erosion:
        erosion_scale = erosion_compensation(settings.iterations, settings.erosion_step)

    detail_factor = 1.0
    for i in range(settings.iterations):
        timed("detail", lambda: world.heighten(
            settings.seed ^ (DETAIL_SALT * i), settings.detail_amplitude * detail_factor,
            settings.detail_size * detail_factor), i)
        detail_factor *= settings.detail_step
        yield GenerationStage("detail", i, world)

        graph.reset(preserve_discharge=True, preserve_water=True)
        weight = settings.erosion_step ** i * erosion_scale
        order = timed("land", lambda: world.land(
            settings.base_erosion * weight, settings.momentum_erosion * weight,
            lake_depth=1.0), i)
        if strict:
            _raise_problems(check_order(order))
        yield GenerationStage("land", i, world)

        timed("drain", lambda: world.drain(order), i)
        yield GenerationStage("drain", i, world)

        if settings.skip_final_depose and i == settings.iterations - 1:
            logger.info("Skipping final deposition")
            continue
        timed("depose", lambda: world.depose(
            order, settings.deposition, settings.deposition_depth_factor), i)
        yield GenerationStage("depose", i, world)

    timed("amplify water", world.amplify_water)
    world.log_sediment()

    if strict:
        _raise_problems(check_world(world))

    logger.info("Generation completed", nodes=len(graph),
                seconds=round(time.perf_counter() - start, 3))
    yield GenerationStage("done", None, world)


def generate(settings: GenerationSettings,
             progress: Optional[Callable[[GenerationStage], None]] = None,
             strict: Optional[bool] = None) -> World:
    """
    Run the whole pipeline and return the final world.

    Args:
        settings: Validated generation settings
        progress: Called with every stage snapshot
        strict: Raise on invariant violations; defaults to the runtime setting

    Returns:
        World holding the final graph and sediment ledger
    """
    world = None
    for stage in generate_stages(settings, strict):
        if progress is not None:
            progress(stage)
        world = stage.world
    return world

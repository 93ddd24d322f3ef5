"""
Invariant checks for the hydrology engine.

Anomalies found while a pass is running go through ``report_anomaly``: a
strict world raises, a lenient one logs and carries on. ``check_world`` runs
the full set of structural checks after the fact and returns what it found.
"""

from typing import List, Optional, Sequence

import structlog

from .node_graph import Node, NodeGraph

logger = structlog.get_logger()

OUTFLOW_TOLERANCE = 1e-6
LEDGER_TOLERANCE = 1e-6


class InvariantError(RuntimeError):
    """Raised in strict mode when a pass breaks an engine invariant."""


def report_anomaly(strict: bool, message: str, **context) -> None:
    if strict:
        details = ", ".join(f"{k}={v}" for k, v in context.items())
        raise InvariantError(f"{message} ({details})" if details else message)
    logger.warning(message, **context)


def check_heights(graph: NodeGraph) -> List[str]:
    issues = []
    for node in graph.all():
        if node.water_height < 0:
            issues.append(f"negative water height at {tuple(node.id)}: {node.water_height}")
    return issues


def check_outflow(graph: NodeGraph) -> List[str]:
    issues = []
    for node in graph.all():
        if node.is_sink() or not node.drains or not node.outflow:
            continue
        total = sum(fraction for _, fraction in node.outflow)
        if abs(total - 1) > OUTFLOW_TOLERANCE:
            issues.append(f"outflow of {tuple(node.id)} sums to {total}")
    return issues


def check_acyclic(graph: NodeGraph) -> List[str]:
    """Depth-first search over drain edges looking for a back edge."""
    issues = []
    # 0 unvisited, 1 on the current path, 2 done
    state = {}
    for start in graph.all():
        if state.get(start.id):
            continue
        stack = [(start, iter(start.drains))]
        state[start.id] = 1
        while stack:
            node, children = stack[-1]
            child_id = next(children, None)
            if child_id is None:
                state[node.id] = 2
                stack.pop()
                continue
            mark = state.get(child_id, 0)
            if mark == 1:
                issues.append(f"drainage cycle through {tuple(child_id)}")
                continue
            if mark == 0:
                child = graph.get_node(child_id)
                if child is None:
                    issues.append(f"drain {tuple(child_id)} of {tuple(node.id)} does not exist")
                    state[child_id] = 2
                    continue
                state[child_id] = 1
                stack.append((child, iter(child.drains)))
    return issues


def check_order(order: Sequence[Node]) -> List[str]:
    issues = []
    for previous, current in zip(order, order[1:]):
        if current.height() < previous.height():
            issues.append(
                f"finalized order decreases at {tuple(current.id)}: "
                f"{previous.height()} -> {current.height()}")
    return issues


def check_world(world, order: Optional[Sequence[Node]] = None) -> List[str]:
    """
    Run every structural check on a world.

    Args:
        world: World to inspect
        order: Finalized order from the last flood, if available

    Returns:
        List of human readable problems, empty when all invariants hold
    """
    issues = []
    issues.extend(check_heights(world.graph))
    issues.extend(check_outflow(world.graph))
    issues.extend(check_acyclic(world.graph))
    if order is not None:
        issues.extend(check_order(order))

    ledger = world.sediment
    slack = LEDGER_TOLERANCE * max(1.0, ledger.created)
    if ledger.created + slack < ledger.deposited + ledger.lost:
        issues.append(f"sediment ledger out of balance: {ledger}")

    if issues:
        logger.warning("Invariant check failed", problems=len(issues))
    return issues

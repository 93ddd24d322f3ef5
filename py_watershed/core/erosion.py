"""
Sediment transport: erosion along primary drains and downstream deposition.

All material moved here is booked in a ``SedimentLedger`` so the mass
balance of a whole run can be checked afterwards.
"""

import math
from dataclasses import dataclass
from typing import Sequence

import structlog

from .invariants import report_anomaly
from .node_graph import Node, NodeGraph

logger = structlog.get_logger()


@dataclass
class SedimentLedger:
    """Running totals of material moved during a simulation."""
    created: float = 0.0
    deposited: float = 0.0
    lost: float = 0.0

    @property
    def balance(self) -> float:
        """Material eroded but neither deposited nor lost yet."""
        return self.created - self.deposited - self.lost


def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def erosion_compensation(iterations: int, step: float) -> float:
    """
    Scale that makes the per-iteration erosion weights ``step ** i`` sum to 1.

    With it the total erosion of a run no longer depends on how many
    iterations it is split into.
    """
    if iterations <= 0:
        return 1.0
    total = sum(step ** i for i in range(iterations))
    return 1.0 / total if total > 0 else 1.0


class Erosion:
    """Erodes and deposits sediment over the drainage network of a graph."""

    def __init__(self, graph: NodeGraph, ledger: SedimentLedger, strict: bool = False):
        self.graph = graph
        self.ledger = ledger
        self.strict = strict

    def erode(self, nodes: Sequence[Node], base_erosion: float,
              momentum_erosion: float) -> float:
        """
        Lower every dry node toward its primary drain.

        Args:
            nodes: Finalized order from the last flood
            base_erosion: Erosion rate independent of momentum
            momentum_erosion: Additional rate per unit of momentum

        Returns:
            Total material eroded by this pass
        """
        total = 0.0
        for node in nodes:
            if node.is_sink() or node.is_water_body() or not node.outflow:
                continue
            drain = max(node.outflow, key=lambda edge: edge[1])[0]
            drain_height = drain.height()
            dh = node.base_height - drain_height
            if dh <= 0:
                continue

            erosion = (math.sqrt(node.water) * (base_erosion + momentum_erosion * node.momentum)
                       / node.size)
            if not math.isfinite(erosion) or erosion < 0:
                report_anomaly(self.strict, "Invalid erosion coefficient", node=node.id,
                               erosion=erosion, water=node.water, momentum=node.momentum)
                continue

            new_height = clamp(drain_height + dh / (1 + erosion), drain_height, node.base_height)
            eroded = node.base_height - new_height
            node.change_ground(-eroded)
            node.sediment += eroded
            total += eroded

        self.ledger.created += total
        logger.debug("Erosion pass completed", eroded=total)
        return total

    def depose(self, nodes: Sequence[Node], amount: float, depth_factor: float) -> float:
        """
        Deposit part of the suspended sediment and pass the rest downstream.

        Nodes are visited in reverse finalized order so each node has received
        all upstream sediment before it is processed. Sediment reaching a sink
        is lost.

        Args:
            nodes: Finalized order from the last flood
            amount: Base deposition rate; nothing happens when not positive
            depth_factor: Extra deposition per unit of standing water depth

        Returns:
            Total material deposited by this pass
        """
        if amount <= 0:
            return 0.0

        total = 0.0
        for node in reversed(nodes):
            if node.sediment < 0:
                report_anomaly(self.strict, "Negative sediment", node=node.id,
                               sediment=node.sediment)
                node.sediment = 0.0

            if node.is_sink():
                self.ledger.lost += node.sediment
                node.sediment = 0.0
                continue

            deposited = clamp(
                (amount + node.water_volume() * depth_factor) * node.sediment
                / (node.water + amount) / (node.momentum + 1),
                0.0,
                node.sediment,
            )
            if not math.isfinite(deposited):
                report_anomaly(self.strict, "Invalid deposition", node=node.id,
                               sediment=node.sediment, water=node.water,
                               momentum=node.momentum)
                deposited = 0.0

            node.sediment -= deposited
            node.change_ground(deposited)
            total += deposited

            if node.sediment > 0:
                if node.outflow:
                    for drain, fraction in node.outflow:
                        drain.sediment += node.sediment * fraction
                else:
                    report_anomaly(self.strict, "Sediment without outflow", node=node.id,
                                   sediment=node.sediment)
                    self.ledger.lost += node.sediment
            node.sediment = 0.0

        self.ledger.deposited += total
        logger.debug("Deposition pass completed", deposited=total,
                     lost=self.ledger.lost)
        return total

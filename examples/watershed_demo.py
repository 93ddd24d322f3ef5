#!/usr/bin/env python3
"""
Simple demo script showing terrain generation with drainage and erosion.
"""

import numpy as np
from py_watershed.config import GenerationSettings, configure_logging
from py_watershed.core import generate


def report(stage):
    print(f"  stage: {stage.name}" + (f" ({stage.iteration})" if stage.iteration is not None else ""))


def main():
    """Demonstrate a small generation run."""
    print("Py-Watershed Generation Demo")
    print("=" * 40)

    configure_logging()

    settings = GenerationSettings(seed=4242, size=256, node_size=4, iterations=4,
                                  feature_size=120, lake_size=80, detail_size=30)
    print(f"\nGenerating {settings.size:.0f}x{settings.size:.0f} map "
          f"(node size {settings.node_size}, {settings.iterations} iterations)...")
    world = generate(settings, progress=report)

    arrays = world.graph.to_arrays()
    heights = arrays["height"]
    sea = arrays["sea"]
    water_body = arrays["water_body"]
    lakes = water_body & ~sea

    print(f"\n  Total nodes: {len(heights)}")
    print(f"  Sea nodes: {sea.sum()} ({sea.mean() * 100:.1f}%)")
    print(f"  Lake nodes: {lakes.sum()} ({lakes.mean() * 100:.1f}%)")
    print(f"  Height range: {heights.min():.1f} to {heights.max():.1f}")
    print(f"  Largest discharge: {arrays['water'].max():.0f}")

    ledger = world.sediment
    print(f"\n  Sediment eroded: {ledger.created:.1f}")
    print(f"  Sediment deposited: {ledger.deposited:.1f}")
    print(f"  Sediment lost at sinks: {ledger.lost:.1f}")

    # Show height distribution
    hist, bins = np.histogram(heights, bins=8)
    print("\n  Height distribution:")
    for i in range(len(hist)):
        bar = '#' * int(hist[i] / max(hist) * 20)
        print(f"    {bins[i]:7.1f}-{bins[i + 1]:7.1f}: {bar} ({hist[i]})")


if __name__ == "__main__":
    main()

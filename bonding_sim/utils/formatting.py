"""bonding_sim.utils.formatting - Market-cap display strings."""

from __future__ import annotations


def format_cap(value: float) -> str:
    """$1.50M / $12.3K / $950"""
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"${value / 1_000:.1f}K"
    return f"${value:.0f}"

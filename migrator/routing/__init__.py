"""Swap path planning."""

from migrator.routing.paths import SwapHop, SwapPath, build_paths

__all__ = ["SwapHop", "SwapPath", "build_paths"]

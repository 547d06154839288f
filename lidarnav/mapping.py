"""Occupancy-style map built by tracing lidar rays across a colour grid.

The grid is an (H, W, 3) ``uint8`` array. Channel 0 holds occupancy, channel 1
marks the cells hit in the latest scan and channel 2 marks the scan origin.
Positions are given as (x, y) with x the row and y the column.
"""

from __future__ import annotations

import math
from typing import Iterable

import numpy as np

FREE_LOG_ODDS = math.log(0.3 / (1 - 0.3))
HIT_LOG_ODDS = math.log(0.7 / (1 - 0.7))
ORIGIN_RADIUS = 3


def _c_round(value: float) -> int:
    """Round half away from zero."""
    if value >= 0:
        return int(math.floor(value + 0.5))
    return int(math.ceil(value - 0.5))


def _to_pixel(value: float) -> int:
    return int(min(255.0, max(0.0, value)))


def _inside(grid: np.ndarray, row: int, col: int) -> bool:
    return 0 <= row < grid.shape[0] and 0 <= col < grid.shape[1]


def _fill_circle(grid: np.ndarray, row: int, col: int, radius: int, color) -> None:
    for dr in range(-radius, radius + 1):
        for dc in range(-radius, radius + 1):
            if dr * dr + dc * dc <= radius * radius and _inside(grid, row + dr, col + dc):
                grid[row + dr, col + dc] = color


def new_grid(size: int = 1000) -> np.ndarray:
    """Return an empty square map of ``size`` cells a side."""
    if size <= 0:
        raise ValueError("size must be positive")
    return np.zeros((size, size, 3), dtype=np.uint8)


def _apply_log_odds(grid: np.ndarray, row: int, col: int, log_odds: float) -> None:
    occupancy = int(grid[row, col, 0]) // 255 + log_odds
    grid[row, col, 0] = _to_pixel(occupancy * 255)


def update_map(
    grid: np.ndarray,
    start_x: float,
    start_y: float,
    thetas: Iterable[float],
    dists: Iterable[float],
) -> np.ndarray:
    """Trace one scan into ``grid`` in place and return it.

    ``thetas`` are bearings in degrees and ``dists`` the matching ranges.
    Cells crossed by a ray are marked free, the end cell occupied and hit.
    Cells outside the grid are left alone.
    """
    angles = list(thetas)
    ranges = list(dists)
    if len(angles) != len(ranges):
        raise ValueError("thetas and dists must have the same length")
    if grid.ndim != 3 or grid.shape[2] < 3:
        raise ValueError("grid must have three channels")

    for angle, length in zip(angles, ranges):
        radians = math.radians(angle)
        end_x = _c_round(length * math.sin(radians) + start_x)
        end_y = _c_round(length * math.cos(radians) + start_y)
        x = float(start_x)
        y = float(start_y)
        steps = int(abs(end_x - x))
        if abs(end_y - y) > steps:
            steps = int(abs(end_y - y))

        probe_row, probe_col = _c_round(y), _c_round(x)
        if _inside(grid, probe_row, probe_col):
            blue, green = int(grid[probe_row, probe_col, 0]), int(grid[probe_row, probe_col, 1])
        else:
            blue, green = 0, 0
        _fill_circle(grid, _c_round(x), _c_round(y), ORIGIN_RADIUS, (blue, green, 255))

        if steps:
            x_step = (end_x - x) / steps
            y_step = (end_y - y) / steps
            for _ in range(steps):
                x += x_step
                y += y_step
                row, col = _c_round(x), _c_round(y)
                if row != end_x and col != end_y and _inside(grid, row, col):
                    _apply_log_odds(grid, row, col, FREE_LOG_ODDS)

        if _inside(grid, end_x, end_y):
            _apply_log_odds(grid, end_x, end_y, HIT_LOG_ODDS)
            grid[end_x, end_y, 1] = 255

    return grid


def clear_hits(grid: np.ndarray) -> np.ndarray:
    """Clear the hit channel of ``grid`` in place and return it."""
    grid[:, :, 1] = 0
    return grid
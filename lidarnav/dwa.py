"""Sector-based heading selection towards a target while avoiding obstacles.

Positions and targets are (x, y) pairs; on a canvas x is the row and y the
column. Canvases are (H, W, 3) ``uint8`` arrays in blue-green-red order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

SECTORS = 36
OBSTACLE_RANGE = 350.0
ROTATION_WEIGHT = 1.4
OBSTACLE_WEIGHT = 1.0
HEADING_LENGTH = 30.0
MARKER_RADIUS = 3

_CLEARANCE_COLOR = (0, 100, 0)
_HEADING_COLOR = (0, 0, 255)
_MARKER_COLOR = (0, 255, 0)


@dataclass(frozen=True)
class DwaResult:
    """Outcome of one planning step."""

    sector: int
    heading: float
    target_sector: int
    clearances: tuple[float, ...]
    grades: tuple[float, ...]


def _c_round(value: float) -> int:
    if value >= 0:
        return int(math.floor(value + 0.5))
    return int(math.ceil(value - 0.5))


def _put(canvas: np.ndarray, row: int, col: int, color) -> None:
    if 0 <= row < canvas.shape[0] and 0 <= col < canvas.shape[1]:
        canvas[row, col] = color


def _draw_line(canvas: np.ndarray, start, end, color) -> None:
    r0, c0 = _c_round(start[0]), _c_round(start[1])
    r1, c1 = _c_round(end[0]), _c_round(end[1])
    steps = max(abs(r1 - r0), abs(c1 - c0))
    if steps == 0:
        _put(canvas, r0, c0, color)
        return
    for step in range(steps + 1):
        _put(
            canvas,
            _c_round(r0 + (r1 - r0) * step / steps),
            _c_round(c0 + (c1 - c0) * step / steps),
            color,
        )


def _fill_circle(canvas: np.ndarray, center, radius: int, color) -> None:
    row, col = _c_round(center[0]), _c_round(center[1])
    for dr in range(-radius, radius + 1):
        for dc in range(-radius, radius + 1):
            if dr * dr + dc * dc <= radius * radius:
                _put(canvas, row + dr, col + dc, color)


def sector_clearances(
    thetas: Iterable[float], dists: Iterable[float], sectors: int = SECTORS
) -> list[float]:
    """Return the nearest obstacle range in each sector, capped at the sensing range."""
    angles = list(thetas)
    ranges = list(dists)
    if len(angles) != len(ranges):
        raise ValueError("thetas and dists must have the same length")
    buckets: list[list[float]] = [[] for _ in range(sectors)]
    for theta, dist in zip(angles, ranges):
        index = _c_round(theta / 360 / sectors)
        if index == sectors:
            index = 0
        if not 0 <= index < sectors:
            raise ValueError(f"bearing {theta} falls outside the sectors")
        buckets[index].append(dist)
    return [min([OBSTACLE_RANGE, *bucket]) for bucket in buckets]


def target_sector(target: Sequence[float], position_x: float, position_y: float) -> int:
    """Return the sector, in tens of degrees, in which the target lies."""
    dx = target[0] - position_x
    dy = target[1] - position_y
    if dx == 0 and dy == 0:
        raise ValueError("target coincides with the position")
    if dy == 0:
        angle = math.copysign(90.0, dx)
    else:
        angle = math.degrees(math.atan(dx / dy))
    if dx > 0 and dy < 0:
        angle += 180
    if dx < 0 and dy < 0:
        angle += 180
    if dx < 0 and dy > 0:
        angle = -angle + 270
    return _c_round(angle / 10)


def plan(
    target: Sequence[float],
    dists: Iterable[float],
    thetas: Iterable[float],
    position_x: float,
    position_y: float,
    canvas: np.ndarray | None = None,
) -> DwaResult:
    """Pick the sector with the lowest combined rotation and obstacle grade.

    When a canvas is given, sector clearances, the chosen heading, the target
    and the position are drawn on it.
    """
    clearances = sector_clearances(thetas, dists)
    goal = target_sector(target, position_x, position_y)
    position = (position_x, position_y)

    grades = []
    for index, clearance in enumerate(clearances):
        obstacle_grade = 1 - clearance / OBSTACLE_RANGE
        difference = abs(index * 10 - goal * 10)
        if difference > 180:
            difference = 360 - difference
        grades.append((difference / 180) * ROTATION_WEIGHT + obstacle_grade * OBSTACLE_WEIGHT)

    best, best_grade = 0, 2.0
    for index, grade in enumerate(grades):
        if grade < best_grade:
            best, best_grade = index, grade

    if canvas is not None:
        for index, clearance in enumerate(clearances):
            angle = 2 * math.pi * index / SECTORS
            end = (position_x + math.sin(angle) * clearance, position_y + math.cos(angle) * clearance)
            _draw_line(canvas, position, end, _CLEARANCE_COLOR)
        angle = 2 * math.pi * best / SECTORS
        end = (
            position_x + math.sin(angle) * HEADING_LENGTH,
            position_y + math.cos(angle) * HEADING_LENGTH,
        )
        _draw_line(canvas, position, end, _HEADING_COLOR)
        _fill_circle(canvas, (target[0], target[1]), MARKER_RADIUS, _MARKER_COLOR)
        _fill_circle(canvas, position, MARKER_RADIUS, _MARKER_COLOR)

    return DwaResult(
        sector=best,
        heading=best * 360 / SECTORS,
        target_sector=goal,
        clearances=tuple(clearances),
        grades=tuple(grades),
    )
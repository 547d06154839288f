"""Lidar robot building blocks: occupancy mapping, obstacle avoidance, result codes and device channels."""

__version__ = "0.1.0"
[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lidarnav"
version = "0.1.0"
description = "2D lidar robot building blocks: occupancy mapping, sector-based obstacle avoidance, result codes and serial/TCP byte channels"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["lidar", "occupancy-grid", "obstacle-avoidance", "robotics", "serial", "tcp", "sockets"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["lidarnav"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

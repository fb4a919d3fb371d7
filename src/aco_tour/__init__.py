"""
ACO Weighted Tour Package

積載重み付きツアー探索のためのACOパッケージ
"""

__version__ = "1.0.0"

from .algorithms.colony_solver import ColonySolver, GenerationResult, RunResult
from .core.ant import Ant, AntState
from .core.graph import Edge, Graph, Vertex
from .core.node import Node
from .exceptions import (
    AcoTourError,
    DuplicateVertexError,
    IncompleteTourError,
    InvalidConfigurationError,
)
from .modules.pheromone import PheromoneUpdater
from .utils.metrics import MetricsCalculator

__all__ = [
    "ColonySolver",
    "GenerationResult",
    "RunResult",
    "Ant",
    "AntState",
    "Edge",
    "Graph",
    "Vertex",
    "Node",
    "AcoTourError",
    "DuplicateVertexError",
    "IncompleteTourError",
    "InvalidConfigurationError",
    "PheromoneUpdater",
    "MetricsCalculator",
]

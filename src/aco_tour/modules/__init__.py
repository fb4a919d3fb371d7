from .graph_builder import from_coordinates, from_networkx, generate_graph
from .pheromone import PheromoneUpdater

__all__ = [
    "PheromoneUpdater",
    "from_coordinates",
    "from_networkx",
    "generate_graph",
]

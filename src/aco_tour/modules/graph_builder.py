"""
グラフ構築モジュール

NetworkXのグラフや座標リストから、ACOツアー探索用のGraphを構築します。

【サポートするトポロジ】
- "complete": 完全グラフ（座標は一様乱数）
- "grid": 2次元グリッドグラフ（座標はグリッド位置）
- "random_geometric": ランダム幾何グラフ（半径radius以内のノード間にエッジ）

各ノードの重みは weight_range の範囲の整数を一様乱数で与えます。
無向エッジごとに両方向の有向エッジを登録し、フェロモンは initial_pheromone で初期化します。
"""

import math
import random
from typing import Dict, Optional, Sequence, Tuple

import networkx as nx

from ..core.graph import Graph, Vertex
from ..core.node import Node
from ..exceptions import InvalidConfigurationError

GRAPH_TYPES = ("complete", "grid", "random_geometric")


def from_networkx(
    nx_graph: nx.Graph,
    evaporation_rate: float,
    alpha: float,
    beta: float,
    initial_pheromone: float = 1.0,
) -> Graph:
    """
    NetworkXのグラフからGraphを構築します。

    Args:
        nx_graph: ノード属性 "pos"（または "x" と "y"）と "weight" を持つグラフ
        evaporation_rate: 揮発率
        alpha: フェロモンの指数
        beta: ヒューリスティックの指数
        initial_pheromone: フェロモン初期値

    Returns:
        構築されたGraph

    Note:
        ノードはNetworkXの反復順に0から連番のインデックスを割り当てます。
        有向グラフが渡された場合も、各エッジの逆向きを登録します。
    """
    graph = Graph(evaporation_rate, alpha, beta, initial_pheromone)
    nodes: Dict[object, Node] = {}

    for index, (label, attrs) in enumerate(nx_graph.nodes(data=True)):
        if "pos" in attrs:
            x, y = attrs["pos"]
        else:
            x, y = attrs.get("x", 0.0), attrs.get("y", 0.0)
        node = Node(index, float(x), float(y), attrs.get("weight", 0))
        nodes[label] = node
        graph.add_vertex(Vertex(node))

    for u, v in nx_graph.edges():
        if u == v:
            continue
        a, b = nodes[u], nodes[v]
        if graph.get_edge(a, b) is None:
            graph.add_edge(graph.get_vertex(a), b)
        if graph.get_edge(b, a) is None:
            graph.add_edge(graph.get_vertex(b), a)

    return graph


def from_coordinates(
    points: Sequence[Tuple[float, float]],
    evaporation_rate: float,
    alpha: float,
    beta: float,
    weights: Optional[Sequence[float]] = None,
    initial_pheromone: float = 1.0,
) -> Graph:
    """
    座標リストから完全グラフを構築します。

    Example:
        >>> graph = from_coordinates([(0, 0), (0, 1), (1, 1), (1, 0)], 0.5, 1, 2)
        >>> graph.total_edges
        6
    """
    if weights is not None and len(weights) != len(points):
        raise ValueError("weights must have the same length as points")
    nx_graph = nx.complete_graph(len(points))
    for i, (x, y) in enumerate(points):
        nx_graph.nodes[i]["pos"] = (x, y)
        nx_graph.nodes[i]["weight"] = weights[i] if weights is not None else 0
    return from_networkx(nx_graph, evaporation_rate, alpha, beta, initial_pheromone)


def generate_graph(config: Dict, rng: Optional[random.Random] = None) -> Graph:
    """
    設定辞書に基づいてグラフを生成します。

    Args:
        config: 設定辞書（"graph" と "aco" セクションを使用）
        rng: 乱数生成器。Noneの場合は experiment.seed で初期化

    Returns:
        生成されたGraph

    Raises:
        InvalidConfigurationError: 未知のグラフタイプが指定された場合
    """
    if rng is None:
        rng = random.Random(config.get("experiment", {}).get("seed"))
    graph_config = config["graph"]
    aco_config = config["aco"]

    graph_type = graph_config["graph_type"]
    num_nodes = graph_config["num_nodes"]
    scale = graph_config.get("scale", 100)

    if graph_type == "complete":
        nx_graph = nx.complete_graph(num_nodes)
        for node in nx_graph.nodes():
            nx_graph.nodes[node]["pos"] = (
                round(rng.uniform(0, scale)),
                round(rng.uniform(0, scale)),
            )
    elif graph_type == "grid":
        side = int(math.sqrt(num_nodes))
        nx_graph = nx.grid_2d_graph(side, side)
        step = scale / max(side - 1, 1)
        for i, j in nx_graph.nodes():
            nx_graph.nodes[(i, j)]["pos"] = (i * step, j * step)
        # ノードをint型に変換
        mapping = {(i, j): i * side + j for i in range(side) for j in range(side)}
        nx_graph = nx.relabel_nodes(nx_graph, mapping)
    elif graph_type == "random_geometric":
        radius = graph_config.get("radius", 0.3)
        nx_graph = nx.random_geometric_graph(
            num_nodes, radius, seed=rng.randrange(2**32)
        )
        for node, (x, y) in nx.get_node_attributes(nx_graph, "pos").items():
            nx_graph.nodes[node]["pos"] = (x * scale, y * scale)
    else:
        raise InvalidConfigurationError(f"Unknown graph type: {graph_type}")

    low, high = graph_config.get("weight_range", [0, 0])
    for node in sorted(nx_graph.nodes()):
        nx_graph.nodes[node]["weight"] = rng.randint(int(low), int(high))

    return from_networkx(
        nx_graph,
        aco_config["evaporation"],
        aco_config["alpha"],
        aco_config["beta"],
        aco_config.get("initial_pheromone", 1.0),
    )

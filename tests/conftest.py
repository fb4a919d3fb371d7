"""
テスト共通のフィクスチャ
"""

import pytest

from aco_tour.core.graph import Graph, Vertex
from aco_tour.core.node import Node
from aco_tour.modules.graph_builder import from_coordinates

SQUARE = [(0, 0), (0, 1), (1, 1), (1, 0)]


def link(graph: Graph, a: Node, b: Node) -> None:
    """a と b の間に両方向のエッジを登録"""
    graph.add_edge(graph.get_vertex(a), b)
    graph.add_edge(graph.get_vertex(b), a)


def make_graph(nodes, edges, evaporation_rate=0.5, alpha=1, beta=2):
    """ノードのリストとインデックス対のリストからグラフを生成"""
    graph = Graph(evaporation_rate, alpha, beta)
    for node in nodes:
        graph.add_vertex(Vertex(node))
    for i, j in edges:
        link(graph, nodes[i], nodes[j])
    return graph


@pytest.fixture
def square_graph():
    """4ノードの正方形（完全グラフ、重み0、辺の長さ1、対角線の長さ2）"""
    return from_coordinates(SQUARE, evaporation_rate=0.5, alpha=1, beta=2)


@pytest.fixture
def line_graph():
    """a - b - c の一直線の経路グラフ（重みあり）"""
    nodes = [Node(0, 0, 0, 0), Node(1, 0, 1, 2), Node(2, 0, 3, 1)]
    return make_graph(nodes, [(0, 1), (1, 2)])


@pytest.fixture
def disconnected_graph():
    """エッジのない2ノード（2つの連結成分）"""
    return make_graph([Node(0, 0, 0), Node(1, 5, 5)], [])

"""
コアモジュールのテスト
"""

import random

import pytest
from conftest import make_graph

from aco_tour.core.ant import Ant, AntState
from aco_tour.core.graph import Graph, Vertex
from aco_tour.core.node import Node
from aco_tour.exceptions import (
    DuplicateVertexError,
    IncompleteTourError,
    InvalidConfigurationError,
)


class TestNode:
    """Nodeクラスのテスト"""

    def test_equality_by_index(self):
        """座標が同じでもインデックスが違えば別のノード"""
        a = Node(0, 1.0, 1.0)
        b = Node(1, 1.0, 1.0)
        assert a != b
        assert Node(0, 5.0, 5.0, 3) == a
        assert len({a, b}) == 2

    def test_immutable(self):
        node = Node(0, 1.0, 2.0, 3)
        with pytest.raises(AttributeError):
            node.x = 5.0


class TestGraph:
    """Graphクラスのテスト"""

    def test_add_vertex_accumulates_weight(self):
        graph = Graph(0.5, 1, 2)
        graph.add_vertex(Vertex(Node(0, 0, 0, 2)))
        graph.add_vertex(Vertex(Node(1, 1, 0, 3)))

        assert graph.total_vertices == 2
        assert graph.total_weight == 5
        assert not graph.is_empty()

    def test_duplicate_vertex(self):
        """同じノードの頂点は上書きせずにエラー"""
        graph = Graph(0.5, 1, 2)
        first = Vertex(Node(0, 0, 0, 2))
        graph.add_vertex(first)

        with pytest.raises(DuplicateVertexError):
            graph.add_vertex(Vertex(Node(0, 9, 9, 7)))

        assert graph.get_vertex(Node(0)) is first
        assert graph.total_weight == 2
        assert graph.total_vertices == 1

    def test_get_vertex_unknown(self):
        graph = Graph(0.5, 1, 2)
        graph.add_vertex(Vertex(Node(0)))
        assert graph.get_vertex(Node(42)) is None

    def test_get_vertices_insertion_order(self):
        graph = Graph(0.5, 1, 2)
        for index in (3, 1, 2):
            graph.add_vertex(Vertex(Node(index)))

        assert [node.index for node in graph.get_vertices()] == [3, 1, 2]
        assert graph.get_first_node().index == 3

    def test_edge_count(self):
        """無向エッジ数は有向エッジ数の半分"""
        nodes = [Node(0), Node(1, 1, 0), Node(2, 2, 0)]
        graph = make_graph(nodes, [(0, 1), (1, 2)])

        assert graph.total_edges == 2
        assert len(list(graph.edges())) == 4

    def test_add_edge_is_directed(self):
        """逆向きのエッジは自動で登録されない"""
        a, b = Node(0), Node(1, 1, 0)
        graph = make_graph([a, b], [])
        edge = graph.add_edge(graph.get_vertex(a), b)

        assert graph.get_edge(a, b) is edge
        assert graph.get_edge(b, a) is None
        assert graph.edge_pair(a, b) == [edge]
        assert edge.pheromone == graph.initial_pheromone

    def test_add_edge_replaces_existing(self):
        a, b = Node(0), Node(1, 1, 0)
        graph = make_graph([a, b], [(0, 1)])
        graph.add_edge(graph.get_vertex(a), b, pheromone=3.0)

        assert graph.total_edges == 1
        assert graph.get_edge(a, b).pheromone == 3.0

    def test_every_edge_has_reverse(self, square_graph):
        for edge in square_graph.edges():
            reverse = square_graph.get_edge(edge.destination, edge.source)
            assert reverse is not None
            assert reverse is not edge

    def test_vertex_iterates_outgoing_edges(self, square_graph):
        first = square_graph.get_first_node()
        vertex = square_graph.get_vertex(first)

        destinations = sorted(edge.destination.index for edge in vertex)
        assert destinations == [1, 2, 3]
        assert all(edge.source == first for edge in vertex)

    def test_get_distance_is_manhattan(self):
        a = Node(0, 0, 0)
        b = Node(1, 3, -4)
        assert Graph.get_distance(a, b) == 7
        assert Graph.get_distance(b, a) == 7

    def test_get_required_energy(self):
        """(積載重み + 1) × マンハッタン距離"""
        a = Node(0, 0, 0)
        b = Node(1, 1, 2)
        assert Graph.get_required_energy(a, b, 0) == 3
        assert Graph.get_required_energy(a, b, 4) == 15

    def test_invalid_evaporation_rate(self):
        with pytest.raises(InvalidConfigurationError):
            Graph(1.5, 1, 2)
        with pytest.raises(InvalidConfigurationError):
            Graph(-0.1, 1, 2)

    def test_reachable_from(self):
        nodes = [Node(0), Node(1, 1, 0), Node(2, 5, 5), Node(3, 6, 5)]
        graph = make_graph(nodes, [(0, 1), (2, 3)])

        assert graph.reachable_from(nodes[0]) == frozenset({0, 1})
        assert graph.reachable_from(nodes[3]) == frozenset({2, 3})

        # トポロジ変更でキャッシュが無効化される
        graph.add_edge(graph.get_vertex(nodes[1]), nodes[2])
        assert graph.reachable_from(nodes[0]) == frozenset({0, 1, 2, 3})


class TestAnt:
    """Antクラスのテスト"""

    def test_initialization(self, line_graph):
        start = line_graph.get_first_node()
        ant = Ant(line_graph, ant_id=1, start_node=start)

        assert ant.ant_id == 1
        assert ant.state is AntState.UNSTARTED
        assert ant.route == []
        assert ant.eval() == 0.0

        ant.start()
        assert ant.state is AntState.TRAVELING
        assert ant.current_node == start
        assert ant.has_visited(start)
        assert ant.load == 0

    def test_random_start(self, square_graph):
        ant = Ant(square_graph, rng=random.Random(3))
        assert ant.start_node in square_graph.get_vertices()

    def test_travel_before_start(self, line_graph):
        ant = Ant(line_graph, start_node=line_graph.get_first_node())
        with pytest.raises(RuntimeError):
            ant.travel()

    def test_travel_after_finish(self, line_graph):
        ant = Ant(line_graph, start_node=line_graph.get_first_node())
        ant.run()
        assert ant.state is AntState.FINISHED
        with pytest.raises(RuntimeError):
            ant.travel()

    def test_weighted_energy(self, line_graph):
        """
        a(0,0,w=0) → b(0,1,w=2) → c(0,3,w=1)
        1ステップ目: (0 + 1) × 1 = 1、積載 2
        2ステップ目: (2 + 1) × 2 = 6
        """
        ant = Ant(line_graph, start_node=line_graph.get_first_node())
        ant.run()

        assert [node.index for node in ant.get_tour()] == [0, 1, 2]
        assert ant.eval() == 7
        assert ant.load == 3

    def test_eval_matches_replay(self):
        """eval()は訪問順に積載を積み上げて必要エネルギーを合計した値と一致"""
        weighted = make_graph(
            [
                Node(0, 0, 0, 1),
                Node(1, 0, 3, 4),
                Node(2, 2, 3, 0),
                Node(3, 5, 1, 2),
                Node(4, 1, 1, 3),
            ],
            [(i, j) for i in range(5) for j in range(i + 1, 5)],
        )
        for seed in range(5):
            ant = Ant(weighted, rng=random.Random(seed))
            ant.run()

            load = 0
            energy = 0.0
            for prev, nxt in ant.get_route_edges():
                energy += Graph.get_required_energy(prev, nxt, load)
                load += nxt.weight
            assert ant.eval() == pytest.approx(energy)

    def test_tour_is_permutation(self, square_graph):
        for seed in range(10):
            ant = Ant(square_graph, rng=random.Random(seed))
            ant.run()
            tour = ant.get_tour()

            assert len(tour) == square_graph.total_vertices
            assert set(tour) == set(square_graph.get_vertices())
            assert not ant.not_finished()

    def test_single_node_graph(self):
        graph = make_graph([Node(0, 1, 1, 5)], [])
        ant = Ant(graph)
        ant.start()

        assert ant.state is AntState.FINISHED
        assert ant.eval() == 0.0

    def test_empty_graph(self):
        with pytest.raises(IncompleteTourError):
            Ant(Graph(0.5, 1, 2))

    def test_prefers_unvisited_neighbors(self):
        """候補エッジは未訪問ノードへのもののみ"""
        nodes = [Node(0), Node(1, 1, 0), Node(2, 2, 0)]
        graph = make_graph(nodes, [(0, 1), (1, 2), (0, 2)])
        ant = Ant(graph, start_node=nodes[1], rng=random.Random(0))
        ant.start()
        ant.move_to(nodes[0])
        ant.travel()

        assert ant.get_tour() == [nodes[1], nodes[0], nodes[2]]

    def test_selection_follows_pheromone(self):
        """フェロモン0のエッジは選ばれない"""
        nodes = [Node(0), Node(1, 1, 0), Node(2, 0, 1)]
        graph = make_graph(nodes, [(0, 1), (0, 2), (1, 2)])
        graph.get_edge(nodes[0], nodes[1]).pheromone = 0.0

        for seed in range(10):
            ant = Ant(graph, start_node=nodes[0], rng=random.Random(seed))
            ant.start()
            ant.travel()
            assert ant.current_node == nodes[2]

    def test_zero_distance_edges_first(self):
        """座標が一致するノードへのエッジが優先される"""
        nodes = [Node(0), Node(1, 0, 0), Node(2, 1, 0)]
        graph = make_graph(nodes, [(0, 1), (0, 2), (1, 2)])

        for seed in range(10):
            ant = Ant(graph, start_node=nodes[0], rng=random.Random(seed))
            ant.start()
            ant.travel()
            assert ant.current_node == nodes[1]

    def test_all_zero_weights_fall_back_to_uniform(self):
        nodes = [Node(0), Node(1, 1, 0), Node(2, 0, 1)]
        graph = make_graph(nodes, [(0, 1), (0, 2), (1, 2)])
        for edge in graph.edges():
            edge.pheromone = 0.0

        ant = Ant(graph, start_node=nodes[0], rng=random.Random(0))
        ant.run()
        assert set(ant.get_tour()) == set(nodes)

    def test_dead_end_fallback(self):
        """
        星型グラフ（中心a）では、葉に入ると隣接ノードが全て訪問済みになる。
        その場合は同じ連結成分の最も近い未訪問ノードへ移動してツアーを完成させる。
        """
        a, b, c, d = Node(0, 0, 0), Node(1, 1, 0), Node(2, 5, 0), Node(3, 2, 0)
        graph = make_graph([a, b, c, d], [(0, 1), (0, 2), (0, 3)])

        for seed in range(10):
            ant = Ant(graph, start_node=b, rng=random.Random(seed))
            ant.run()
            tour = ant.get_tour()

            assert len(tour) == 4
            assert set(tour) == {a, b, c, d}
            assert tour[:2] == [b, a]

    def test_disconnected_graph(self, disconnected_graph):
        ant = Ant(disconnected_graph, start_node=disconnected_graph.get_first_node())
        with pytest.raises(IncompleteTourError):
            ant.run()

    def test_get_route_edges(self, line_graph):
        ant = Ant(line_graph, start_node=line_graph.get_first_node())
        ant.run()

        edges = ant.get_route_edges()

        assert [(u.index, v.index) for u, v in edges] == [(0, 1), (1, 2)]

"""
グラフモジュール

ノード・有向エッジ・頂点からなる重み付きグラフと、エッジごとのフェロモンを管理します。

【主要機能】
1. 頂点管理：ノード → 頂点のO(1)検索と、挿入順を保持した頂点列
2. エッジ管理：頂点ごとに出ていくエッジを宛先ノードのインデックスで保持
3. 集計：頂点数、無向エッジ数（有向エッジ数 / 2）、総重み
4. コスト計算：マンハッタン距離と、積載重みを考慮した必要エネルギー
5. 到達可能性：NetworkXによる連結成分の計算（トポロジ変更まで結果をキャッシュ）

【フェロモンのアクセス規約】
- 探索フェーズ：全アリがフェロモンを読み取るのみ（書き込みなし）
- 更新フェーズ：PheromoneUpdaterのみが書き込む（探索中のアリは存在しない）
この2つのフェーズは世代ごとのバリアで分離されるため、エッジ単位のロックは不要です。
"""

import threading
from typing import Dict, FrozenSet, Iterator, List, Optional, Tuple

import networkx as nx

from ..exceptions import DuplicateVertexError, InvalidConfigurationError
from .node import Node


class Edge:
    """
    有向エッジ（source → destination）

    Attributes:
        source (Node): 始点ノード
        destination (Node): 終点ノード
        pheromone (float): フェロモン量（非負）

    Note:
        等価性はオブジェクトの同一性です。同じノード対でも向きが違えば別のエッジです。
    """

    __slots__ = ("source", "destination", "pheromone")

    def __init__(self, source: Node, destination: Node, pheromone: float):
        self.source = source
        self.destination = destination
        self.pheromone = pheromone

    def __repr__(self) -> str:
        return (
            f"Edge({self.source.index}->{self.destination.index}, "
            f"pheromone={self.pheromone:.4f})"
        )


class Vertex:
    """
    ノードと、そのノードから出ていくエッジの集合を保持する頂点

    イテレートすると出ていくエッジを挿入順に返します。

    Attributes:
        node (Node): 対応するノード
        edges (Dict[int, Edge]): 宛先ノードのインデックスをキーとするエッジの辞書
    """

    def __init__(self, node: Node):
        self.node = node
        self.edges: Dict[int, Edge] = {}

    def add_edge(self, destination: Node, pheromone: float) -> Edge:
        """宛先ノードへのエッジを追加（既存の場合は置き換え）"""
        edge = Edge(self.node, destination, pheromone)
        self.edges[destination.index] = edge
        return edge

    def get_edge(self, destination: Node) -> Optional[Edge]:
        return self.edges.get(destination.index)

    def __iter__(self) -> Iterator[Edge]:
        return iter(self.edges.values())

    def __len__(self) -> int:
        return len(self.edges)

    def __repr__(self) -> str:
        targets = ", ".join(str(index) for index in self.edges)
        return f"Vertex({self.node.index} -> [{targets}])"


class Graph:
    """
    ACOツアー探索用の重み付きグラフ

    各ノードに1つの頂点を持ち、頂点は出ていく有向エッジを保持します。
    無向のトポロジを表現する場合、呼び出し側が両方向のエッジを登録します。

    Attributes:
        evaporation_rate (float): 揮発率（0.0 ~ 1.0）
        alpha (float): フェロモンの指数
        beta (float): ヒューリスティック（距離の逆数）の指数
        initial_pheromone (float): add_edgeで明示されない場合のフェロモン初期値

    Example:
        >>> graph = Graph(evaporation_rate=0.5, alpha=1, beta=2)
        >>> a, b = Node(0, 0, 0), Node(1, 0, 1)
        >>> graph.add_vertex(Vertex(a)); graph.add_vertex(Vertex(b))
        >>> forward = graph.add_edge(graph.get_vertex(a), b)
        >>> backward = graph.add_edge(graph.get_vertex(b), a)
        >>> graph.total_edges
        1
    """

    def __init__(
        self,
        evaporation_rate: float,
        alpha: float,
        beta: float,
        initial_pheromone: float = 1.0,
    ):
        """
        Args:
            evaporation_rate: 揮発率（0.0 ~ 1.0）
            alpha: フェロモンの指数
            beta: ヒューリスティックの指数
            initial_pheromone: フェロモン初期値（非負）

        Raises:
            InvalidConfigurationError: 揮発率が[0, 1]の範囲外、またはフェロモン初期値が負の場合
        """
        if not 0.0 <= evaporation_rate <= 1.0:
            raise InvalidConfigurationError(
                f"evaporation rate must be within [0, 1], got {evaporation_rate}"
            )
        if initial_pheromone < 0:
            raise InvalidConfigurationError(
                f"initial pheromone must be non-negative, got {initial_pheromone}"
            )
        self.evaporation_rate = evaporation_rate
        self.alpha = alpha
        self.beta = beta
        self.initial_pheromone = initial_pheromone

        self._vertices: Dict[int, Vertex] = {}
        self._order: List[Vertex] = []
        self._directed_edges = 0
        self._total_weight = 0.0

        # 連結成分のキャッシュ（ノードインデックス -> 成分）
        self._components: Optional[Dict[int, FrozenSet[int]]] = None
        self._components_lock = threading.Lock()

    # ---- 集計 --------------------------------------------------------------
    @property
    def total_vertices(self) -> int:
        return len(self._vertices)

    @property
    def total_edges(self) -> int:
        """無向エッジ数（有向エッジ数の半分）"""
        return self._directed_edges // 2

    @property
    def total_weight(self) -> float:
        return self._total_weight

    def is_empty(self) -> bool:
        return not self._vertices

    def get_first_node(self) -> Node:
        return self._order[0].node

    # ---- トポロジ構築 ------------------------------------------------------
    def add_vertex(self, vertex: Vertex) -> None:
        """
        頂点を登録し、ノードの重みを総重みに加算します。

        Args:
            vertex: 登録する頂点

        Raises:
            DuplicateVertexError: 同じノードの頂点が既に登録されている場合（上書きしない）
        """
        index = vertex.node.index
        if index in self._vertices:
            raise DuplicateVertexError(f"vertex for node {index} already exists")
        self._vertices[index] = vertex
        self._order.append(vertex)
        self._total_weight += vertex.node.weight
        self._components = None

    def add_edge(
        self, vertex: Vertex, destination: Node, pheromone: Optional[float] = None
    ) -> Edge:
        """
        頂点のノードから宛先ノードへの有向エッジを追加します。

        Args:
            vertex: 始点の頂点
            destination: 宛先ノード
            pheromone: フェロモン初期値。Noneの場合はinitial_pheromoneを使用

        Returns:
            追加されたエッジ

        Note:
            - 逆向きのエッジは自動では登録されません。無向グラフとして扱う場合、
              呼び出し側が両方向を登録します。
            - 同じ宛先へのエッジが既にある場合は置き換え、エッジ数は増えません。
        """
        if pheromone is None:
            pheromone = self.initial_pheromone
        if pheromone < 0:
            raise ValueError(f"pheromone must be non-negative, got {pheromone}")
        if vertex.get_edge(destination) is None:
            self._directed_edges += 1
        edge = vertex.add_edge(destination, pheromone)
        self._components = None
        return edge

    # ---- 検索 --------------------------------------------------------------
    def get_vertex(self, node: Node) -> Optional[Vertex]:
        """
        ノードに対応する頂点をO(1)で取得します。

        Returns:
            頂点。登録されていないノードの場合はNone（呼び出し側のプログラミングエラー）
        """
        return self._vertices.get(node.index)

    def get_vertices(self) -> Tuple[Node, ...]:
        """全ノードを挿入順のタプルで返します。"""
        return tuple(vertex.node for vertex in self._order)

    def get_edge(self, source: Node, destination: Node) -> Optional[Edge]:
        vertex = self._vertices.get(source.index)
        if vertex is None:
            return None
        return vertex.get_edge(destination)

    def edge_pair(self, a: Node, b: Node) -> List[Edge]:
        """a → b と b → a のうち、存在するエッジを返します。"""
        return [
            edge
            for edge in (self.get_edge(a, b), self.get_edge(b, a))
            if edge is not None
        ]

    def edges(self) -> Iterator[Edge]:
        """全有向エッジを頂点の挿入順に返します。"""
        for vertex in self._order:
            yield from vertex

    # ---- 到達可能性 --------------------------------------------------------
    def to_networkx(self) -> nx.Graph:
        """
        トポロジを無向のNetworkXグラフとして返します。

        ノードはインデックス、ノード属性は "pos" と "weight"、
        エッジ属性は "pheromone"（a → b 方向の値）です。
        """
        graph = nx.Graph()
        for vertex in self._order:
            node = vertex.node
            graph.add_node(node.index, pos=(node.x, node.y), weight=node.weight)
        for edge in self.edges():
            if not graph.has_edge(edge.source.index, edge.destination.index):
                graph.add_edge(
                    edge.source.index, edge.destination.index, pheromone=edge.pheromone
                )
        return graph

    def reachable_from(self, node: Node) -> FrozenSet[int]:
        """
        ノードと同じ連結成分に属するノードのインデックス集合を返します。

        Note:
            - エッジの向きは無視します（両方向のエッジが対で登録される前提）
            - 探索スレッドから同時に呼ばれるため、キャッシュの構築はロックで保護します
        """
        components = self._components
        if components is None:
            with self._components_lock:
                components = self._components
                if components is None:
                    components = {}
                    for component in nx.connected_components(self.to_networkx()):
                        members = frozenset(component)
                        for index in members:
                            components[index] = members
                    self._components = components
        return components.get(node.index, frozenset())

    # ---- コスト --------------------------------------------------------------
    @staticmethod
    def get_distance(a: Node, b: Node) -> float:
        """2ノード間のマンハッタン距離 |dx| + |dy|"""
        return abs(a.x - b.x) + abs(a.y - b.y)

    @staticmethod
    def get_required_energy(a: Node, b: Node, current_weight: float) -> float:
        """
        current_weightを積載した状態でエッジ(a, b)を移動する際の必要エネルギー

        (current_weight + 1) * マンハッタン距離
        """
        return (current_weight + 1) * Graph.get_distance(a, b)

    def __iter__(self) -> Iterator[Vertex]:
        return iter(self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __repr__(self) -> str:
        return (
            f"Graph(nodes={self.total_vertices}, edges={self.total_edges}, "
            f"weight={self.total_weight:g})"
        )

"""
アリ（Ant）クラス

ACOにおける探索エージェントを表現するモジュール。

【アリの役割】
ランダムに選ばれたスタートノードから、グラフの全ノードをちょうど1回ずつ訪問する
ツアーを構築し、積載重みを考慮したツアーコストを自分で計算する。

【状態遷移】
UNSTARTED → TRAVELING → FINISHED
- start()でスタートノードに配置され TRAVELING になる
- 全ノードを訪問した時点で FINISHED になる

【経路選択】
未訪問ノードへの各エッジeについて
    weight(e) = pheromone(e)^α × (1 / distance(e))^β
を計算し、ルーレット選択で次のエッジを決める（貪欲なargmaxではない）。
未訪問の隣接ノードがない場合は、同じ連結成分の最も近い未訪問ノードへ移動する。

【コスト】
各ステップで getRequiredEnergy(前のノード, 次のノード, 現在の積載重み) を加算し、
移動先ノードの重みを積載重みに加える。ツアーは開路として評価し、
スタートノードへ戻る移動は含めない。
"""

import random
from enum import Enum
from typing import List, Optional, Set, Tuple

from ..exceptions import IncompleteTourError
from .graph import Edge, Graph
from .node import Node


class AntState(Enum):
    UNSTARTED = "unstarted"
    TRAVELING = "traveling"
    FINISHED = "finished"


class Ant:
    """
    ACOにおけるアリを表現するクラス

    各アリはグラフへの参照（所有はしない）を持ち、独立にツアーを構築します。
    探索中はフェロモンを読み取るだけで、書き込みは行いません。

    Attributes:
        ant_id (int): アリの識別子（世代内で一意）
        graph (Graph): 探索対象のグラフ
        rng (random.Random): このアリ専用の乱数生成器
        start_node (Node): 開始ノード
        current_node (Optional[Node]): 現在のノード（開始前はNone）
        route (List[Node]): 訪問済みノードの列（ツアー）
        visited (Set[int]): 訪問済みノードのインデックス集合
        energy (float): 累積コスト（必要エネルギーの合計）
        load (float): 現在の積載重み
        state (AntState): 状態

    Example:
        >>> ant = Ant(graph, ant_id=0, rng=random.Random(1))
        >>> ant.run()
        >>> len(ant.get_tour()) == graph.total_vertices
        True
    """

    def __init__(
        self,
        graph: Graph,
        ant_id: int = 0,
        start_node: Optional[Node] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            graph: 探索対象のグラフ
            ant_id: アリの識別子
            start_node: 開始ノード。Noneの場合はグラフのノードからランダムに選択
            rng: 乱数生成器。Noneの場合は新しく生成

        Raises:
            IncompleteTourError: グラフにノードが1つもない場合
        """
        if graph.is_empty():
            raise IncompleteTourError("cannot place an ant on an empty graph")
        self.ant_id = ant_id
        self.graph = graph
        self.rng = rng if rng is not None else random.Random()
        self.start_node = (
            start_node
            if start_node is not None
            else self.rng.choice(graph.get_vertices())
        )
        self.current_node: Optional[Node] = None

        self.route: List[Node] = []
        self.visited: Set[int] = set()
        self.energy: float = 0.0
        self.load: float = 0.0
        self.state = AntState.UNSTARTED

    def start(self) -> None:
        """スタートノードに配置し、探索を開始します。"""
        if self.state is not AntState.UNSTARTED:
            raise RuntimeError(f"ant {self.ant_id} has already started")
        self.state = AntState.TRAVELING
        self._visit(self.start_node)

    def travel(self) -> None:
        """
        1ステップ移動します（TRAVELING状態でのみ呼び出し可能）。

        Raises:
            RuntimeError: TRAVELING状態でない場合
            IncompleteTourError: 到達可能な未訪問ノードが残っていない場合
        """
        if self.state is not AntState.TRAVELING:
            raise RuntimeError(f"ant {self.ant_id} cannot travel while {self.state.value}")

        vertex = self.graph.get_vertex(self.current_node)
        candidates = [edge for edge in vertex if edge.destination.index not in self.visited]

        if candidates:
            next_node = self._choose_edge(candidates).destination
        else:
            # 隣接ノードが全て訪問済み：エッジを使わずに移動
            next_node = self._fallback_node()

        self.move_to(next_node)

    def run(self) -> None:
        """ツアーが完成するまで移動を繰り返します。"""
        if self.state is AntState.UNSTARTED:
            self.start()
        while self.not_finished():
            self.travel()

    def move_to(self, next_node: Node) -> None:
        """
        次のノードへ移動し、コストと積載重みを更新します。

        【更新順序】
        1. 現在の積載重みで必要エネルギーを計算して加算
        2. 移動先ノードの重みを積載重みに加算
        """
        self.energy += Graph.get_required_energy(self.current_node, next_node, self.load)
        self._visit(next_node)

    def _visit(self, node: Node) -> None:
        self.route.append(node)
        self.visited.add(node.index)
        if self.current_node is not None:
            self.load += node.weight
        self.current_node = node
        if len(self.route) == self.graph.total_vertices:
            self.state = AntState.FINISHED

    def _choose_edge(self, candidates: List[Edge]) -> Edge:
        """
        ルーレット選択で次のエッジを選びます。

        式: p(e) = τ_e^α · (1 / d_e)^β / Σ τ^α · (1 / d)^β

        Note:
            - 距離0のエッジ（座標が一致するノード）はヒューリスティックが無限大になるため、
              存在する場合はそれらのみをフェロモンで重み付けして選択します
            - 重みが全て0の場合は一様ランダムに選択します
        """
        alpha = self.graph.alpha
        beta = self.graph.beta

        free_moves = [
            edge
            for edge in candidates
            if Graph.get_distance(edge.source, edge.destination) == 0
        ]
        if free_moves:
            candidates = free_moves
            weights = [edge.pheromone**alpha for edge in candidates]
        else:
            weights = [
                (edge.pheromone**alpha)
                * ((1.0 / Graph.get_distance(edge.source, edge.destination)) ** beta)
                for edge in candidates
            ]

        if sum(weights) == 0:
            return self.rng.choice(candidates)

        return self.rng.choices(candidates, weights=weights, k=1)[0]

    def _fallback_node(self) -> Node:
        """
        同じ連結成分内で最も近い未訪問ノードを返します（同距離なら挿入順で先のもの）。

        Raises:
            IncompleteTourError: 到達可能な未訪問ノードがない（非連結グラフ）
        """
        reachable = self.graph.reachable_from(self.current_node)
        best: Optional[Node] = None
        best_distance = float("inf")
        for node in self.graph.get_vertices():
            if node.index in self.visited or node.index not in reachable:
                continue
            distance = Graph.get_distance(self.current_node, node)
            if distance < best_distance:
                best, best_distance = node, distance
        if best is None:
            raise IncompleteTourError(
                f"ant {self.ant_id} visited {len(self.route)} of "
                f"{self.graph.total_vertices} nodes and cannot reach the rest"
            )
        return best

    def not_finished(self) -> bool:
        return self.state is not AntState.FINISHED

    def has_visited(self, node: Node) -> bool:
        return node.index in self.visited

    def eval(self) -> float:
        """ツアーのコスト（開路、スタートへの帰還なし）"""
        return self.energy

    def get_tour(self) -> List[Node]:
        return list(self.route)

    def get_route_edges(self) -> List[Tuple[Node, Node]]:
        """
        経路の連続するノード対を返します。

        Example:
            >>> [(a.index, b.index) for a, b in ant.get_route_edges()]
            [(0, 1), (1, 2), (2, 3)]
        """
        return [(self.route[i], self.route[i + 1]) for i in range(len(self.route) - 1)]

    def __repr__(self) -> str:
        current = self.current_node.index if self.current_node is not None else None
        return (
            f"Ant(id={self.ant_id}, state={self.state.value}, current={current}, "
            f"route_len={len(self.route)}, E={self.energy:.1f}, W={self.load:g})"
        )

"""
フェロモン更新ロジック

【更新規則】（世代終了時に、その世代の全アリを使って1回だけ実行）
1. 強化：各アリの経路上の連続するノード対(prev, next)について、
   両方向のエッジ prev→next と next→prev を更新する
   - その回の更新で初めて触れるエッジ： τ ← (1 - ρ)·τ + Q / L
   - 既に他のアリが触れたエッジ：       τ ← τ + Q / L
   （前のアリの更新後の値に加算するため、集団全体の寄与が累積される）
2. 揮発：どのアリも通らなかったエッジ： τ ← (1 - ρ)·τ

【2段階構成】
まず全アリの経路から触れたエッジの集合を作り、その後で残りのエッジを揮発させる。

L はアリのツアーコスト（開路）、ρ はグラフの揮発率、Q は付加係数。
"""

from typing import Iterable, Set

from ..core.ant import Ant
from ..core.graph import Edge, Graph
from ..exceptions import IncompleteTourError


class PheromoneUpdater:
    """
    フェロモン更新を管理するクラス

    Attributes:
        deposit_factor (float): 付加係数Q（1アリあたりの付加量は Q / ツアーコスト）
    """

    def __init__(self, deposit_factor: float = 1.0):
        """
        Args:
            deposit_factor: 付加係数Q（正の値）
        """
        if deposit_factor <= 0:
            raise ValueError(f"deposit factor must be positive, got {deposit_factor}")
        self.deposit_factor = deposit_factor

    def update(self, graph: Graph, ants: Iterable[Ant]) -> Set[Edge]:
        """
        世代の全アリからフェロモンを更新します。

        Args:
            graph: ルーティンググラフ（この間、探索中のアリは存在しないこと）
            ants: ツアーを完成させたアリ

        Returns:
            この更新で強化されたエッジの集合

        Raises:
            IncompleteTourError: ツアーが未完成のアリが含まれる場合

        Note:
            - ツアーコストが0以下のアリは付加を行いません
            - 対応するエッジがないノード対（行き止まりからの移動）は付加の対象外です
        """
        retention = 1.0 - graph.evaporation_rate
        touched: Set[Edge] = set()

        # 【Step 1】経路上のエッジを強化
        for ant in ants:
            if ant.not_finished():
                raise IncompleteTourError(
                    f"ant {ant.ant_id} has not completed its tour"
                )
            cost = ant.eval()
            if cost <= 0:
                continue
            delta = self.deposit_factor / cost

            for prev, nxt in ant.get_route_edges():
                for edge in graph.edge_pair(prev, nxt):
                    if edge in touched:
                        edge.pheromone += delta
                    else:
                        edge.pheromone = retention * edge.pheromone + delta
                        touched.add(edge)

        # 【Step 2】残りのエッジを揮発
        for edge in graph.edges():
            if edge not in touched:
                edge.pheromone *= retention

        return touched

"""
Colony Solverモジュール

世代ループを駆動し、アリの探索を並列に実行して暫定解を追跡します。

【アルゴリズム概要】
1. 各世代でアリの集団を生成し、それぞれランダムなスタートノードに配置
2. 集団を worker_count 個の連続したスライスに分割し、スレッドプールで並列に探索
   （各ワーカーは自分のスライスのアリを順番に最後まで走らせる）
3. 全ワーカーの終了を待つ（バリア）
4. 世代内でコスト最小のアリを選び（同コストなら先に現れたもの）、
   それまでの暫定解より真に小さい場合のみ暫定解を置き換える
5. 世代の全アリを使ってフェロモンを更新（最良のアリだけではない）

【並行性の規約】
- 探索中、フェロモンは全アリから読み取られるだけで書き込まれない
- フェロモン更新はバリアの後、単一スレッドで実行される
これにより、探索のホットパスでロックを取る必要がない。

【再現性】
スタートノードと各アリの乱数シードは、ソルバーの乱数生成器からメインスレッドで
順番に引くため、seedが同じならワーカー数に関係なく同じ結果になる。
"""

import random
from concurrent.futures import Executor, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from ..core.ant import Ant
from ..core.graph import Graph
from ..core.node import Node
from ..exceptions import IncompleteTourError, InvalidConfigurationError
from ..modules.pheromone import PheromoneUpdater
from ..utils.metrics import MetricsCalculator


@dataclass
class GenerationResult:
    """
    1世代の結果

    Attributes:
        generation: 世代インデックス（0始まり）
        best_tour: この世代の最良ツアー
        best_cost: この世代の最良コスト
        incumbent_tour: この世代終了時点の暫定解
        incumbent_cost: 暫定解のコスト
        improved: この世代で暫定解が改善されたか
        costs: 全アリのコスト（集団内の順序）
        statistics: コスト統計（mean, std, min, max）
    """

    generation: int
    best_tour: List[Node]
    best_cost: float
    incumbent_tour: List[Node]
    incumbent_cost: float
    improved: bool
    costs: List[float]
    statistics: Dict[str, float] = field(default_factory=dict)


@dataclass
class RunResult:
    """
    実行全体の結果

    Attributes:
        best_tour: 全世代を通じた最良ツアー
        best_cost: そのコスト
        best_generation: 最良ツアーが見つかった世代
        generations: 実行した世代数
        history: 各世代終了時の暫定解コスト
        results: 各世代の結果
    """

    best_tour: List[Node]
    best_cost: float
    best_generation: int
    generations: int
    history: List[float]
    results: List[GenerationResult]


def _travel_slice(ants: Sequence[Ant]) -> int:
    """
    スライス内のアリを順番にツアー完成まで走らせ、最良のアリの位置を返す。

    同コストの場合は先に現れたアリを優先する。
    """
    best_position = 0
    best_cost = float("inf")
    for position, ant in enumerate(ants):
        ant.run()
        cost = ant.eval()
        if cost < best_cost:
            best_position, best_cost = position, cost
    return best_position


class ColonySolver:
    """
    世代ループを管理するACOソルバー

    Attributes:
        graph (Graph): 探索対象のグラフ（実行中はこのソルバーが使用）
        num_ants (int): 1世代あたりのアリ数
        generations (int): 世代数
        worker_count (int): 並列ワーカー数
        rng (random.Random): スタートノードとアリのシードを生成する乱数生成器
        pheromone_updater (PheromoneUpdater): フェロモン更新ロジック
        metrics (MetricsCalculator): コスト統計の計算
        verbose (bool): 世代ごとの進捗を表示するか
    """

    def __init__(
        self,
        graph: Graph,
        num_ants: int,
        generations: int,
        worker_count: int = 1,
        seed: Optional[int] = None,
        deposit_factor: float = 1.0,
        verbose: bool = False,
    ):
        """
        Args:
            graph: 構築済みのグラフ
            num_ants: 1世代あたりのアリ数（正の整数）
            generations: 世代数（正の整数）
            worker_count: 並列ワーカー数（正の整数）
            seed: 乱数シード
            deposit_factor: フェロモン付加係数Q
            verbose: 進捗表示

        Raises:
            InvalidConfigurationError: アリ数・世代数・ワーカー数が正でない場合
        """
        for name, value in (
            ("ants", num_ants),
            ("generations", generations),
            ("worker_count", worker_count),
        ):
            if value <= 0:
                raise InvalidConfigurationError(f"{name} must be positive, got {value}")

        self.graph = graph
        self.num_ants = num_ants
        self.generations = generations
        self.worker_count = worker_count
        self.rng = random.Random(seed)
        self.pheromone_updater = PheromoneUpdater(deposit_factor)
        self.metrics = MetricsCalculator()
        self.verbose = verbose

    @classmethod
    def from_config(cls, config: Dict, graph: Graph) -> "ColonySolver":
        """設定辞書からソルバーを生成"""
        aco = config["aco"]
        return cls(
            graph,
            num_ants=aco["ants"],
            generations=aco["generations"],
            worker_count=aco["worker_count"],
            seed=config.get("experiment", {}).get("seed"),
            deposit_factor=aco.get("deposit_factor", 1.0),
            verbose=config.get("output", {}).get("verbose", False),
        )

    def create_ants(self, quantity: int) -> List[Ant]:
        """
        アリを生成し、ランダムなスタートノードに配置する

        Raises:
            IncompleteTourError: グラフが空の場合
        """
        if self.graph.is_empty():
            raise IncompleteTourError("graph has no nodes to tour")
        nodes = self.graph.get_vertices()
        ants = []
        for ant_id in range(quantity):
            start_node = self.rng.choice(nodes)
            ant_rng = random.Random(self.rng.getrandbits(64))
            ants.append(Ant(self.graph, ant_id, start_node, ant_rng))
        return ants

    def travel(self, ants: List[Ant], executor: Executor) -> Ant:
        """
        アリの集団を並列に走らせ、世代の最良のアリを返す

        【分割】numpy.array_splitで連続したスライスに分割（サイズの差は最大1）
        【バリア】全スライスの完了を待ってから結果を読む

        Raises:
            IncompleteTourError: 集団が空、またはツアーを完成できないアリがいる場合
        """
        if not ants:
            raise IncompleteTourError("generation has no ants")

        slices = [
            ants[int(chunk[0]) : int(chunk[-1]) + 1]
            for chunk in np.array_split(np.arange(len(ants)), self.worker_count)
            if len(chunk) > 0
        ]
        futures = [executor.submit(_travel_slice, chunk) for chunk in slices]
        wait(futures)

        best_ant: Optional[Ant] = None
        for chunk, future in zip(slices, futures):
            # ワーカー内の例外はここで再送出される
            ant = chunk[future.result()]
            if best_ant is None or ant.eval() < best_ant.eval():
                best_ant = ant
        return best_ant

    def run_generation(
        self,
        generation: int,
        executor: Executor,
        incumbent_tour: List[Node],
        incumbent_cost: float,
    ) -> GenerationResult:
        """1世代（生成 → 並列探索 → 選択 → フェロモン更新）を実行"""
        ants = self.create_ants(self.num_ants)
        best_ant = self.travel(ants, executor)

        best_cost = best_ant.eval()
        improved = best_cost < incumbent_cost
        if improved:
            incumbent_tour = best_ant.get_tour()
            incumbent_cost = best_cost

        costs = [ant.eval() for ant in ants]

        # 【フェロモン更新】全ワーカー終了後に、集団全体から更新
        self.pheromone_updater.update(self.graph, ants)

        return GenerationResult(
            generation=generation,
            best_tour=best_ant.get_tour(),
            best_cost=best_cost,
            incumbent_tour=incumbent_tour,
            incumbent_cost=incumbent_cost,
            improved=improved,
            costs=costs,
            statistics=self.metrics.calculate_cost_statistics(costs),
        )

    def run(
        self, on_generation: Optional[Callable[[GenerationResult], None]] = None
    ) -> RunResult:
        """
        ACOを実行

        Args:
            on_generation: 各世代の終了時に GenerationResult を受け取るコールバック
                           （描画などの外部処理用）

        Returns:
            実行結果

        Raises:
            IncompleteTourError: いずれかの世代でツアーが完成しなかった場合（実行を中断）
        """
        incumbent_tour: List[Node] = []
        incumbent_cost = float("inf")
        best_generation = 0
        history: List[float] = []
        results: List[GenerationResult] = []

        with ThreadPoolExecutor(max_workers=self.worker_count) as executor:
            for generation in range(self.generations):
                result = self.run_generation(
                    generation, executor, incumbent_tour, incumbent_cost
                )
                incumbent_tour = result.incumbent_tour
                incumbent_cost = result.incumbent_cost
                if result.improved:
                    best_generation = generation

                history.append(incumbent_cost)
                results.append(result)

                if self.verbose:
                    marker = " *" if result.improved else ""
                    print(
                        f"世代 {generation}: best={result.best_cost:.1f}, "
                        f"incumbent={incumbent_cost:.1f}, "
                        f"mean={result.statistics['mean']:.1f}{marker}"
                    )

                if on_generation is not None:
                    on_generation(result)

        return RunResult(
            best_tour=incumbent_tour,
            best_cost=incumbent_cost,
            best_generation=best_generation,
            generations=self.generations,
            history=history,
            results=results,
        )

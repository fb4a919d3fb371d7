"""
評価指標モジュール

世代ごとのツアーコスト統計、収束世代、参照コストとのギャップを計算します。
"""

from typing import Dict, List, Optional, Sequence

import numpy as np


class MetricsCalculator:
    """
    評価指標を計算するクラス

    Attributes:
        reference_cost (Optional[float]): 既知の参照コスト（ギャップ計算用、未知ならNone）
    """

    def __init__(self, reference_cost: Optional[float] = None):
        self.reference_cost = reference_cost

    @staticmethod
    def calculate_cost_statistics(costs: Sequence[float]) -> Dict[str, float]:
        """
        世代内の全アリのコスト統計を計算

        Returns:
            {"mean", "std", "min", "max"} の辞書。空の場合は全てnan
        """
        if len(costs) == 0:
            nan = float("nan")
            return {"mean": nan, "std": nan, "min": nan, "max": nan}
        values = np.asarray(costs, dtype=float)
        return {
            "mean": float(values.mean()),
            "std": float(values.std()),
            "min": float(values.min()),
            "max": float(values.max()),
        }

    @staticmethod
    def calculate_convergence_generation(history: Sequence[float]) -> Optional[int]:
        """
        最終的な暫定解のコストに初めて到達した世代を返す

        Args:
            history: 各世代終了時の暫定解コストの列

        Returns:
            世代インデックス（0始まり）。履歴が空の場合はNone
        """
        if len(history) == 0:
            return None
        values = np.asarray(history, dtype=float)
        return int(np.flatnonzero(values <= values[-1])[0])

    def calculate_gap(self, cost: float) -> Optional[float]:
        """参照コストに対する相対ギャップ (cost - ref) / ref"""
        if self.reference_cost is None or self.reference_cost <= 0:
            return None
        return (cost - self.reference_cost) / self.reference_cost

    @staticmethod
    def calculate_improvement_generations(history: Sequence[float]) -> List[int]:
        """暫定解が改善された世代のリスト（最初の世代を含む）"""
        if len(history) == 0:
            return []
        values = np.asarray(history, dtype=float)
        improved = np.flatnonzero(np.diff(values) < 0) + 1
        return [0] + improved.tolist()

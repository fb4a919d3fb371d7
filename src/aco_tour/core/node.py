"""
ノードモジュール

2次元座標と重み（その地点での積載量・需要）を持つノードを定義します。
ノードは生成時に割り当てられた整数インデックスで識別され、
座標が一致していても別のインデックスを持つノードは等しくありません。
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Node:
    """
    グラフのノード（不変）

    Attributes:
        index (int): 生成時に割り当てられる一意なインデックス（等価性・ハッシュに使用）
        x (float): x座標
        y (float): y座標
        weight (float): このノードで積み込む重み

    Example:
        >>> a = Node(0, 0.0, 0.0)
        >>> b = Node(1, 0.0, 0.0)
        >>> a == b
        False
    """

    index: int
    x: float = field(default=0.0, compare=False)
    y: float = field(default=0.0, compare=False)
    weight: float = field(default=0.0, compare=False)

    def __repr__(self) -> str:
        return f"Node({self.index}, x={self.x:g}, y={self.y:g}, w={self.weight:g})"

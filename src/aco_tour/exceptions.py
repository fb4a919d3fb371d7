"""
例外モジュール

ACOツアー探索で送出される例外を定義します。
いずれも実行全体にとって致命的であり、コア内部で再試行や握りつぶしは行いません。
"""


class AcoTourError(Exception):
    """aco_tourパッケージの例外の基底クラス"""


class DuplicateVertexError(AcoTourError):
    """同じノードに対する頂点が既にグラフに登録されている"""


class IncompleteTourError(AcoTourError):
    """アリが全ノードを巡回するツアーを完成できない（空グラフ・非連結グラフ）"""


class InvalidConfigurationError(AcoTourError):
    """設定値が不正（アリ数・世代数が正でない、揮発率が[0, 1]の範囲外など）"""

"""
設定モジュール

config.yamlを読み込み、既定値とマージして検証します。
"""

import copy
from pathlib import Path
from typing import Dict, Optional, Union

import yaml

from ..exceptions import InvalidConfigurationError
from ..modules.graph_builder import GRAPH_TYPES

DEFAULT_CONFIG: Dict = {
    "experiment": {
        "name": "weighted_tour",
        "simulations": 1,
        "seed": None,
    },
    "aco": {
        "ants": 40,
        "generations": 100,
        "evaporation": 0.1,
        "alpha": 1.0,
        "beta": 2.0,
        "worker_count": 4,
        "initial_pheromone": 1.0,
        "deposit_factor": 1.0,
    },
    "graph": {
        "graph_type": "complete",
        "num_nodes": 20,
        "scale": 100,
        "radius": 0.3,
        "weight_range": [0, 3],
    },
    "output": {
        "results_dir": "results",
        "verbose": True,
    },
}


def _merge(base: Dict, override: Dict) -> Dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict:
    """
    設定ファイルを読み込む

    Args:
        config_path: 設定ファイルのパス。Noneの場合は既定値のみを使用

    Returns:
        既定値とマージ済みで検証済みの設定辞書
    """
    override: Dict = {}
    if config_path is not None:
        with open(config_path, "r", encoding="utf-8") as f:
            override = yaml.safe_load(f) or {}
    config = _merge(DEFAULT_CONFIG, override)
    validate_config(config)
    return config


def validate_config(config: Dict) -> None:
    """
    設定値を検証する

    Raises:
        InvalidConfigurationError: アリ数・世代数・ワーカー数が正でない、
            揮発率が[0, 1]の範囲外、指数やフェロモン初期値が負、付加係数が正でない、
            未知のグラフタイプ
    """
    aco = config["aco"]

    for key in ("ants", "generations", "worker_count"):
        value = aco[key]
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise InvalidConfigurationError(
                f"aco.{key} must be a positive integer, got {value!r}"
            )

    if not 0.0 <= aco["evaporation"] <= 1.0:
        raise InvalidConfigurationError(
            f"aco.evaporation must be within [0, 1], got {aco['evaporation']}"
        )

    for key in ("alpha", "beta", "initial_pheromone"):
        if aco[key] < 0:
            raise InvalidConfigurationError(
                f"aco.{key} must be non-negative, got {aco[key]}"
            )

    if aco["deposit_factor"] <= 0:
        raise InvalidConfigurationError(
            f"aco.deposit_factor must be positive, got {aco['deposit_factor']}"
        )

    graph_type = config["graph"]["graph_type"]
    if graph_type not in GRAPH_TYPES:
        raise InvalidConfigurationError(f"Unknown graph type: {graph_type}")

"""
実験実行スクリプト

config.yamlの設定に基づきグラフを生成し、ACOを実行して結果をCSVに保存します。
"""

import csv
import random
import sys
from datetime import datetime
from pathlib import Path

# プロジェクトルートをPythonパスに追加
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from aco_tour.algorithms.colony_solver import ColonySolver, RunResult
from aco_tour.modules.graph_builder import generate_graph
from aco_tour.utils.config import load_config
from aco_tour.utils.metrics import MetricsCalculator


def run_single_simulation(config: dict, sim: int, num_simulations: int) -> RunResult:
    """
    1回のシミュレーションを実行

    Args:
        config: 設定辞書
        sim: シミュレーション番号（0-indexed）
        num_simulations: 総シミュレーション数

    Returns:
        実行結果
    """
    print(f"\n{'='*80}")
    print(f"Simulation {sim + 1}/{num_simulations}")
    print(f"{'='*80}")

    # シミュレーションごとにシードをずらす
    seed = config["experiment"]["seed"]
    sim_seed = None if seed is None else seed + sim
    sim_config = {**config, "experiment": {**config["experiment"], "seed": sim_seed}}

    graph = generate_graph(sim_config, random.Random(sim_seed))
    print(f"Graph: {graph}")

    print("Running ACO...")
    solver = ColonySolver.from_config(sim_config, graph)
    result = solver.run()

    tour = " -> ".join(str(node.index) for node in result.best_tour)
    print(f"Best Tour: {tour}")
    print(f"Evaluation: {result.best_cost:.1f} (generation {result.best_generation})")

    return result


def write_generation_log(log_csv_path: Path, sim: int, result: RunResult) -> None:
    """世代ごとの結果をCSVに追記"""
    with open(log_csv_path, "a", newline="") as f:
        writer = csv.writer(f)
        for gen in result.results:
            writer.writerow(
                [
                    sim,
                    gen.generation,
                    gen.best_cost,
                    gen.incumbent_cost,
                    gen.statistics["mean"],
                    gen.statistics["std"],
                    int(gen.improved),
                ]
            )


def main():
    """メイン実験ループ"""
    # ===== 設定読み込み =====
    config_path = project_root / "config" / "config.yaml"
    config = load_config(config_path)

    print("=" * 80)
    print(f"Experiment: {config['experiment']['name']}")
    print(f"ACO: {config['aco']}")
    print("=" * 80)

    # ===== 出力ディレクトリの作成 =====
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    results_dir = project_root / config["output"]["results_dir"] / timestamp
    results_dir.mkdir(parents=True, exist_ok=True)
    print(f"Results directory: {results_dir}\n")

    # ===== CSVログファイルの初期化 =====
    log_csv_path = results_dir / "log_generation.csv"
    with open(log_csv_path, "w", newline="") as f:
        csv.writer(f).writerow(
            ["simulation", "generation", "best", "incumbent", "mean", "std", "improved"]
        )

    num_simulations = config["experiment"]["simulations"]
    metrics_calculator = MetricsCalculator()
    best_costs = []

    for sim in range(num_simulations):
        result = run_single_simulation(config, sim, num_simulations)
        write_generation_log(log_csv_path, sim, result)
        best_costs.append(result.best_cost)

        convergence = metrics_calculator.calculate_convergence_generation(result.history)
        print(f"Convergence Generation: {convergence}")

    # ===== 結果の集計 =====
    print(f"\n{'='*80}")
    print("Summary of All Simulations")
    print(f"{'='*80}")
    summary = metrics_calculator.calculate_cost_statistics(best_costs)
    print(f"Average Best Cost: {summary['mean']:.1f} (std {summary['std']:.1f})")
    print(f"Min / Max: {summary['min']:.1f} / {summary['max']:.1f}")

    print(f"\n✅ Experiment completed! Results saved to: {results_dir}")
    print(f"📊 CSV Log: {log_csv_path}")


if __name__ == "__main__":
    main()

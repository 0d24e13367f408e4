"""CLI helper to run an output analysis experiment on the single-server queue model."""

import argparse
import json
from pathlib import Path
from typing import Any, Dict

from configs import load_config, merge_configs
from simanalysis import BatchMeans, IndependentReplications
from simanalysis.models import SingleServerQueue
from simanalysis.utils import plot_batch_means, plot_results

PROJECT_ROOT = Path(__file__).resolve().parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "configs" / "default.yaml"


def ensure_full_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Ensure simulation, model and analysis settings exist by merging defaults."""
    if config.get("simulation") and config.get("model") and config.get("analysis"):
        return config

    if not DEFAULT_CONFIG_PATH.exists():
        raise ValueError(
            "Simulation/model/analysis settings missing and default config not found at "
            f"{DEFAULT_CONFIG_PATH}"
        )

    return merge_configs(load_config(str(DEFAULT_CONFIG_PATH)), config)


def build_runner(config: Dict[str, Any]):
    """Create the output analysis runner named by ``analysis.method``."""
    model = SingleServerQueue.from_config(config)
    method = config["analysis"].get("method", "replications")

    if method == "replications":
        return IndependentReplications.from_config(config, model)
    elif method == "batch_means":
        return BatchMeans.from_config(config, model)
    else:
        raise ValueError(f"Unknown analysis method: {method}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a simulation output analysis experiment.")
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help="Experiment config YAML path.",
    )
    parser.add_argument(
        "--method",
        choices=["replications", "batch_means"],
        help="Override the analysis method of the config.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Override the random seed of the config.",
    )
    parser.add_argument(
        "--output_dir",
        help="Directory where plots are written (no plots if omitted).",
    )
    args = parser.parse_args()

    config_path = Path(args.config)
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    cfg = ensure_full_config(load_config(str(config_path)))
    if args.method:
        cfg["analysis"]["method"] = args.method
    if args.seed is not None:
        cfg["simulation"]["random_seed"] = args.seed

    runner = build_runner(cfg)
    result = runner.run()

    if args.output_dir:
        plot_results(result, Path(args.output_dir))
        if isinstance(runner, BatchMeans):
            for stat in runner.statistics:
                plot_batch_means(
                    stat.batch_means,
                    Path(args.output_dir) / f"{stat.name}_batch_means.png",
                    estimate=stat.estimate(),
                    half_width=stat.half_width(),
                )

    print("Analysis results:", json.dumps(result.to_dict(), indent=2, default=str))


if __name__ == "__main__":
    main()

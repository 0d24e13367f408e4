"""Visualization utilities for output analysis results."""

import math
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

sns.set_style("whitegrid")
sns.set_palette("husl")


def plot_results(result, output_dir: Path) -> None:
    """Generate all plots for an analysis result.

    Args:
        result: AnalysisResult returned by a runner
        output_dir: Directory to save plots
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    plot_confidence_intervals(result, output_dir / "confidence_intervals.png")

    if result.history:
        for name in result.statistics:
            plot_replication_history(result.history, output_dir / f"{name}_history.png", name)


def plot_confidence_intervals(result, output_path: Path) -> None:
    """Plot point estimates with their confidence intervals.

    Aborted statistics are drawn without an interval and marked in the label.

    Args:
        result: AnalysisResult returned by a runner
        output_path: Output file path
    """
    summaries = list(result.statistics.values())
    fig, ax = plt.subplots(figsize=(max(6, 1.5 * len(summaries)), 5))

    labels = []
    for i, summary in enumerate(summaries):
        if summary.converged:
            ax.errorbar(i, summary.estimate, yerr=summary.half_width, fmt='o',
                        color='steelblue', capsize=6, linewidth=2)
            labels.append(summary.name)
        else:
            ax.plot(i, summary.estimate, 'x', color='coral', markersize=10)
            labels.append(f"{summary.name}\n(aborted)")

    ax.set_xticks(range(len(summaries)))
    ax.set_xticklabels(labels)
    ax.set_ylabel('Estimate')
    ax.set_title(f'Estimates ({result.outcome.value})')
    ax.grid(axis='y', alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close()


def plot_replication_history(history: List[Dict], output_path: Path,
                             statistic: Optional[str] = None) -> None:
    """Plot the across-replication estimate and interval after each replication.

    Args:
        history: Runner history (one record per replication)
        output_path: Output file path
        statistic: Statistic to plot (defaults to the first one recorded)
    """
    if not history:
        return
    if statistic is None:
        statistic = next(k for k, v in history[0].items() if isinstance(v, dict))

    replications = np.array([record['replication'] for record in history])
    estimates = np.array([record[statistic]['estimate'] for record in history])
    half_widths = np.array([record[statistic]['half_width'] for record in history])
    finite = np.isfinite(half_widths)

    fig, ax = plt.subplots(figsize=(10, 5))
    ax.plot(replications, estimates, marker='o', linewidth=2, label='Estimate')
    if finite.any():
        ax.fill_between(replications[finite],
                        estimates[finite] - half_widths[finite],
                        estimates[finite] + half_widths[finite],
                        alpha=0.3, label='Confidence interval')
    ax.set_xlabel('Replication')
    ax.set_ylabel(statistic)
    ax.set_title(f'Convergence of {statistic}')
    ax.legend()
    ax.grid(alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close()


def plot_batch_means(batch_means: Sequence[float], output_path: Path,
                     estimate: float = None, half_width: float = None) -> None:
    """Plot the sequence of batch means and their lag-1 scatter.

    Args:
        batch_means: Batch means in collection order
        output_path: Output file path
        estimate: Mean of batch means to draw as a reference line
        half_width: Half-width of its confidence interval
    """
    batch_means = np.asarray(batch_means, dtype=float)
    if batch_means.size == 0:
        return

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 5))

    ax1.plot(np.arange(1, batch_means.size + 1), batch_means, linewidth=1.5, color='steelblue')
    if estimate is not None:
        ax1.axhline(estimate, color='coral', linestyle='--', label='Mean of batch means')
        if half_width is not None and not math.isinf(half_width):
            ax1.axhspan(estimate - half_width, estimate + half_width, color='coral', alpha=0.2)
        ax1.legend()
    ax1.set_xlabel('Batch')
    ax1.set_ylabel('Batch mean')
    ax1.set_title('Batch Means')
    ax1.grid(alpha=0.3)

    if batch_means.size > 1:
        ax2.scatter(batch_means[:-1], batch_means[1:], s=12, alpha=0.6, color='lightgreen',
                    edgecolor='darkgreen')
    ax2.set_xlabel('Batch mean i')
    ax2.set_ylabel('Batch mean i+1')
    ax2.set_title('Lag-1 Scatter')
    ax2.grid(alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close()

"""Utility functions and helpers."""

from .logger import setup_logger
from .visualization import (
    plot_batch_means,
    plot_confidence_intervals,
    plot_replication_history,
    plot_results,
)

__all__ = [
    "setup_logger",
    "plot_results",
    "plot_confidence_intervals",
    "plot_replication_history",
    "plot_batch_means",
]

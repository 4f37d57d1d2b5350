"""
Plots of a filter run: track estimate and ESS history.
"""

import numpy as np
from typing import Optional

from .filters.base import FilterResult


def plot_tracking(
    result: FilterResult,
    baseline: np.ndarray,
    sensors=None,
    true_states: Optional[np.ndarray] = None,
    path: Optional[str] = None,
    show: bool = False,
):
    """
    Two panels: (a) baseline, posterior mean and truth in the plane,
    (b) ESS against time.

    Args:
        result: FilterResult of a filter run
        baseline: [T, 2] baseline trajectory
        sensors: Optional sequence of (x, y) sensor locations
        true_states: Optional [T+1, nx] true states
        path: If given, save the figure there
        show: Call plt.show()

    Returns:
        matplotlib Figure (already closed when only saved to `path`)
    """
    import matplotlib.pyplot as plt

    fig, axes = plt.subplots(1, 2, figsize=(14, 6))

    # (a) Track
    ax = axes[0]
    ax.plot(baseline[:, 0], baseline[:, 1], ".", color="tab:gray", label="baseline", alpha=0.6)
    ax.plot(result.means[1:, 0], result.means[1:, 1], "-", color="tab:red",
            label="posterior mean", linewidth=1.5)
    if true_states is not None:
        ax.plot(true_states[:, 0], true_states[:, 1], "--", color="tab:blue",
                label="truth", linewidth=1.0)
    if sensors is not None:
        sensors = np.asarray(sensors)
        ax.plot(sensors[:, 0], sensors[:, 1], "^", color="black", markersize=9, label="sensors")
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_title("(a) Track")
    ax.legend(fontsize=8)
    ax.grid(True, alpha=0.3)

    # (b) ESS
    ax = axes[1]
    time_axis = np.arange(result.T + 1)
    ax.plot(time_axis[1:], result.ess[1:], color="tab:green", linewidth=1.5)
    if result.resampled is not None and result.resampled.any():
        steps = time_axis[result.resampled]
        ax.plot(steps, result.ess[result.resampled], "x", color="tab:orange", label="resampled")
        ax.legend(fontsize=8)
    ax.set_ylim(0, result.n_particles * 1.05)
    ax.set_xlabel("time")
    ax.set_ylabel("ESS")
    ax.set_title("(b) Effective sample size")
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    if path is not None:
        plt.savefig(path, dpi=150, bbox_inches="tight")
    if show:
        plt.show()
    elif path is not None:
        plt.close(fig)

    return fig

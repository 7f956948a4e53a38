"""Headless-safe plotting adapters."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Tuple


class PlotAdapter:
    """Collect the per-iteration cost history and optionally plot it.

    The running minimum and maximum bound the y-axis of the figure.
    """

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self._history: List[Tuple[int, float]] = []
        self.min_cost = float("inf")
        self.max_cost = float("-inf")
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    @property
    def history(self) -> List[Tuple[int, float]]:
        return list(self._history)

    def reset(self) -> None:
        self._history.clear()
        self.min_cost = float("inf")
        self.max_cost = float("-inf")

    def on_iteration(self, epoch: int, iteration: int, metrics: Mapping[str, float]) -> None:
        cost = float(metrics.get("cost", 0.0))
        self._history.append((len(self._history), cost))
        self.min_cost = min(self.min_cost, cost)
        self.max_cost = max(self.max_cost, cost)

    def close(self) -> Path | None:
        if not self.enable_plots or not self._history:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        steps, costs = zip(*self._history)
        fig, ax = plt.subplots()
        ax.plot(steps, costs)
        if self.max_cost > self.min_cost:
            ax.set_ylim(self.min_cost, self.max_cost)
        ax.set_xlabel("Iteration")
        ax.set_ylabel("Cost")
        ax.set_title("Network cost over time")
        plot_path = self.run_dir / "cost.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path


__all__ = ["PlotAdapter"]

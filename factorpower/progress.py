"""
Progress reporting for factorial power simulations.

A run advances trial by trial inside each (n, sd) cell, or a whole cell at a
time when cells come back from a process pool. ``ProgressReporter`` folds
both into one ``(current, total)`` trial count and tells cell-aware
reporters which cell has just finished.
"""

import sys
from typing import Callable, Optional, Tuple


class SimulationCancelled(Exception):
    """Raised when a run is stopped through ``cancel_check``."""


class ProgressReporter:
    """Trial counter over the cells of a grid.

    ``callback(current, total)`` fires whenever the count crosses a multiple
    of *update_every*, and once when the count reaches *total*. A callback
    object that also defines ``on_cell(n, sd, cells_done, n_cells)`` is told
    about every finished cell.

    Args:
        total: Total number of trials (``n_simulations * n_cells``).
        callback: Receives ``(current, total)``.
        n_cells: Number of cells the trials are split over.
        update_every: Trials between callbacks. Defaults to
            ``max(1, total // 200)``.
    """

    def __init__(
        self,
        total: int,
        callback: Callable[[int, int], None],
        n_cells: int = 1,
        update_every: Optional[int] = None,
    ):
        self.total = total
        self.n_cells = n_cells
        self.update_every = update_every if update_every is not None else max(1, total // 200)
        self._callback = callback
        self._on_cell = getattr(callback, "on_cell", None)
        self._current = 0
        self._cells_done = 0
        self.last_cell: Optional[Tuple[int, float]] = None

    @property
    def current(self) -> int:
        return self._current

    @property
    def cells_done(self) -> int:
        return self._cells_done

    def start(self):
        """Reset the counters and report ``0/total``."""
        self._current = 0
        self._cells_done = 0
        self.last_cell = None
        self._callback(0, self.total)

    def advance(self, n: int = 1):
        """Count *n* finished trials."""
        previous = self._current
        self._current = min(previous + n, self.total)
        crossed = self._current // self.update_every > previous // self.update_every
        if crossed or (self._current == self.total and previous < self.total):
            self._callback(self._current, self.total)

    def complete_cell(self, n: int, sd: float):
        """Mark the (n, sd) cell as finished.

        Trials of the cell that were not counted through :meth:`advance`,
        as when the cell ran in a worker process, are counted here.
        """
        self._cells_done += 1
        self.last_cell = (n, sd)
        if self._on_cell is not None:
            self._on_cell(n, sd, self._cells_done, self.n_cells)

        behind = self._cells_done * (self.total // self.n_cells) - self._current
        if behind > 0:
            self.advance(behind)

    def finish(self):
        """Report ``total/total`` unless that was already reported."""
        if self._current < self.total:
            self._current = self.total
            self._callback(self.total, self.total)


class PrintReporter:
    """Writes ``Progress:  45.2% (723/1600 trials) | cell 2/4 n=80 sd=1.5`` to stderr."""

    def __init__(self):
        self._cell = ""

    def on_cell(self, n: int, sd: float, cells_done: int, n_cells: int):
        self._cell = f" | cell {cells_done}/{n_cells} n={n} sd={sd:g}"

    def __call__(self, current: int, total: int):
        if total <= 0:
            return
        pct = 100.0 * current / total
        sys.stderr.write(f"\rProgress: {pct:5.1f}% ({current}/{total} trials){self._cell}")
        if current >= total:
            sys.stderr.write("\n")
        sys.stderr.flush()


class TqdmReporter:
    """tqdm bar counting trials, with the last finished cell as postfix.

    tqdm is imported on first use::

        model.run_grid(progress_callback=TqdmReporter(desc="grid"))
    """

    def __init__(self, **tqdm_kwargs):
        self._tqdm_kwargs = tqdm_kwargs
        self._bar = None

    def on_cell(self, n: int, sd: float, cells_done: int, n_cells: int):
        if self._bar is not None:
            self._bar.set_postfix(cell=f"{cells_done}/{n_cells}", n=n, sd=f"{sd:g}")

    def __call__(self, current: int, total: int):
        from tqdm import tqdm

        if self._bar is None:
            self._bar = tqdm(total=total, unit="trial", **self._tqdm_kwargs)

        if current > self._bar.n:
            self._bar.update(current - self._bar.n)

        if current >= total:
            self._bar.close()
            self._bar = None


def compute_total_simulations(n_simulations: int, n_cells: int = 1) -> int:
    """Number of trials in a run of *n_cells* cells."""
    return n_simulations * n_cells

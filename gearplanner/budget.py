"""Computation budgets for search workers.

A budget is split evenly across workers before the run. Each piece starts its
own clock when the worker activates it and reports how far along it is as a
fraction in [0, 1]. The fraction is exactly 1.0 once the budget is spent, so
a cooling schedule driven by it always reaches zero temperature.
"""
import time
from collections.abc import Callable


class SessionBudget:
    """Base budget: tracks activation time; subclasses define progress."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._started_at: float | None = None

    def split(self, n: int) -> list["SessionBudget"]:
        raise NotImplementedError

    def start(self) -> None:
        self._started_at = self._clock()

    @property
    def started(self) -> bool:
        return self._started_at is not None

    def elapsed(self) -> float:
        """Seconds since start(), 0.0 before activation."""
        if self._started_at is None:
            return 0.0
        return self._clock() - self._started_at

    def tick(self) -> None:
        """Record one finished iteration."""

    def progress_fraction(self) -> float:
        raise NotImplementedError

    def expired(self) -> bool:
        return self.progress_fraction() >= 1.0

    @staticmethod
    def _check_parts(n: int) -> None:
        if n < 1:
            raise ValueError(f"Cannot split a budget into {n} parts")


class DurationBudget(SessionBudget):
    """Wall-clock budget."""

    def __init__(self, total_seconds: float, clock: Callable[[], float] = time.monotonic):
        if total_seconds < 0:
            raise ValueError(f"Negative duration: {total_seconds}")
        super().__init__(clock)
        self.total_seconds = float(total_seconds)

    def split(self, n: int) -> list["DurationBudget"]:
        self._check_parts(n)
        share = self.total_seconds / n
        return [DurationBudget(share, self._clock) for _ in range(n)]

    def expired(self) -> bool:
        if self._started_at is None:
            return self.total_seconds <= 0
        return self.elapsed() >= self.total_seconds

    def progress_fraction(self) -> float:
        if self.expired():
            return 1.0
        if self._started_at is None:
            return 0.0
        return min(1.0, max(0.0, self.elapsed() / self.total_seconds))

    def remaining(self) -> float:
        return max(0.0, self.total_seconds - self.elapsed())

    def __repr__(self) -> str:
        return f"DurationBudget({self.total_seconds:g}s)"


class IterationBudget(SessionBudget):
    """Fixed number of iterations. Reproducible, which wall clock is not."""

    def __init__(self, total_iterations: int, clock: Callable[[], float] = time.monotonic):
        if total_iterations < 0:
            raise ValueError(f"Negative iteration count: {total_iterations}")
        super().__init__(clock)
        self.total_iterations = int(total_iterations)
        self.ticks = 0

    def split(self, n: int) -> list["IterationBudget"]:
        self._check_parts(n)
        share, extra = divmod(self.total_iterations, n)
        # The first `extra` parts take one iteration more
        return [
            IterationBudget(max(1, share + (1 if i < extra else 0)), self._clock)
            for i in range(n)
        ]

    def start(self) -> None:
        super().start()
        self.ticks = 0

    def tick(self) -> None:
        self.ticks += 1

    def progress_fraction(self) -> float:
        if self.ticks >= self.total_iterations:
            return 1.0
        return self.ticks / self.total_iterations

    def __repr__(self) -> str:
        return f"IterationBudget({self.total_iterations})"

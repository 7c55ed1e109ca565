"""Planner exceptions."""


class PlannerError(Exception):
    """Base class for every error raised on purpose by gearplanner."""


class SearchConfigError(PlannerError):
    """The search was set up with nothing to search or contradictory inputs."""


class EmptyPoolError(PlannerError):
    """Trimming would leave a slot without candidates."""

    def __init__(self, slot: str, min_ratio: float):
        super().__init__(f"No candidates left for slot {slot!r} at min ratio {min_ratio:g}")
        self.slot = slot
        self.min_ratio = min_ratio


class ConsistencyError(PlannerError):
    """A mutation changed the number of slot positions. Always a defect."""


class WorkerFailedError(PlannerError):
    """One or more search workers raised; the run produced no result."""

    def __init__(self, failed: dict[int, BaseException]):
        indices = ", ".join(str(i) for i in sorted(failed))
        first = failed[min(failed)]
        super().__init__(
            f"{len(failed)} search worker(s) failed (worker {indices}): "
            f"{type(first).__name__}: {first}"
        )
        self.failed = failed

"""Test doubles and builders shared across test modules."""
from gearplanner import Item

# Score contribution of each test item by name
CONTRIBUTIONS = {"X": 5.0, "Y": 8.0, "Z": 3.0, "W": 1.0}


def make_item(name: str, slot: str = "A") -> Item:
    return Item(name=name, slot=slot, min_level=28)


def additive_score(loadout) -> float:
    """Sum of per-item contributions; pure and thread-safe."""
    return sum(CONTRIBUTIONS.get(i.name, 0.0) for i in loadout.items())


class FakeClock:
    """Manually advanced clock for deterministic budgets."""

    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubRng:
    """Random source returning preset values."""

    def __init__(self, value: float = 0.5, index: int = 0):
        self.value = value
        self.index = index

    def random(self) -> float:
        return self.value

    def randrange(self, n: int) -> int:
        return min(self.index, n - 1)

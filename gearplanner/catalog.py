"""
Item catalog loader: reads a long-format CSV into Item models.

One CSV row per stat bonus:

    name,slot,min_level,category,stat,bonus,value

Items without bonuses have a single row with empty stat/bonus/value cells.
All filters return new catalogs; a catalog is never modified in place.
"""
from collections.abc import Iterable, Iterator
from pathlib import Path

import pandas as pd

from gearplanner.models import Item, LevelRange, StatBonus

CATALOG_COLUMNS = ["name", "slot", "min_level", "category", "stat", "bonus", "value"]
_ITEM_COLUMNS = ["name", "slot", "min_level", "category"]


def bundled_catalog_path() -> Path:
    return Path(__file__).parent / "resources" / "sample_catalog.csv"


def bundled_weights_path() -> Path:
    return Path(__file__).parent / "resources" / "sample_weights.json"


class ItemCatalog:
    """Queryable collection of catalog items, looked up by case-insensitive name."""

    def __init__(self, items: Iterable[Item]):
        self.items: list[Item] = list(items)
        self._by_name: dict[str, Item] = {}
        for item in self.items:
            self._by_name.setdefault(item.name.lower(), item)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_csv(cls, path: Path) -> "ItemCatalog":
        return cls.from_frame(pd.read_csv(path))

    @classmethod
    def bundled(cls) -> "ItemCatalog":
        return cls.from_csv(bundled_catalog_path())

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "ItemCatalog":
        missing = [c for c in CATALOG_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Catalog is missing columns: {', '.join(missing)}")

        df = df[CATALOG_COLUMNS].copy()
        df["category"] = df["category"].fillna("any").astype(str).str.strip().str.lower()
        df["slot"] = df["slot"].astype(str).str.strip().str.lower()
        df["name"] = df["name"].astype(str).str.strip()
        df["min_level"] = df["min_level"].fillna(1).astype(int)

        items: list[Item] = []
        for (name, slot, min_level, category), rows in df.groupby(_ITEM_COLUMNS, sort=False):
            rows = rows.dropna(subset=["stat", "value"])
            bonuses = tuple(
                StatBonus(
                    stat=str(r.stat).strip().lower(),
                    bonus=str(r.bonus).strip().lower() if pd.notna(r.bonus) else "enhancement",
                    value=float(r.value),
                )
                for r in rows.itertuples(index=False)
            )
            items.append(Item(name=name, slot=slot, min_level=int(min_level),
                              category=category, bonuses=bonuses))
        return cls(items)

    def to_frame(self) -> pd.DataFrame:
        rows = []
        for item in self.items:
            base = {"name": item.name, "slot": item.slot,
                    "min_level": item.min_level, "category": item.category}
            if not item.bonuses:
                rows.append({**base, "stat": None, "bonus": None, "value": None})
            for b in item.bonuses:
                rows.append({**base, "stat": b.stat, "bonus": b.bonus, "value": b.value})
        return pd.DataFrame(rows, columns=CATALOG_COLUMNS)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, name: str) -> Item:
        try:
            return self._by_name[name.strip().lower()]
        except KeyError:
            raise KeyError(f"No item named {name!r} in catalog") from None

    def __contains__(self, name: str) -> bool:
        return name.strip().lower() in self._by_name

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Item]:
        return iter(self.items)

    def by_slot(self) -> dict[str, list[Item]]:
        ret: dict[str, list[Item]] = {}
        for item in self.items:
            ret.setdefault(item.slot, []).append(item)
        return ret

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def filter_by_level(self, level_range: LevelRange) -> "ItemCatalog":
        return ItemCatalog(i for i in self.items if level_range.contains(i.min_level))

    def filter_by_category(self, allowed: Iterable[str]) -> "ItemCatalog":
        """Keep items whose category is allowed; "any" items always pass."""
        allowed_set = {a.lower() for a in allowed} | {"any"}
        return ItemCatalog(i for i in self.items if i.category in allowed_set)

    def merge(self, other: "ItemCatalog") -> "ItemCatalog":
        """Union by name; this catalog wins on duplicates."""
        return ItemCatalog([*self.items, *(i for i in other.items if i.name not in self)])

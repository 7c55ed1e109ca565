"""Stored baseline loadouts (JSON CRUD)."""
import logging
import pathlib
from typing import Optional

import orjson
from pydantic import BaseModel, Field

from gearplanner.catalog import ItemCatalog
from gearplanner.loadout import Loadout
from gearplanner.models import Item

logger = logging.getLogger(__name__)


class StoredLoadout(BaseModel):
    """A named set of item names, optionally with the score it last had."""
    name: str
    items: list[str] = Field(default_factory=list)
    score: float | None = None

    def resolve(self, catalog: ItemCatalog) -> list[Item]:
        return [catalog.get(n) for n in self.items]


class LoadoutStore:
    """Persists named baseline loadouts to a JSON file."""

    CURRENT_VERSION = 1
    FILE_NAME = "stored_loadouts.json"

    def __init__(self, base_dir: pathlib.Path):
        self.file_path = pathlib.Path(base_dir) / self.FILE_NAME
        self.loadouts: dict[str, StoredLoadout] = {}
        self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        if not self.file_path.exists():
            return
        try:
            raw = orjson.loads(self.file_path.read_bytes())
            for name, entry in raw.get("loadouts", {}).items():
                self.loadouts[name] = StoredLoadout.model_validate({"name": name, **entry})
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning("Ignoring unreadable loadout store %s: %s", self.file_path, e)
            self.loadouts = {}

    def save(self) -> None:
        data = {
            "version": self.CURRENT_VERSION,
            "loadouts": {
                name: entry.model_dump(exclude={"name"})
                for name, entry in self.loadouts.items()
            },
        }
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        self.file_path.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def put(self, name: str, loadout: Loadout | list[Item],
            score: float | None = None) -> StoredLoadout:
        items = loadout.items() if isinstance(loadout, Loadout) else loadout
        entry = StoredLoadout(name=name, items=[i.name for i in items], score=score)
        self.loadouts[name] = entry
        self.save()
        return entry

    def get(self, name: str) -> Optional[StoredLoadout]:
        return self.loadouts.get(name)

    def list_loadouts(self) -> list[StoredLoadout]:
        return list(self.loadouts.values())

    def rename(self, name: str, new_name: str) -> None:
        if name in self.loadouts:
            entry = self.loadouts.pop(name)
            self.loadouts[new_name] = entry.model_copy(update={"name": new_name})
            self.save()

    def delete(self, name: str) -> None:
        if name in self.loadouts:
            del self.loadouts[name]
            self.save()

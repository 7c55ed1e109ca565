"""Command-line entry point: plan a loadout from a catalog CSV."""
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from gearplanner.catalog import ItemCatalog, bundled_catalog_path, bundled_weights_path
from gearplanner.constants import (
    DEFAULT_DURATION_SECONDS, ITEM_QUALITY_MINIMUM_RATIO, STARTING_TEMPERATURE,
    TARGET_ITEMS_MAX_LEVEL, TARGET_ITEMS_MIN_LEVEL,
)
from gearplanner.errors import PlannerError
from gearplanner.models import DEFAULT_SLOTS, LevelRange, SearchSettings, default_worker_count
from gearplanner.results import GlobalResult
from gearplanner.scoring import StatScorer
from gearplanner.session import PlanningSession
from gearplanner.store import LoadoutStore

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _result_table(result: GlobalResult) -> Table:
    t = Table(title=f"Best loadout (score {result.score:.3f})")
    t.add_column("Slot")
    t.add_column("Item")
    t.add_column("Rank", justify="right")
    for note in result.annotations:
        slot = note.slot if note.occurrence == 0 else f"{note.slot} #{note.occurrence + 1}"
        t.add_row(slot, note.item, note.label)
    return t


def _breakdown_table(scorer: StatScorer, result: GlobalResult,
                     baseline_score: float | None) -> Table:
    title = "Stat breakdown"
    if baseline_score is not None:
        delta = result.score - baseline_score
        title += f" (baseline {baseline_score:.3f}, {delta:+.3f})"
    t = Table(title=title)
    t.add_column("Stat")
    t.add_column("Total", justify="right")
    t.add_column("Weight", justify="right")
    t.add_column("Score", justify="right")
    for line in scorer.breakdown(result.loadout):
        t.add_row(line.stat, f"{line.total:g}", f"{line.weight:g}", f"{line.contribution:.3f}")
    return t


@app.command()
def run(
    catalog_path: Path | None = typer.Argument(
        None, help="Catalog CSV (default: bundled sample catalog)"),
    weights: Path | None = typer.Option(
        None, "--weights", "-w", help="JSON object of stat weights (default: bundled sample)"),
    duration: float = typer.Option(
        DEFAULT_DURATION_SECONDS, "--duration", "-d", help="Total search time in seconds"),
    iterations: int | None = typer.Option(
        None, "--iterations", help="Iteration budget instead of wall-clock time"),
    workers: int | None = typer.Option(
        None, "--workers", "-j", help="Parallel workers (default: CPU count - 1)"),
    min_ratio: float = typer.Option(
        ITEM_QUALITY_MINIMUM_RATIO, "--min-ratio", help="Drop candidates below this share of the slot's best"),
    temperature: float = typer.Option(
        STARTING_TEMPERATURE, "--temperature", help="Starting annealing temperature"),
    level_min: int = typer.Option(TARGET_ITEMS_MIN_LEVEL, "--level-min"),
    level_max: int = typer.Option(TARGET_ITEMS_MAX_LEVEL, "--level-max"),
    fixed: list[str] = typer.Option(
        [], "--fixed", "-f", help="Item name to pin in place (repeatable)"),
    skip: list[str] = typer.Option(
        [], "--skip", help="Extra slot to leave out of the search (repeatable)"),
    category: list[str] = typer.Option(
        [], "--category", help="Allowed armor category (repeatable; default: all)"),
    baseline: str | None = typer.Option(
        None, "--baseline", help="Stored loadout to compare against"),
    save_as: str | None = typer.Option(
        None, "--save-as", help="Store the best loadout under this name"),
    store_dir: Path = typer.Option(
        Path("."), "--store-dir", help="Directory holding stored_loadouts.json"),
    seed: int | None = typer.Option(None, "--seed", help="RNG seed for reproducible workers"),
    executor: str = typer.Option(
        "thread", "--executor",
        help="thread (workers share one core under the GIL) | process (one core per worker)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Search for the highest-scoring loadout."""
    _configure_logging(verbose)
    try:
        catalog = ItemCatalog.from_csv(catalog_path or bundled_catalog_path())
        scorer = StatScorer.from_json(weights or bundled_weights_path())
        settings = SearchSettings(
            duration_seconds=duration,
            iterations=iterations,
            workers=workers or default_worker_count(),
            min_quality_ratio=min_ratio,
            starting_temperature=temperature,
            level_range=LevelRange(min_level=level_min, max_level=level_max),
            seed=seed,
            executor=executor,
        )
    except (OSError, ValueError) as e:
        console.print(f"[red]Invalid input:[/red] {e}")
        raise typer.Exit(code=1)

    store = LoadoutStore(store_dir)
    baseline_score = None
    if baseline is not None:
        entry = store.get(baseline)
        if entry is None:
            console.print(f"[red]No stored loadout named {baseline!r}[/red]")
            raise typer.Exit(code=1)
        try:
            baseline_score = scorer.score_items(entry.resolve(catalog))
        except KeyError as e:
            console.print(f"[red]Baseline {baseline!r}:[/red] {e.args[0]}")
            raise typer.Exit(code=1)
        console.print(f"Baseline {baseline!r} scores {baseline_score:.3f}")

    try:
        session = PlanningSession.from_catalog(
            catalog, scorer, fixed=fixed, skipped_slots=skip,
            allowed_categories=category or None, settings=settings,
        )
        console.print(session.start_message())
        console.print()
        result = session.run()
    except PlannerError as e:
        console.print(f"[red]Search failed:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(
        f"Sim complete: {result.total_iterations:,} iterations across "
        f"{len(result.workers)} worker(s) in {result.elapsed_seconds:.2f}s, "
        f"best score {result.score:.3f} (worker {result.best.worker_index})"
    )
    console.print(_result_table(result))
    console.print(_breakdown_table(scorer, result, baseline_score))

    if save_as:
        store.put(save_as, result.loadout, result.score)
        console.print(f"Saved as {save_as!r} in {store.file_path}")


@app.command()
def slots():
    """List the equipment slot table."""
    t = Table(title="Slots")
    t.add_column("Slot")
    t.add_column("Capacity", justify="right")
    for slot in DEFAULT_SLOTS:
        t.add_row(slot.name, str(slot.capacity))
    console.print(t)


@app.command()
def stored(
    store_dir: Path = typer.Option(Path("."), "--store-dir"),
):
    """List stored baseline loadouts."""
    store = LoadoutStore(store_dir)
    entries = store.list_loadouts()
    if not entries:
        console.print("No stored loadouts.")
        return
    t = Table(title=f"Stored loadouts ({store.file_path})")
    t.add_column("Name")
    t.add_column("Items")
    t.add_column("Score", justify="right")
    for entry in entries:
        score = "-" if entry.score is None else f"{entry.score:.3f}"
        t.add_row(entry.name, ", ".join(entry.items), score)
    console.print(t)


def main() -> None:
    app()


if __name__ == "__main__":
    main()

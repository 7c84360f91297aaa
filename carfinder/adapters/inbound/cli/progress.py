"""Progress display for the ``index`` command.

Wraps a Rich progress bar so the chunk indexer can report
``(written, total)`` through a plain callback.
"""

from enum import Enum

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


class Phase(Enum):
    """Indexing phases."""

    LOAD = "load"
    INDEX = "index"


PHASE_CONFIG = {
    Phase.LOAD: {"icon": "📂", "color": "cyan", "verb": "Loading catalog"},
    Phase.INDEX: {"icon": "💾", "color": "green", "verb": "Embedding and indexing"},
}


class IndexProgress:
    """Rich progress bar fed by the chunk indexer callback.

    Usage:
        with IndexProgress(console) as progress:
            indexer.index(vehicles, progress=progress.update)
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console()
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self.written = 0
        self.total = 0

    def __enter__(self) -> "IndexProgress":
        config = PHASE_CONFIG[Phase.INDEX]
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn(f"[{config['color']}]{config['icon']} {config['verb']}[/]"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
        )
        self._progress.start()
        self._task_id = self._progress.add_task("chunks", total=None)
        return self

    def __exit__(self, *exc_info) -> None:
        if self._progress:
            self._progress.stop()
            self._progress = None

    def phase(self, phase: Phase, message: str) -> None:
        config = PHASE_CONFIG[phase]
        self.console.print(f"{config['icon']} [{config['color']}]{config['verb']}:[/] {message}")

    def update(self, written: int, total: int) -> None:
        """Indexer callback: ``written`` of ``total`` chunks are stored."""
        self.written = written
        self.total = total
        if self._progress is not None and self._task_id is not None:
            self._progress.update(self._task_id, completed=written, total=total)

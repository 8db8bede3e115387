"""Project directory watching.

Polls the source files of a project and feeds every change through a
PreviewSession, so bursts of saves collapse into one render.
"""

import logging
import threading
from pathlib import Path

from .bundle import PreviewboxError, load_bundle
from .config import ProjectFilesConfig
from .session import PreviewSession

logger = logging.getLogger(__name__)


class ProjectWatcher:
    """Reload a project into a session whenever its files change."""

    def __init__(
        self,
        directory: Path,
        session: PreviewSession,
        files: ProjectFilesConfig | None = None,
    ):
        self.directory = Path(directory)
        self.session = session
        self.files = files or ProjectFilesConfig()
        self._mtimes: dict[str, tuple[int, int] | None] | None = None

    def _paths(self) -> list[Path]:
        return [
            self.directory / self.files.html,
            self.directory / self.files.css,
            self.directory / self.files.js,
        ]

    def _snapshot_mtimes(self) -> dict[str, tuple[int, int] | None]:
        mtimes: dict[str, tuple[int, int] | None] = {}
        for path in self._paths():
            try:
                stat = path.stat()
                mtimes[path.name] = (stat.st_mtime_ns, stat.st_size)
            except OSError:
                mtimes[path.name] = None
        return mtimes

    def poll(self) -> bool:
        """Check the project files once.

        Returns:
            True if the project was reloaded and a render scheduled.
        """
        mtimes = self._snapshot_mtimes()
        if mtimes == self._mtimes:
            return False
        self._mtimes = mtimes

        try:
            bundle = load_bundle(self.directory, self.files)
        except PreviewboxError as e:
            logger.warning("Skipping reload: %s", e)
            return False

        logger.info("Reloading project %s", self.directory)
        self.session.update(bundle)
        return True

    def run(self, interval: float, stop_event: threading.Event) -> None:
        """Poll every ``interval`` seconds until ``stop_event`` is set."""
        while not stop_event.is_set():
            self.poll()
            stop_event.wait(interval)

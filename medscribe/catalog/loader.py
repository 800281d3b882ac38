import os
import json
import time
import logging
from pathlib import Path
from typing import Callable

from pydantic import ValidationError
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler

from .types import Catalog


logger = logging.getLogger(__name__)


class CatalogFileHandler(FileSystemEventHandler):
    def __init__(self, loader: 'CatalogLoader', callback: Callable[[Catalog], None]):
        self.loader = loader
        self.callback = callback
        self.last_reload = 0.0
        self.debounce_seconds = 0.1

    def on_modified(self, event):
        self._maybe_reload(event.src_path)

    def on_created(self, event):
        self._maybe_reload(event.src_path)

    def on_moved(self, event):
        # editors that save through a temp file land here
        self._maybe_reload(event.dest_path)

    def _maybe_reload(self, path):
        if os.path.abspath(os.fsdecode(path)) != str(self.loader.path):
            return

        now = time.time()
        if now - self.last_reload < self.debounce_seconds:
            return

        self.last_reload = now
        logger.info(f"Catalog file changed: {self.loader.path.name}")
        catalog = self.loader.load()
        if catalog.available:
            self.callback(catalog)


class CatalogLoader:
    """Reads the disease catalog, a JSON array of names.

    Failures never raise: they come back as an empty catalog whose
    ``error`` is set, so callers can tell a broken file from an empty one.
    """

    def __init__(self, path: str):
        self.path = Path(os.path.abspath(path))
        self.observer = None

    def load(self) -> Catalog:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading diseases from {self.path}: {e}")
            return Catalog(error=str(e))

        if not isinstance(data, list):
            message = f"expected a JSON array, got {type(data).__name__}"
            logger.error(f"Error loading diseases from {self.path}: {message}")
            return Catalog(error=message)

        try:
            catalog = Catalog(items=data)
        except ValidationError as e:
            message = f"catalog entries must be strings ({e.error_count()} invalid)"
            logger.error(f"Error loading diseases from {self.path}: {message}")
            return Catalog(error=message)

        logger.info(f"Loaded catalog: {self.path.name} ({len(catalog)} diseases)")
        return catalog

    def watch(self, callback: Callable[[Catalog], None]) -> bool:
        directory = self.path.parent
        if not directory.exists():
            logger.warning(f"Catalog directory does not exist: {directory}")
            return False

        handler = CatalogFileHandler(self, callback)
        self.observer = Observer()
        self.observer.schedule(handler, str(directory), recursive=False)
        self.observer.start()
        logger.info(f"Watching for catalog changes in {directory}")
        return True

    def close(self):
        if self.observer:
            self.observer.stop()
            self.observer.join()
            self.observer = None

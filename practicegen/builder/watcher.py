#!/usr/bin/env python3
"""
File watcher for practice builds.
Monitors the solutions tree and rebuilds an exercise directory when one of
its files is saved.
"""

import os
import threading
import time
from pathlib import Path
from typing import Dict, Optional

from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler, FileSystemEvent

from rich.console import Console

from .orchestrator import BuildOrchestrator


class SolutionChangeHandler(FileSystemEventHandler):
    """Rebuilds the exercise a changed solution file belongs to"""

    DEBOUNCE_SECONDS = 1.0

    def __init__(self, orchestrator: BuildOrchestrator, console: Console = None):
        super().__init__()
        self.orchestrator = orchestrator
        self.console = console or Console()
        self.solutions_root = Path(os.path.abspath(orchestrator.resolver.solutions_root))
        self.last_built: Dict[Path, float] = {}
        self.pending: Dict[Path, threading.Timer] = {}
        self._building = False
        self._lock = threading.Lock()

    def on_any_event(self, event: FileSystemEvent):
        """Called for every change under the solutions tree"""
        if event.is_directory or event.event_type not in ('created', 'modified', 'moved'):
            return

        path = getattr(event, 'dest_path', None) or event.src_path
        directory = self.exercise_for(Path(os.path.abspath(path)))
        if directory is None:
            return

        # Editors often write a file several times per save
        wait = self.DEBOUNCE_SECONDS - (time.time() - self.last_built.get(directory, 0.0))
        if self._building:
            self.schedule(directory, self.DEBOUNCE_SECONDS)
        elif wait > 0:
            self.schedule(directory, wait)
        else:
            self.rebuild(directory)

    def exercise_for(self, path: Path) -> Optional[Path]:
        """Exercise directory containing a path, None outside the tree"""
        try:
            relative = path.relative_to(self.solutions_root)
        except ValueError:
            return None
        if '__pycache__' in relative.parts:
            return None
        if len(relative.parts) == 1:
            return self.solutions_root
        return self.solutions_root / relative.parts[0]

    def schedule(self, directory: Path, delay: float):
        """Rebuild a directory once the debounce window has closed"""
        if directory in self.pending:
            return
        timer = threading.Timer(delay, self.rebuild_pending, args=(directory,))
        timer.daemon = True
        self.pending[directory] = timer
        timer.start()

    def rebuild_pending(self, directory: Path):
        self.pending.pop(directory, None)
        self.rebuild(directory)

    def cancel_pending(self):
        for timer in list(self.pending.values()):
            timer.cancel()
        self.pending.clear()

    def rebuild(self, directory: Path):
        with self._lock:
            self._building = True
            try:
                self.console.print(f"\n[cyan]Rebuilding {directory.name}...[/cyan]")
                result = self.orchestrator.build_directory(directory)
                if result.ok:
                    self.console.print(f"[green]{directory.name} is up to date[/green]")
                else:
                    self.console.print(f"[red]{directory.name} failed[/red]")
            finally:
                self.last_built[directory] = time.time()
                self._building = False


class PracticeWatcher:
    """Manages the watching process"""

    def __init__(self, orchestrator: BuildOrchestrator, console: Console = None):
        self.orchestrator = orchestrator
        self.console = console or Console()
        self.observer = None
        self.handler = None

    def start(self):
        """Start watching the solutions tree"""
        self.handler = SolutionChangeHandler(self.orchestrator, console=self.console)

        self.observer = Observer()
        watch_dir = str(self.orchestrator.resolver.solutions_root)
        self.observer.schedule(self.handler, path=watch_dir, recursive=True)
        self.observer.start()

        self.console.print(f"\n[green]Watching {watch_dir} for changes...[/green]")
        self.console.print("[dim]Practices are rebuilt each time you save a solution.[/dim]")

    def stop(self):
        """Stop watching"""
        if self.handler:
            self.handler.cancel_pending()
        if self.observer:
            self.observer.stop()
            self.observer.join()

    def wait(self):
        """Block until interrupted"""
        try:
            while True:
                time.sleep(0.5)
        except KeyboardInterrupt:
            self.console.print("\n[dim]Stopping file watcher...[/dim]")
        finally:
            self.stop()

#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Terminal spinner shown while images are minified.

The spinner is drawn on stderr with rich and only when stderr is a
terminal, so redirected output never contains control sequences.
"""

from __future__ import annotations

import sys
from typing import Any, Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn


class Spinner:
    """Transient rich spinner usable as a :class:`~imagemin.router.Router` progress factory.

    Parameters
    ----------
    description : str
        Text shown next to the spinner
    console : Console, optional
        Console to draw on. Defaults to a console on stderr.

    Examples
    --------
    >>> with Spinner("Minifying images") as spinner:
    ...     spinner.log("foo.png -> 1234 bytes")

    """

    def __init__(self, description: str, console: Optional[Console] = None):
        """Initialize the spinner."""
        self.description = description
        self.console = console or Console(stderr=True)
        self._progress: Optional[Progress] = None

    @property
    def active(self) -> bool:
        """Whether the spinner is currently drawn."""
        return self._progress is not None

    def __enter__(self) -> Spinner:
        """Start the spinner if the console is a terminal."""
        if self.console.is_terminal:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=self.console,
                transient=True,
            )
            self._progress.__enter__()
            self._progress.add_task(self.description, total=None)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Stop the spinner; exceptions propagate."""
        if self._progress is not None:
            self._progress.__exit__(exc_type, exc_val, exc_tb)
            self._progress = None

    def log(self, message: str) -> None:
        """Print a line above the spinner, or to stderr when it is not drawn."""
        if self._progress is not None:
            self.console.print(message, markup=False, highlight=False)
        else:
            print(message, file=sys.stderr)

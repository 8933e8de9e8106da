# Copyright 2025 Entalpic
"""
A module to log messages to the console.

Informational, success and warning messages go to ``stdout`` and are silenced
when the logger is ``quiet``. Errors are never silenced and always go to
``stderr``.

Example
-------
.. code-block:: python

    from agentation_update.logger import Logger

    logger = Logger("update")
    logger.info("Checking for updates...")
    logger.quiet = True
    logger.info("Not shown.")
    logger.error("Always shown, on stderr.")
"""

import sys
from contextlib import nullcontext
from datetime import datetime

from rich.console import Console
from rich.panel import Panel


class Logger:
    """A class to log messages to the console."""

    def __init__(self, name: str, with_time: bool = True, quiet: bool = False):
        """Initialize the Logger.

        Parameters
        ----------
        name : str
            The name of the logger.
        with_time : bool, optional
            Whether to include the time in the log messages, by default True.
        quiet : bool, optional
            Whether to suppress non-error output, by default False.
        """
        self.name = name
        self.with_time = with_time
        self.quiet = quiet
        self.console = Console()
        self.err_console = Console(stderr=True)

    def now(self):
        """Get the current time.

        Returns
        -------
        str
            The current time.
        """
        return datetime.now().strftime("%H:%M:%S")

    @property
    def prefix(self):
        """Get the prefix for the log messages.

        The prefix includes the name of the logger and the current time.

        Returns
        -------
        str
            The prefix.
        """
        prefix = ""
        if self.name:
            prefix += f"{self.name}"
            if self.with_time:
                prefix += f" | {self.now()}"
        else:
            prefix += self.now()
        if prefix:
            return rf"[grey50 bold]\[{prefix}][/grey50 bold] "
        return prefix

    def _emit(self, message: str, color: str, title: str, as_panel: bool, err=False):
        console = self.err_console if err else self.console
        if as_panel:
            content = Panel(
                message, subtitle=self.prefix, title=title, border_style=color
            )
        else:
            content = f"{self.prefix}[{color}]{message}[/{color}]"
        console.print(content)

    def abort(self, message: str, exit=1):
        """Abort the program with a message.

        Parameters
        ----------
        message : str
            The message to print on ``stderr`` before aborting.
        exit : int, optional
            The exit code, by default 1.
        """
        self.err_console.print(f"{self.prefix}[red]{message}[/red]")
        sys.exit(exit)

    def success(self, message: str, title: str = "Success", as_panel: bool = False):
        """Print a success message, unless quiet.

        Parameters
        ----------
        message : str
            The message to print.
        title : str, optional
            The title of the panel, by default ``"Success"``.
        as_panel : bool, optional
            Whether to print the message in a panel, by default ``False``.
        """
        if not self.quiet:
            self._emit(message, "green", title, as_panel)

    def warning(self, message: str, title: str = "Warning", as_panel: bool = False):
        """Print a warning message, unless quiet.

        Parameters
        ----------
        message : str
            The message to print.
        title : str, optional
            The title of the panel, by default ``"Warning"``.
        as_panel : bool, optional
            Whether to print the message in a panel, by default ``False``.
        """
        if not self.quiet:
            self._emit(message, "yellow", title, as_panel)

    def error(self, message: str, title: str = "Error", as_panel: bool = False):
        """Print an error message on ``stderr``. Never silenced.

        Parameters
        ----------
        message : str
            The message to print.
        title : str, optional
            The title of the panel, by default ``"Error"``.
        as_panel : bool, optional
            Whether to print the message in a panel, by default False.
        """
        self._emit(message, "red", title, as_panel, err=True)

    def info(self, message: str, title: str = "Info", as_panel: bool = False):
        """Print an info message, unless quiet.

        Parameters
        ----------
        message : str
            The message to print.
        title : str, optional
            The title of the panel, by default ``"Info"``.
        as_panel : bool, optional
            Whether to print the message in a panel, by default ``False``.
        """
        if not self.quiet:
            self._emit(message, "cyan", title, as_panel)

    def loading(self, message: str):
        """Show a spinner while a block runs (no-op when quiet).

        Parameters
        ----------
        message : str
            The message to display next to the spinner.
        """
        if self.quiet:
            return nullcontext()
        return self.console.status(message)

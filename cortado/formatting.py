"""Rich-based console output for job status and published clips"""

from rich.console import Console
from rich.text import Text

console = Console()

# marker, marker style, message style
_STAGE = ("›", "bold blue", "blue")
_CLIP = ("↓", "bold green", "bold")
_DONE = ("✓", "bold green", "green")
_PARTIAL = ("⚠", "bold yellow", "yellow")
_FAILED = ("✗", "bold red", "bold red")


def _line(kind, message: str) -> Text:
    marker, marker_style, message_style = kind
    return Text(f"{marker} ", style=marker_style) + Text(message, style=message_style)


def print_stage(message: str) -> None:
    """Print the status message of a non-terminal stage."""
    console.print(_line(_STAGE, message))


def print_clip(name: str, destination: str, size: str) -> None:
    """Print where a published clip was written."""
    console.print(_line(_CLIP, f"{name}: {destination}") + Text(f" ({size})", style="dim"))


def print_done(message: str, missing: int = 0) -> None:
    """Print the summary of a finished job, flagging clips that never appeared."""
    if missing:
        console.print(_line(_PARTIAL, f"{message} ({missing} missing)"))
    else:
        console.print(_line(_DONE, message))


def print_failure(message: str) -> None:
    console.print(_line(_FAILED, message))


def print_progress(percent: int, message: str, width: int = 30) -> None:
    """Print a one-line progress bar."""
    filled = int(width * max(0, min(percent, 100)) / 100)
    bar = Text("█" * filled, style="bold blue") + Text("░" * (width - filled), style="blue")
    console.print(bar + Text(f" {percent:3d}% ", style="bold") + Text(message))

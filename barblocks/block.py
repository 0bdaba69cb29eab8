"""Shared building blocks: widget state, click events, errors and the block base class."""

from __future__ import annotations

import dataclasses
import enum
import re
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

RequestUpdate = Callable[[str], None]

_PLACEHOLDER = re.compile(r"\{([^{}]*)\}")

T = TypeVar("T")


class State(enum.Enum):
    """Visual state of a widget."""

    IDLE = "idle"
    INFO = "info"
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


class MouseButton(enum.Enum):
    """Mouse buttons reported by the bar."""

    LEFT = 1
    MIDDLE = 2
    RIGHT = 3
    WHEEL_UP = 4
    WHEEL_DOWN = 5
    FORWARD = 9
    BACK = 8
    UNKNOWN = 0


@dataclass(frozen=True)
class ClickEvent:
    """A click on a bar widget; ``name`` matches the clicked widget's name."""

    button: MouseButton
    name: Optional[str] = None


class BlockError(Exception):
    """Raised when a block fails to gather or present its data."""

    def __init__(self, block: str, message: str) -> None:
        super().__init__(block, message)
        self.block = block
        self.message = message

    def __str__(self) -> str:
        return f"Error in block '{self.block}': {self.message}"


@dataclass
class Widget:
    """A piece of bar output: text, an optional icon name and a state."""

    text: str = ""
    icon: Optional[str] = None
    state: State = State.IDLE
    name: Optional[str] = None


class Block(ABC):
    """Base class of every block shown on the bar."""

    def __init__(self) -> None:
        self.id = new_block_id()

    def update(self) -> Optional[float]:
        """Refresh the block; return seconds until the next update, or None."""
        return None

    @abstractmethod
    def view(self) -> list[Widget]:
        """Return the widgets that make up the block."""

    def click(self, event: ClickEvent) -> None:
        """Handle a click; blocks filter on ``event.name``."""
        return None


def render_format(template: str, values: Mapping[str, Any]) -> str:
    """Replace every ``{name}`` in *template* with ``values[name]``."""

    def substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in values:
            raise BlockError("format", f"unknown placeholder '{{{key}}}'")
        return str(values[key])

    return _PLACEHOLDER.sub(substitute, template)


def parse_config(config_class: type[T], values: Mapping[str, Any]) -> T:
    """Build a config dataclass from a mapping, rejecting unknown or missing keys."""
    known = {field.name for field in dataclasses.fields(config_class)}  # type: ignore[arg-type]
    for key in values:
        if key not in known:
            raise BlockError("config", f"unknown field '{key}'")
    try:
        return config_class(**values)
    except TypeError as exc:
        raise BlockError("config", f"failed to deserialize block config: {exc}") from exc


def new_block_id() -> str:
    """Return a fresh unique block identifier."""
    return uuid.uuid4().hex


def read_text(block: str, path: Path | str) -> str:
    """Read a text file, dropping one trailing newline."""
    try:
        content = Path(path).read_text()
    except (OSError, UnicodeDecodeError) as exc:
        raise BlockError(block, f"failed to read {path}") from exc
    return content[:-1] if content.endswith("\n") else content
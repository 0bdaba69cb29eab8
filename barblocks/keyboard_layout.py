"""The current keyboard layout."""

from __future__ import annotations

import abc
import enum
import re
import subprocess
from dataclasses import dataclass
from typing import Optional, Union

from .block import Block, BlockError, RequestUpdate, Widget


def parse_setxkbmap(output: str) -> str:
    """Extract the layout from the output of ``setxkbmap -query``."""
    line = next(
        (line for line in output.split("\n") if line.startswith("layout")), None
    )
    if line is None:
        raise BlockError(
            "keyboard_layout", "Could not find the layout entry from setxkbmap."
        )
    return re.split(r"\s", line)[-1]


class KeyboardLayoutDriver(enum.Enum):
    """Where the keyboard layout is read from."""

    SETXKBMAP = "setxkbmap"
    LOCALEBUS = "localebus"


class KeyboardLayoutMonitor(abc.ABC):
    """Source of the current keyboard layout.

    Sources that push changes also provide ``monitor(block_id, request_update)``.
    """

    @abc.abstractmethod
    def keyboard_layout(self) -> str:
        """Return the current keyboard layout."""

    @abc.abstractmethod
    def must_poll(self) -> bool:
        """Whether the layout must be polled rather than pushed."""


class SetXkbMap(KeyboardLayoutMonitor):
    """Reads the layout by running ``setxkbmap -query``."""

    def keyboard_layout(self) -> str:
        try:
            raw = subprocess.run(
                ["setxkbmap", "-query"], capture_output=True, check=False
            ).stdout
        except OSError as exc:
            raise BlockError("keyboard_layout", "Failed to execute setxkbmap.") from exc
        try:
            output = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BlockError("keyboard_layout", "Non-UTF8 input.") from exc
        return parse_setxkbmap(output)

    def must_poll(self) -> bool:
        return True


@dataclass
class KeyboardLayoutConfig:
    """Configuration of the keyboard_layout block."""

    driver: Union[KeyboardLayoutDriver, str] = KeyboardLayoutDriver.SETXKBMAP
    interval: float = 60.0


def _resolve_driver(value: Union[KeyboardLayoutDriver, str]) -> KeyboardLayoutDriver:
    if isinstance(value, KeyboardLayoutDriver):
        return value
    try:
        return KeyboardLayoutDriver(value)
    except ValueError as exc:
        raise BlockError("keyboard_layout", f"unknown driver '{value}'") from exc


class KeyboardLayout(Block):
    """Shows the current keyboard layout."""

    def __init__(
        self,
        block_config: Optional[KeyboardLayoutConfig] = None,
        request_update: Optional[RequestUpdate] = None,
        monitor: Optional[KeyboardLayoutMonitor] = None,
    ) -> None:
        super().__init__()
        block_config = block_config or KeyboardLayoutConfig()
        driver = _resolve_driver(block_config.driver)
        if monitor is not None:
            self.monitor = monitor
        elif driver is KeyboardLayoutDriver.SETXKBMAP:
            self.monitor = SetXkbMap()
        else:
            raise BlockError("locale", "Failed to establish D-Bus connection.")
        watch = getattr(self.monitor, "monitor", None)
        if request_update is not None and callable(watch):
            watch(self.id, request_update)
        self.update_interval = block_config.interval if self.monitor.must_poll() else None
        self.output = Widget()

    def update(self) -> Optional[float]:
        self.output.text = self.monitor.keyboard_layout()
        return self.update_interval

    def view(self) -> list[Widget]:
        return [self.output]
"""A block showing the output of a shell command, optionally cycling through several."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from typing import Optional

from .block import Block, ClickEvent, RequestUpdate, Widget


def _shell() -> str:
    return os.environ.get("SHELL", "sh")


def run_shell(command: str) -> str:
    """Run *command* with the user's shell and return its trimmed output.

    If the shell cannot be started, the error description is returned instead.
    """
    try:
        result = subprocess.run(
            [_shell(), "-c", command], capture_output=True, check=False
        )
    except OSError as exc:
        return str(exc)
    return result.stdout.decode("utf-8", errors="replace").strip()


@dataclass
class CustomConfig:
    """Configuration of the custom block."""

    interval: float = 10.0
    command: Optional[str] = None
    on_click: Optional[str] = None
    cycle: Optional[list[str]] = None


class Custom(Block):
    """Displays the output of a command; clicks run a command or advance a cycle."""

    def __init__(
        self,
        block_config: Optional[CustomConfig] = None,
        request_update: Optional[RequestUpdate] = None,
    ) -> None:
        super().__init__()
        block_config = block_config or CustomConfig()
        self.update_interval = block_config.interval
        self.output = Widget(name=self.id)
        self.on_click = block_config.on_click
        self.command: Optional[str] = None
        self.cycle: Optional[list[str]] = None
        self._cycle_position = 0
        self._request_update = request_update
        if block_config.cycle is not None:
            self.cycle = list(block_config.cycle)
        elif block_config.command is not None:
            self.command = block_config.command

    def _current_command(self) -> str:
        if self.cycle is not None:
            if not self.cycle:
                return ""
            return self.cycle[self._cycle_position]
        return self.command or ""

    def update(self) -> Optional[float]:
        self.output.text = run_shell(self._current_command())
        return self.update_interval

    def view(self) -> list[Widget]:
        return [self.output]

    def click(self, event: ClickEvent) -> None:
        if event.name is None or event.name != self.id:
            return
        needs_update = False
        if self.on_click is not None:
            try:
                subprocess.run(
                    [_shell(), "-c", self.on_click], capture_output=True, check=False
                )
            except OSError:
                pass
            needs_update = True
        if self.cycle is not None:
            if self.cycle:
                self._cycle_position = (self._cycle_position + 1) % len(self.cycle)
            needs_update = True
        if needs_update and self._request_update is not None:
            self._request_update(self.id)
"""System load average relative to the number of logical cores."""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .block import (
    Block,
    BlockError,
    RequestUpdate,
    State,
    Widget,
    read_text,
    render_format,
)


def count_logical_cores(cpuinfo_text: str) -> int:
    """Number of logical cores from the first 'siblings' line, 0 if absent."""
    for line in cpuinfo_text.splitlines():
        if line.startswith("siblings"):
            parts = line.split(" ")
            try:
                return int(parts[1])
            except (IndexError, ValueError) as exc:
                raise BlockError("load", "Invalid Cpu info format!") from exc
    return 0


def load_state(fraction: float) -> State:
    """State for the 1-minute load per logical core."""
    if 0.0 <= fraction < 0.3:
        return State.IDLE
    if 0.3 <= fraction < 0.6:
        return State.INFO
    if 0.6 <= fraction < 0.9:
        return State.WARNING
    return State.IDLE


@dataclass
class LoadConfig:
    """Configuration of the load block."""

    format: str = "{1m}"
    interval: float = 5.0


class Load(Block):
    """Shows the 1, 5 and 15 minute load averages."""

    def __init__(
        self,
        block_config: Optional[LoadConfig] = None,
        request_update: Optional[RequestUpdate] = None,
        cpuinfo_path: Path | str = "/proc/cpuinfo",
        loadavg_path: Path | str = "/proc/loadavg",
    ) -> None:
        super().__init__()
        block_config = block_config or LoadConfig()
        self.format = block_config.format
        self.update_interval = block_config.interval
        self.text = Widget(icon="cogs", state=State.INFO)
        self._loadavg_path = Path(loadavg_path)
        self.logical_cores = count_logical_cores(read_text("load", cpuinfo_path))

    def update(self) -> Optional[float]:
        loadavg = read_text("load", self._loadavg_path)
        split = loadavg.split(" ")
        if len(split) < 3:
            raise BlockError("load", "Failed to read the load average of your system!")
        values = {"1m": split[0], "5m": split[1], "15m": split[2]}
        try:
            one_minute = float(values["1m"])
        except ValueError as exc:
            raise BlockError("load", "failed to parse float percentage") from exc
        if self.logical_cores:
            used = one_minute / self.logical_cores
        else:
            used = math.inf if one_minute > 0 else math.nan
        self.text.state = load_state(used)
        self.text.text = render_format(self.format, values)
        return self.update_interval

    def view(self) -> list[Widget]:
        return [self.text]
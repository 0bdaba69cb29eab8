"""CPU utilization, optional frequency and per-core bar chart."""

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

MAX_CPUS = 32
_BOX_CHARS = "▁▂▃▄▅▆▇█"


def parse_cpu_frequency(cpuinfo_text: str) -> float:
    """Average 'cpu MHz' over all cores, in GHz (NaN if none are listed)."""
    total = 0.0
    count = 0
    for line in cpuinfo_text.splitlines():
        if line.startswith("cpu MHz"):
            last = line.split(" ")[-1]
            try:
                total += float(last)
            except ValueError as exc:
                raise BlockError("cpu", "failed to parse cpu frequency") from exc
            count += 1
    if count == 0:
        return math.nan
    return total / count / 1000.0


def barchart(utilizations: list[float]) -> str:
    """One box character per core utilization fraction."""
    top = len(_BOX_CHARS) - 1
    return "".join(
        _BOX_CHARS[min(max(int(7.5 * value), 0), top)] for value in utilizations
    )


def cpu_state(utilization: int, info: int, warning: int, critical: int) -> State:
    """State for a utilization percentage given the configured minimums."""
    if utilization > critical:
        return State.CRITICAL
    if utilization > warning:
        return State.WARNING
    if utilization > info:
        return State.INFO
    return State.IDLE


@dataclass
class CpuConfig:
    """Configuration of the cpu block."""

    interval: float = 1.0
    info: int = 30
    warning: int = 60
    critical: int = 90
    frequency: bool = False
    format: str = "{utilization}%"


class Cpu(Block):
    """Shows CPU utilization computed from successive /proc/stat samples."""

    def __init__(
        self,
        block_config: Optional[CpuConfig] = None,
        request_update: Optional[RequestUpdate] = None,
        stat_path: Path | str = "/proc/stat",
        cpuinfo_path: Path | str = "/proc/cpuinfo",
    ) -> None:
        super().__init__()
        block_config = block_config or CpuConfig()
        self.format = block_config.format
        if block_config.frequency:
            self.format = "{utilization}% {frequency}GHz"
        self.update_interval = block_config.interval
        self.minimum_info = block_config.info
        self.minimum_warning = block_config.warning
        self.minimum_critical = block_config.critical
        self.has_frequency = "{frequency}" in self.format
        self.has_barchart = "{barchart}" in self.format
        self.output = Widget(icon="cpu")
        self._stat_path = Path(stat_path)
        self._cpuinfo_path = Path(cpuinfo_path)
        self._prev_idles = [0] * MAX_CPUS
        self._prev_non_idles = [0] * MAX_CPUS

    def measure(self, stat_text: str) -> list[float]:
        """Utilization fractions since the previous sample; the aggregate comes first."""
        max_cpus = MAX_CPUS if self.has_barchart else 1
        utilizations: list[float] = []
        for line in stat_text.splitlines():
            if not line.startswith("cpu"):
                continue
            data = [int(word) for word in line.split()[1:] if word.isdigit()]
            if len(data) < 8:
                raise BlockError("cpu", "unexpected format of /proc/stat")
            idle = data[3] + data[4]
            non_idle = data[0] + data[1] + data[2] + data[5] + data[6] + data[7]
            core = len(utilizations)
            prev_idle = self._prev_idles[core]
            prev_total = prev_idle + self._prev_non_idles[core]
            total = idle + non_idle
            if prev_total < total and prev_idle <= idle:
                total_delta, idle_delta = total - prev_total, idle - prev_idle
            else:
                total_delta, idle_delta = 1, 1
            utilizations.append((total_delta - idle_delta) / total_delta)
            self._prev_idles[core] = idle
            self._prev_non_idles[core] = non_idle
            if len(utilizations) >= max_cpus:
                break
        return utilizations

    def update(self) -> Optional[float]:
        stat_text = read_text("cpu", self._stat_path)
        freq = 0.0
        if self.has_frequency:
            freq = parse_cpu_frequency(read_text("cpu", self._cpuinfo_path))
        utilizations = self.measure(stat_text)
        average = int(100.0 * utilizations[0]) if utilizations else 0
        self.output.state = cpu_state(
            average, self.minimum_info, self.minimum_warning, self.minimum_critical
        )
        chart = barchart(utilizations[1:]) if self.has_barchart else ""
        values = {
            "frequency": f"{freq:.1f}",
            "barchart": chart,
            "utilization": f"{average:02d}",
        }
        self.output.text = render_format(self.format, values)
        return self.update_interval

    def view(self) -> list[Widget]:
        return [self.output]
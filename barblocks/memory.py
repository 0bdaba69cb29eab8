"""Memory and swap usage read from /proc/meminfo."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .block import (
    Block,
    BlockError,
    ClickEvent,
    MouseButton,
    RequestUpdate,
    State,
    Widget,
    read_text,
    render_format,
)

_MEMINFO_FIELDS = {
    "MemTotal:": "mem_total",
    "MemFree:": "mem_free",
    "Buffers:": "buffers",
    "Cached:": "cached",
    "SReclaimable:": "s_reclaimable",
    "Shmem:": "shmem",
    "SwapTotal:": "swap_total",
    "SwapFree:": "swap_free",
}

_WIDGET_NAME = "memory"


class Memtype(enum.Enum):
    """Which view the block shows."""

    SWAP = "swap"
    MEMORY = "memory"


@dataclass
class Memstate:
    """Values from /proc/meminfo, in KiB, and which of them were found."""

    mem_total: int = 0
    mem_free: int = 0
    buffers: int = 0
    cached: int = 0
    s_reclaimable: int = 0
    shmem: int = 0
    swap_total: int = 0
    swap_free: int = 0
    found: set[str] = field(default_factory=set)

    @property
    def done(self) -> bool:
        """True once every field has been read."""
        return len(self.found) == len(_MEMINFO_FIELDS)


def parse_meminfo(text: str) -> Memstate:
    """Parse the fields the block needs from the contents of /proc/meminfo."""
    state = Memstate()
    for line in text.splitlines():
        if state.done:
            break
        words = line.split()
        if not words or words[0] not in _MEMINFO_FIELDS:
            continue
        name = _MEMINFO_FIELDS[words[0]]
        if len(words) < 2 or not words[1].isdigit():
            raise BlockError("memory", f"failed to parse {name}")
        setattr(state, name, int(words[1]))
        state.found.add(name)
    return state


def _f32(value: float) -> float:
    return struct.unpack("f", struct.pack("f", value))[0]


def _sub(left: int, right: int) -> int:
    if right > left:
        raise BlockError("memory", "inconsistent values in /proc/meminfo")
    return left - right


def _gib(kib: int) -> str:
    return f"{_f32(kib / 1024.0**2):.1f}"


def _mib(kib: int) -> str:
    return str(kib // 1024)


def _percent(kib: int, reference: int) -> float:
    if reference < 1:
        return 100.0
    return _f32(_f32(_f32(float(kib)) / _f32(float(reference))) * 100.0)


def _compute(state: Memstate) -> tuple[dict[str, str], float, float]:
    mem_total = state.mem_total
    mem_free = state.mem_free
    swap_total = state.swap_total
    swap_free = state.swap_free
    swap_used = _sub(swap_total, swap_free)
    mem_total_used = _sub(mem_total, mem_free)
    buffers = state.buffers
    cached = _sub(state.cached + state.s_reclaimable, state.shmem)
    mem_used = _sub(mem_total_used, buffers + cached)
    mem_avail = _sub(mem_total, mem_used)

    values: dict[str, str] = {"MTg": _gib(mem_total), "MTm": _mib(mem_total)}

    def add(prefix: str, kib: int, reference: int, integer: bool = True) -> None:
        percent = _percent(kib, reference)
        values[f"{prefix}g"] = _gib(kib)
        values[f"{prefix}m"] = _mib(kib)
        values[f"{prefix}p"] = f"{percent:.2f}"
        if integer:
            values[f"{prefix}pi"] = f"{int(percent):02d}"

    add("MF", mem_free, mem_total)
    add("MU", mem_total_used, mem_total)
    add("Mu", mem_used, mem_total)
    add("MA", mem_avail, mem_total)
    values["STg"] = _gib(swap_total)
    values["STm"] = _mib(swap_total)
    add("SF", swap_free, swap_total)
    add("SU", swap_used, swap_total)
    add("B", buffers, mem_total)
    add("C", cached, mem_total)
    return values, _percent(mem_used, mem_total), _percent(swap_used, swap_total)


def memory_values(state: Memstate) -> dict[str, str]:
    """All format placeholders (without braces) and their rendered values."""
    return _compute(state)[0]


def _usage_state(percent: float, warning: float, critical: float) -> State:
    if percent > critical:
        return State.CRITICAL
    if percent > warning:
        return State.WARNING
    return State.IDLE


@dataclass
class MemoryConfig:
    """Configuration of the memory block."""

    format_mem: str = "{MFm}MB/{MTm}MB({MUp}%)"
    format_swap: str = "{SFm}MB/{STm}MB({SUp}%)"
    display_type: Union[Memtype, str] = Memtype.MEMORY
    icons: bool = True
    clickable: bool = True
    interval: float = 5.0
    warning_mem: float = 80.0
    warning_swap: float = 80.0
    critical_mem: float = 95.0
    critical_swap: float = 95.0


def _resolve_memtype(value: Union[Memtype, str]) -> Memtype:
    if isinstance(value, Memtype):
        return value
    try:
        return Memtype(value)
    except ValueError as exc:
        raise BlockError("memory", f"unknown display type '{value}'") from exc


class Memory(Block):
    """Shows memory or swap usage; a left click switches between them."""

    def __init__(
        self,
        block_config: Optional[MemoryConfig] = None,
        request_update: Optional[RequestUpdate] = None,
        meminfo_path: Path | str = "/proc/meminfo",
    ) -> None:
        super().__init__()
        block_config = block_config or MemoryConfig()
        self.memtype = _resolve_memtype(block_config.display_type)
        if block_config.icons:
            self.output = (
                Widget(icon="memory_mem", name=_WIDGET_NAME),
                Widget(icon="memory_swap", name=_WIDGET_NAME),
            )
        else:
            self.output = (Widget(name=_WIDGET_NAME), Widget(name=_WIDGET_NAME))
        self.clickable = block_config.clickable
        self.format = (block_config.format_mem, block_config.format_swap)
        self.update_interval = block_config.interval
        self.warning = (block_config.warning_mem, block_config.warning_swap)
        self.critical = (block_config.critical_mem, block_config.critical_swap)
        self.values: dict[str, str] = {}
        self._request_update = request_update
        self._meminfo_path = Path(meminfo_path)

    def _index(self) -> int:
        return 0 if self.memtype is Memtype.MEMORY else 1

    def switch(self) -> None:
        """Toggle between the memory and swap views."""
        self.memtype = Memtype.SWAP if self.memtype is Memtype.MEMORY else Memtype.MEMORY

    def update(self) -> Optional[float]:
        state = parse_meminfo(read_text("memory", self._meminfo_path))
        values, mem_used, swap_used = _compute(state)
        self.values.update(values)
        index = self._index()
        widget = self.output[index]
        used = mem_used if index == 0 else swap_used
        widget.state = _usage_state(used, self.warning[index], self.critical[index])
        widget.text = render_format(self.format[index], self.values)
        return self.update_interval

    def view(self) -> list[Widget]:
        return [self.output[self._index()]]

    def click(self, event: ClickEvent) -> None:
        if event.name is None:
            return
        if self.clickable and event.button is MouseButton.LEFT and event.name == _WIDGET_NAME:
            self.switch()
            self.update()
            if self._request_update is not None:
                self._request_update(self.id)
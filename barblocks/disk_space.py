"""Free, available, used or total space of a mounted filesystem."""

from __future__ import annotations

import enum
import math
import os
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from .block import Block, BlockError, RequestUpdate, State, Widget

_U64_MAX = 2**64 - 1


class Unit(enum.Enum):
    """Unit used to display disk space."""

    MB = "MB"
    GB = "GB"
    TB = "TB"
    TIB = "TiB"
    GIB = "GiB"
    MIB = "MiB"
    PERCENT = "Percent"


class InfoType(enum.Enum):
    """Which figure about the filesystem is shown."""

    AVAILABLE = "available"
    FREE = "free"
    TOTAL = "total"
    USED = "used"


_DIVISORS = {
    Unit.MB: 1000.0**2,
    Unit.GB: 1000.0**3,
    Unit.TB: 1000.0**4,
    Unit.MIB: 1024.0**2,
    Unit.GIB: 1024.0**3,
    Unit.TIB: 1024.0**4,
    Unit.PERCENT: 1.0,
}


def bytes_in_unit(unit: Unit, amount: int) -> float:
    """Express *amount* bytes in *unit*; a percentage is passed through unchanged."""
    return amount / _DIVISORS[unit]


def compute_state(unit: Unit, value: int, warning: float, alert: float) -> State:
    """State for *value*: bytes, or a percentage when *unit* is Percent.

    For percentages, higher is worse; for sizes, the value in GB is compared
    and lower is worse.
    """
    if unit is Unit.PERCENT:
        amount = float(value)
        if amount > alert:
            return State.CRITICAL
        if amount > warning:
            return State.WARNING
        return State.IDLE
    amount = bytes_in_unit(Unit.GB, value)
    if 0.0 <= amount < alert:
        return State.CRITICAL
    if alert <= amount < warning:
        return State.WARNING
    return State.IDLE


def _to_unsigned(value: float) -> int:
    if math.isnan(value) or value <= 0:
        return 0
    if math.isinf(value):
        return _U64_MAX
    return min(int(value), _U64_MAX)


def _resolve(enum_class: type[enum.Enum], value: Any, what: str) -> Any:
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(value)
    except ValueError as exc:
        raise BlockError("disk_space", f"unknown {what} '{value}'") from exc


@dataclass
class DiskSpaceConfig:
    """Configuration of the disk_space block."""

    path: str = "/"
    alias: str = "/"
    info_type: Union[InfoType, str] = InfoType.AVAILABLE
    unit: Union[Unit, str] = Unit.GB
    interval: float = 20.0
    warning: float = 20.0
    alert: float = 10.0
    show_percentage: bool = False


class DiskSpace(Block):
    """Shows disk space of the filesystem holding the configured path."""

    def __init__(
        self,
        block_config: Optional[DiskSpaceConfig] = None,
        request_update: Optional[RequestUpdate] = None,
        statvfs: Callable[[str], Any] = os.statvfs,
    ) -> None:
        super().__init__()
        block_config = block_config or DiskSpaceConfig()
        self.update_interval = block_config.interval
        self.disk_space = Widget(text="DiskSpace")
        self.alias = block_config.alias
        self.path = block_config.path
        self.info_type: InfoType = _resolve(InfoType, block_config.info_type, "info type")
        self.unit: Unit = _resolve(Unit, block_config.unit, "unit")
        self.warning = block_config.warning
        self.alert = block_config.alert
        self.show_percentage = block_config.show_percentage
        self._statvfs = statvfs

    def update(self) -> Optional[float]:
        try:
            stats = self._statvfs(self.path)
        except OSError as exc:
            raise BlockError("disk_space", "failed to retrieve statvfs") from exc
        total = stats.f_blocks * stats.f_frsize
        used = (stats.f_blocks - stats.f_bfree) * stats.f_frsize
        converted = 0.0
        converted_str = ""

        if self.info_type is InfoType.AVAILABLE:
            result = stats.f_bavail * stats.f_bsize
            converted = bytes_in_unit(self.unit, result)
        elif self.info_type is InfoType.FREE:
            result = stats.f_bfree * stats.f_bsize
            converted = bytes_in_unit(self.unit, result)
        elif self.info_type is InfoType.TOTAL:
            result = used
            converted_str = (
                f"{bytes_in_unit(self.unit, used):.2f}/"
                f"{bytes_in_unit(self.unit, total):.2f}"
            )
        else:
            result = used
            converted = bytes_in_unit(self.unit, result)

        if total:
            percentage = result / total * 100.0
        else:
            percentage = math.nan if result == 0 else math.inf
        if not converted_str:
            converted_str = f"{converted:.2f}"

        if self.unit is Unit.PERCENT:
            self.disk_space.text = f"{self.alias} {percentage:.2f}%"
            result = _to_unsigned(percentage)
        elif self.show_percentage:
            self.disk_space.text = (
                f"{self.alias} {converted_str} ({percentage:.2f}%) {self.unit.value}"
            )
        else:
            self.disk_space.text = f"{self.alias} {converted_str} {self.unit.value}"

        self.disk_space.state = compute_state(self.unit, result, self.warning, self.alert)
        return self.update_interval

    def view(self) -> list[Widget]:
        return [self.disk_space]
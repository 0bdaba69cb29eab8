"""Status, capacity and remaining time of an internal power supply."""

from __future__ import annotations

import enum
import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .block import (
    Block,
    BlockError,
    RequestUpdate,
    State,
    Widget,
    read_text,
    render_format,
)

SYSFS_POWER_SUPPLY = Path("/sys/class/power_supply")

_U64_MAX = 2**64 - 1
_UNAVAILABLE = "×"
_SHOW_FORMATS = {
    "time": "{time}",
    "percentage": "{percentage}%",
    "both": "{percentage}% {time}",
}


def _parse_int(text: str, what: str) -> int:
    if not re.fullmatch(r"\+?[0-9]+", text):
        raise BlockError("battery", f"failed to parse {what}")
    return int(text)


def _parse_float(text: str, what: str) -> float:
    try:
        return float(text)
    except ValueError as exc:
        raise BlockError("battery", f"failed to parse {what}") from exc


def _divide(numerator: float, denominator: float) -> float:
    if denominator == 0:
        if numerator == 0:
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def _to_unsigned(value: float) -> int:
    """Convert a float to an unsigned integer, saturating at the bounds."""
    if math.isnan(value) or value <= 0:
        return 0
    if math.isinf(value):
        return _U64_MAX
    return min(int(value), _U64_MAX)


def battery_state(capacity: Optional[int]) -> State:
    """State for a capacity percentage; None or out of range means warning."""
    if capacity is None:
        return State.WARNING
    if 0 <= capacity <= 15:
        return State.CRITICAL
    if 16 <= capacity <= 30:
        return State.WARNING
    if 31 <= capacity <= 60:
        return State.INFO
    if 61 <= capacity <= 100:
        return State.GOOD
    return State.WARNING


def format_time(minutes: int) -> str:
    """Render minutes as hours and zero-padded minutes, e.g. ``1:05``."""
    return f"{minutes // 60}:{minutes % 60:02d}"


class BatteryDevice(ABC):
    """A battery that can be queried for the values the block displays."""

    @abstractmethod
    def status(self) -> str:
        """One of "Full", "Charging", "Discharging", "Not charging" or "Unknown"."""

    @abstractmethod
    def capacity(self) -> int:
        """Current capacity as a percentage."""

    @abstractmethod
    def time_remaining(self) -> int:
        """Estimated minutes until (dis)charging completes."""

    @abstractmethod
    def power_consumption(self) -> int:
        """Current power consumption in microwatts."""


class PowerSupplyDevice(BatteryDevice):
    """A power supply device as exposed by sysfs."""

    def __init__(
        self,
        device_path: Path,
        charge_full: Optional[int] = None,
        energy_full: Optional[int] = None,
    ) -> None:
        self.device_path = Path(device_path)
        self.charge_full = charge_full
        self.energy_full = energy_full

    @classmethod
    def from_device(
        cls, device: str, base: Path | str = SYSFS_POWER_SUPPLY
    ) -> "PowerSupplyDevice":
        """Open the named device; raise if its directory does not exist."""
        device_path = Path(base) / device
        if not device_path.exists():
            raise BlockError(
                "battery", f"Power supply device '{device_path}' does not exist"
            )
        charge_full = cls._read_optional(device_path / "charge_full", "charge_full")
        energy_full = cls._read_optional(device_path / "energy_full", "energy_full")
        return cls(device_path, charge_full, energy_full)

    @staticmethod
    def _read_optional(path: Path, what: str) -> Optional[int]:
        if not path.exists():
            return None
        return _parse_int(read_text("battery", path), what)

    def _read_int(self, name: str) -> int:
        return _parse_int(read_text("battery", self.device_path / name), name)

    def _read_float(self, name: str) -> float:
        return _parse_float(read_text("battery", self.device_path / name), name)

    def _has(self, name: str) -> bool:
        return (self.device_path / name).exists()

    def status(self) -> str:
        return read_text("battery", self.device_path / "status")

    def capacity(self) -> int:
        if self._has("capacity"):
            capacity = self._read_int("capacity")
        elif self._has("charge_now") and self.charge_full is not None:
            charge = self._read_int("charge_now")
            capacity = _to_unsigned(_divide(charge, self.charge_full) * 100.0)
        elif self._has("energy_now") and self.energy_full is not None:
            energy = self._read_int("energy_now")
            capacity = _to_unsigned(_divide(energy, self.energy_full) * 100.0)
        else:
            raise BlockError(
                "battery",
                "Device does not support reading capacity, charge, or energy",
            )
        # The kernel may report charge_now above charge_full when full.
        return min(capacity, 100)

    def time_remaining(self) -> int:
        if self.energy_full is not None:
            full = float(self.energy_full)
        elif self.charge_full is not None:
            full = float(self.charge_full)
        else:
            raise BlockError("battery", "Device does not support reading energy")

        if self._has("energy_now"):
            fill = self._read_float("energy_now")
        elif self._has("charge_now"):
            fill = self._read_float("charge_now")
        else:
            raise BlockError("battery", "Device does not support reading energy")

        if self._has("power_now"):
            usage = self._read_float("power_now")
        elif self._has("current_now"):
            usage = self._read_float("current_now")
        else:
            raise BlockError("battery", "Device does not support reading power")

        status = self.status()
        if status == "Full":
            return _to_unsigned(_divide(full, usage) * 60.0)
        if status == "Discharging":
            return _to_unsigned(_divide(fill, usage) * 60.0)
        if status == "Charging":
            return _to_unsigned(_divide(full - fill, usage) * 60.0)
        return 0

    def power_consumption(self) -> int:
        if not self._has("power_now"):
            raise BlockError("battery", "Device does not support power consumption")
        return self._read_int("power_now")


class BatteryDriver(enum.Enum):
    """Where battery information comes from."""

    SYSFS = "sysfs"
    UPOWER = "upower"


@dataclass
class BatteryConfig:
    """Configuration of the battery block."""

    interval: float = 10.0
    device: str = "BAT0"
    show: Optional[str] = None
    format: str = "{percentage}%"
    upower: bool = False
    driver: Optional[Union[BatteryDriver, str]] = None


def _resolve_driver(block_config: BatteryConfig) -> BatteryDriver:
    driver = block_config.driver
    if driver is None:
        return BatteryDriver.UPOWER if block_config.upower else BatteryDriver.SYSFS
    if isinstance(driver, BatteryDriver):
        return driver
    try:
        return BatteryDriver(driver)
    except ValueError as exc:
        raise BlockError("battery", f"Unknown driver '{driver}'") from exc


class Battery(Block):
    """Shows battery capacity, remaining time and power draw."""

    def __init__(
        self,
        block_config: Optional[BatteryConfig] = None,
        request_update: Optional[RequestUpdate] = None,
        base: Path | str = SYSFS_POWER_SUPPLY,
        device: Optional[BatteryDevice] = None,
    ) -> None:
        super().__init__()
        block_config = block_config or BatteryConfig()
        if block_config.show is not None:
            if block_config.show not in _SHOW_FORMATS:
                raise BlockError("battery", "Unknown show option")
            self.format = _SHOW_FORMATS[block_config.show]
        else:
            self.format = block_config.format
        self.driver = _resolve_driver(block_config)
        if device is not None:
            self.device = device
        elif self.driver is BatteryDriver.SYSFS:
            self.device = PowerSupplyDevice.from_device(block_config.device, base)
        else:
            raise BlockError("battery", "UPower device is not available.")
        self.update_interval = block_config.interval
        self.output = Widget()

    def update(self) -> Optional[float]:
        status = self.device.status()
        if status in ("Full", "Not charging"):
            self.output.icon = "bat_full"
            self.output.text = ""
            self.output.state = State.GOOD
        else:
            try:
                capacity: Optional[int] = self.device.capacity()
            except BlockError:
                capacity = None
            try:
                time_text = format_time(self.device.time_remaining())
            except BlockError:
                time_text = _UNAVAILABLE
            try:
                power_text = f"{self.device.power_consumption() / 1000.0 / 1000.0:.2f}"
            except BlockError:
                power_text = _UNAVAILABLE
            values = {
                "percentage": _UNAVAILABLE if capacity is None else str(capacity),
                "time": time_text,
                "power": power_text,
            }
            self.output.text = render_format(self.format, values)
            if status == "Charging":
                self.output.state = State.GOOD
            else:
                self.output.state = battery_state(capacity)
            self.output.icon = {
                "Discharging": "bat_discharging",
                "Charging": "bat_charging",
            }.get(status, "bat")

        if self.driver is BatteryDriver.SYSFS:
            return self.update_interval
        return None

    def view(self) -> list[Widget]:
        return [self.output]
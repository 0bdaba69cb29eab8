"""Brightness of a backlit device, read from and written to sysfs."""

from __future__ import annotations

import math
import os
import re
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .block import (
    Block,
    BlockError,
    ClickEvent,
    MouseButton,
    RequestUpdate,
    Widget,
    read_text,
)

SYSFS_BACKLIGHT = Path("/sys/class/backlight")

_WATCH_DELAY = 0.25


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def read_brightness(path: Path | str) -> int:
    """Read a non-negative brightness value from *path*."""
    content = read_text("backlight", path)
    if not re.fullmatch(r"[0-9]+", content):
        raise BlockError("backlight", "Failed to read value from brightness file")
    return int(content)


def brightness_icon(brightness: int) -> str:
    """Icon name for a brightness percentage."""
    if brightness <= 19:
        return "backlight_empty"
    if brightness <= 39:
        return "backlight_partial1"
    if brightness <= 59:
        return "backlight_partial2"
    if brightness <= 79:
        return "backlight_partial3"
    return "backlight_full"


class BacklitDevice:
    """A physical backlit device whose brightness can be queried and set."""

    def __init__(self, max_brightness: int, device_path: Path) -> None:
        self.max_brightness = max_brightness
        self.device_path = Path(device_path)

    @classmethod
    def default(cls, base: Path | str = SYSFS_BACKLIGHT) -> "BacklitDevice":
        """Use the first device found in the backlight directory."""
        try:
            devices = sorted(Path(base).iterdir())
        except OSError as exc:
            raise BlockError("backlight", "Failed to read backlight device directory") from exc
        if not devices:
            raise BlockError("backlight", "No backlit devices found")
        first = devices[0]
        return cls(read_brightness(first / "max_brightness"), first)

    @classmethod
    def from_device(cls, device: str, base: Path | str = SYSFS_BACKLIGHT) -> "BacklitDevice":
        """Use the named device; raise if it does not exist."""
        device_path = Path(base) / device
        if not device_path.exists():
            raise BlockError("backlight", f"Backlight device '{device_path}' does not exist")
        return cls(read_brightness(device_path / "max_brightness"), device_path)

    def brightness(self) -> int:
        """Current brightness as a percentage, capped at 100."""
        raw = read_brightness(self.brightness_file())
        if self.max_brightness == 0:
            return 100 if raw > 0 else 0
        return min(_round_half_up(raw / self.max_brightness * 100.0), 100)

    def set_brightness(self, value: int) -> None:
        """Set the brightness as a percentage; silently skipped if not writable."""
        try:
            handle = open(self.brightness_file(), "w")
        except OSError:
            return
        raw = _round_half_up(min(value, 100) / 100.0 * self.max_brightness)
        with handle:
            try:
                handle.write(str(raw))
            except OSError as exc:
                raise BlockError("backlight", "Failed to write into brightness file") from exc

    def brightness_file(self) -> Path:
        """The brightness file itself."""
        return self.device_path / "brightness"


@dataclass
class BacklightConfig:
    """Configuration of the backlight block."""

    device: Optional[str] = None
    step_width: int = 5


class Backlight(Block):
    """Shows the brightness of a backlit device; the mouse wheel changes it."""

    def __init__(
        self,
        block_config: Optional[BacklightConfig] = None,
        request_update: Optional[RequestUpdate] = None,
        base: Path | str = SYSFS_BACKLIGHT,
    ) -> None:
        super().__init__()
        block_config = block_config or BacklightConfig()
        if block_config.device is not None:
            self.device = BacklitDevice.from_device(block_config.device, base)
        else:
            self.device = BacklitDevice.default(base)
        self.step_width = block_config.step_width
        self.output = Widget(name=self.id)
        if request_update is not None:
            threading.Thread(
                target=self._watch, args=(request_update,), daemon=True
            ).start()

    def _watch(self, request_update: RequestUpdate) -> None:
        path = self.device.brightness_file()
        last = self._mtime(path)
        while True:
            time.sleep(_WATCH_DELAY)
            current = self._mtime(path)
            if current != last:
                last = current
                request_update(self.id)

    @staticmethod
    def _mtime(path: Path) -> Optional[int]:
        try:
            return os.stat(path).st_mtime_ns
        except OSError:
            return None

    def update(self) -> Optional[float]:
        brightness = self.device.brightness()
        self.output.text = f"{brightness}%"
        self.output.icon = brightness_icon(brightness)
        return None

    def view(self) -> list[Widget]:
        return [self.output]

    def click(self, event: ClickEvent) -> None:
        if event.name != self.id:
            return
        brightness = self.device.brightness()
        if event.button is MouseButton.WHEEL_UP:
            if brightness < 100:
                self.device.set_brightness(brightness + self.step_width)
        elif event.button is MouseButton.WHEEL_DOWN:
            if brightness > self.step_width:
                self.device.set_brightness(brightness - self.step_width)
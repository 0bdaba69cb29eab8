"""NVIDIA GPU utilization, memory, temperature, fan speed and clocks via nvidia-smi."""

from __future__ import annotations

import re
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from .block import (
    Block,
    BlockError,
    ClickEvent,
    MouseButton,
    RequestUpdate,
    State,
    Widget,
    new_block_id,
)


def _run(args: list[str], tool: str) -> bytes:
    try:
        return subprocess.run(args, capture_output=True, check=False).stdout
    except OSError as exc:
        raise BlockError("gpu", f"Failed to execute {tool}.") from exc


def query_gpu(gpu_id: int, fields: Sequence[str]) -> list[str]:
    """Query *fields* of GPU *gpu_id* with nvidia-smi; one string per field."""
    output = _run(
        [
            "nvidia-smi",
            "-i",
            str(gpu_id),
            f"--query-gpu={','.join(fields)}",
            "--format=csv,noheader,nounits",
        ],
        "nvidia-smi",
    )
    if output:
        output = output[:-1]
    try:
        text = output.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise BlockError("gpu", "Non-UTF8 output from nvidia-smi.") from exc
    return text.split(", ")


def _settings(*assignments: str) -> None:
    args = ["nvidia-settings"]
    for assignment in assignments:
        args += ["-a", assignment]
    _run(args, "nvidia-settings")


def _parse_unsigned(text: str, what: str) -> int:
    if not re.fullmatch(r"\+?[0-9]+", text):
        raise BlockError("gpu", f"failed to parse {what}")
    return int(text)


def temperature_state(temperature: int) -> State:
    """State for a core temperature in degrees Celsius."""
    if temperature <= 50:
        return State.GOOD
    if temperature <= 70:
        return State.IDLE
    if temperature <= 75:
        return State.INFO
    if temperature <= 80:
        return State.WARNING
    return State.CRITICAL


@dataclass
class NvidiaGpuConfig:
    """Configuration of the nvidia_gpu block."""

    interval: float = 3.0
    label: str = ""
    gpu_id: int = 0
    show_utilization: bool = True
    show_memory: bool = True
    show_temperature: bool = True
    show_fan_speed: bool = False
    show_clocks: bool = False


class NvidiaGpu(Block):
    """Shows GPU statistics; clicks toggle name/total memory and control the fan."""

    def __init__(
        self,
        block_config: Optional[NvidiaGpuConfig] = None,
        request_update: Optional[RequestUpdate] = None,
    ) -> None:
        super().__init__()
        block_config = block_config or NvidiaGpuConfig()
        self.id_memory = new_block_id()
        self.id_fans = new_block_id()
        self.update_interval = block_config.interval
        self.gpu_id = block_config.gpu_id
        self.label = block_config.label

        result = query_gpu(self.gpu_id, ["name", "memory.total"])
        if len(result) < 2:
            raise BlockError("gpu", "Unexpected output from nvidia-smi.")
        self.gpu_name = result[0]
        self.memory_total = result[1]

        self.gpu_widget = Widget(icon="gpu", name=self.id)
        self.gpu_name_displayed = False
        self.show_utilization = Widget() if block_config.show_utilization else None
        self.show_memory = Widget(name=self.id_memory) if block_config.show_memory else None
        self.memory_total_displayed = False
        self.show_temperature = Widget() if block_config.show_temperature else None
        self.show_fan = Widget(name=self.id_fans) if block_config.show_fan_speed else None
        self.fan_speed = 0
        self.fan_speed_controlled = False
        self.show_clocks = Widget() if block_config.show_clocks else None

    def _gpu_text(self) -> str:
        return self.gpu_name if self.gpu_name_displayed else self.label

    def update(self) -> Optional[float]:
        fields = []
        if self.show_utilization is not None:
            fields.append("utilization.gpu")
        if self.show_memory is not None:
            fields.append("memory.used")
        if self.show_temperature is not None:
            fields.append("temperature.gpu")
        if self.show_fan is not None:
            fields.append("fan.speed")
        if self.show_clocks is not None:
            fields.append("clocks.current.graphics")

        result = iter(query_gpu(self.gpu_id, fields))

        def take() -> str:
            try:
                return next(result)
            except StopIteration as exc:
                raise BlockError("gpu", "Unexpected output from nvidia-smi.") from exc

        if self.show_utilization is not None:
            self.show_utilization.text = f"{take()}%"
        if self.show_memory is not None:
            used = take()
            shown = self.memory_total if self.memory_total_displayed else used
            self.show_memory.text = f"{shown}MB"
        if self.show_temperature is not None:
            temperature = _parse_unsigned(take(), "temperature")
            self.show_temperature.state = temperature_state(temperature)
            self.show_temperature.text = f"{temperature:02d}°C"
        if self.show_fan is not None:
            self.fan_speed = _parse_unsigned(take(), "fan speed")
            self.show_fan.text = f"{self.fan_speed:02d}%"
        if self.show_clocks is not None:
            self.show_clocks.text = f"{take()}MHz"

        self.gpu_widget.text = self._gpu_text()
        return self.update_interval

    def view(self) -> list[Widget]:
        candidates = (
            self.gpu_widget,
            self.show_utilization,
            self.show_memory,
            self.show_temperature,
            self.show_fan,
            self.show_clocks,
        )
        return [widget for widget in candidates if widget is not None]

    def click(self, event: ClickEvent) -> None:
        if event.name is None:
            return
        if event.name == self.id:
            if event.button is MouseButton.LEFT:
                self.gpu_name_displayed = not self.gpu_name_displayed
            self.gpu_widget.text = self._gpu_text()

        if event.name == self.id_memory:
            if event.button is MouseButton.LEFT:
                self.memory_total_displayed = not self.memory_total_displayed
            else:
                self.memory_total_displayed = self.gpu_name_displayed
            if self.show_memory is not None:
                if self.memory_total_displayed:
                    self.show_memory.text = f"{self.memory_total}MB"
                else:
                    used = ", ".join(query_gpu(self.gpu_id, ["memory.used"]))
                    self.show_memory.text = f"{used}MB"

        if event.name == self.id_fans:
            self._fan_click(event.button)

    def _fan_click(self, button: MouseButton) -> None:
        controlled_changed = False
        new_fan_speed = self.fan_speed
        if button is MouseButton.LEFT:
            self.fan_speed_controlled = not self.fan_speed_controlled
            controlled_changed = True
        elif button is MouseButton.WHEEL_UP:
            if self.fan_speed < 100 and self.fan_speed_controlled:
                new_fan_speed += 1
        elif button is MouseButton.WHEEL_DOWN:
            if self.fan_speed > 0 and self.fan_speed_controlled:
                new_fan_speed -= 1

        fan = self.show_fan
        if fan is None:
            return
        if controlled_changed:
            if self.fan_speed_controlled:
                _settings(
                    f"[gpu:{self.gpu_id}]/GPUFanControlState=1",
                    f"[fan:{self.gpu_id}]/GPUTargetFanSpeed={self.fan_speed}",
                )
                fan.text = f"{self.fan_speed:02d}%"
                fan.state = State.WARNING
            else:
                _settings(f"[gpu:{self.gpu_id}]/GPUFanControlState=0")
                fan.state = State.IDLE
        elif self.fan_speed_controlled:
            _settings(f"[fan:{self.gpu_id}]/GPUTargetFanSpeed={new_fan_speed}")
            self.fan_speed = new_fan_speed
            fan.text = f"{new_fan_speed:02d}%"
"""Container and image counts reported by the Docker daemon."""

from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from typing import Optional

from .block import Block, BlockError, ClickEvent, RequestUpdate, Widget, render_format

_QUERY = "curl --fail --unix-socket /var/run/docker.sock http:/api/info"
_FIELDS = {
    "total": "Containers",
    "running": "ContainersRunning",
    "stopped": "ContainersStopped",
    "paused": "ContainersPaused",
    "images": "Images",
}
_UNAVAILABLE = "N/A"


def parse_docker_info(text: str) -> dict[str, int]:
    """Extract container and image counts from the daemon's info JSON."""
    try:
        info = json.loads(text)
    except ValueError as exc:
        raise BlockError("docker", "Failed to parse JSON response.") from exc
    if not isinstance(info, dict):
        raise BlockError("docker", "Failed to parse JSON response.")
    counts: dict[str, int] = {}
    for name, key in _FIELDS.items():
        value = info.get(key)
        if not isinstance(value, int) or isinstance(value, bool):
            raise BlockError("docker", "Failed to parse JSON response.")
        counts[name] = value
    return counts


@dataclass
class DockerConfig:
    """Configuration of the docker block."""

    interval: float = 5.0
    format: str = "{running}%"


class Docker(Block):
    """Shows Docker container counts; "N/A" when the daemon cannot be reached."""

    def __init__(
        self,
        block_config: Optional[DockerConfig] = None,
        request_update: Optional[RequestUpdate] = None,
    ) -> None:
        super().__init__()
        block_config = block_config or DockerConfig()
        self.format = block_config.format
        self.update_interval = block_config.interval
        self.text = Widget(text=_UNAVAILABLE, icon="docker")

    def update(self) -> Optional[float]:
        try:
            raw = subprocess.run(["sh", "-c", _QUERY], capture_output=True, check=False).stdout
        except OSError:
            self.text.text = _UNAVAILABLE
            return self.update_interval
        try:
            output = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BlockError("docker", "Failed to decode") from exc
        if not output:
            self.text.text = _UNAVAILABLE
            return self.update_interval
        counts = parse_docker_info(output)
        self.text.text = render_format(self.format, {k: str(v) for k, v in counts.items()})
        return self.update_interval

    def view(self) -> list[Widget]:
        return [self.text]

    def click(self, event: ClickEvent) -> None:
        return None
"""Locating the address of the running IBus daemon."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Optional

from .block import BlockError

_DISPLAY = re.compile(r":(\d)")
_ADDRESS = re.compile(r"ADDRESS=(.*),guid")


def _default_config_home(environ: Mapping[str, str]) -> Path:
    value = environ.get("XDG_CONFIG_HOME")
    return Path(value) if value else Path.home() / ".config"


def find_ibus_address(
    config_home: Optional[Path | str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """Return the D-Bus address used by the running IBus daemon.

    ``$IBUS_ADDRESS`` wins if set. Otherwise the daemon's socket file under
    ``<config_home>/ibus/bus`` is read; when there are several, the one whose
    name ends with the display number from ``$DISPLAY`` is chosen.
    """
    environ = os.environ if environ is None else environ
    if "IBUS_ADDRESS" in environ:
        return environ["IBUS_ADDRESS"]

    base = Path(config_home) if config_home is not None else _default_config_home(environ)
    socket_dir = base / "ibus" / "bus"
    try:
        socket_files = sorted(os.listdir(socket_dir))
    except OSError as exc:
        raise BlockError("ibus", f"Could not open '{socket_dir}'.") from exc

    if not socket_files:
        raise BlockError("ibus", "Could not locate an IBus socket file.")

    if len(socket_files) == 1:
        socket_path = socket_dir / socket_files[0]
    else:
        display = environ.get("DISPLAY")
        if display is None:
            raise BlockError("ibus", "$DISPLAY not set. Try restarting bar if on sway")
        match = _DISPLAY.fullmatch(display)
        if match is None:
            raise BlockError("ibus", "Failed to extract display number from $DISPLAY")
        display_number = match.group(1)
        candidate = next(
            (name for name in socket_files if name.endswith(display_number)), None
        )
        if candidate is None:
            raise BlockError(
                "ibus", "Could not find an IBus socket file matching $DISPLAY."
            )
        socket_path = socket_dir / candidate

    try:
        with open(socket_path, encoding="utf-8") as handle:
            contents = handle.read()
    except FileNotFoundError as exc:
        raise BlockError("ibus", f"Could not open '{socket_path}'.") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise BlockError("ibus", f"Error reading contents of '{socket_path}'.") from exc

    match = _ADDRESS.search(contents)
    if match is None:
        raise BlockError("ibus", f"Failed to extract address out of '{contents}'.")
    return match.group(1)
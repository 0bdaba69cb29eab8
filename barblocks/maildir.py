"""Number of messages in one or more maildir inboxes."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .block import Block, BlockError, RequestUpdate, State, Widget


class MailType(enum.Enum):
    """Which messages are counted."""

    NEW = "new"
    CUR = "cur"
    ALL = "all"


def _count_entries(directory: Path) -> int:
    try:
        names = os.listdir(directory)
    except OSError:
        return 0
    return sum(1 for name in names if not name.startswith("."))


def count_mail(path: Path | str, mail_type: MailType = MailType.NEW) -> int:
    """Count the messages of *mail_type* in the maildir at *path*."""
    base = Path(path)
    if mail_type is MailType.NEW:
        return _count_entries(base / "new")
    if mail_type is MailType.CUR:
        return _count_entries(base / "cur")
    return _count_entries(base / "new") + _count_entries(base / "cur")


def _resolve_mail_type(value: Union[MailType, str]) -> MailType:
    if isinstance(value, MailType):
        return value
    try:
        return MailType(value)
    except ValueError as exc:
        raise BlockError("maildir", f"unknown display type '{value}'") from exc


@dataclass
class MaildirConfig:
    """Configuration of the maildir block."""

    inboxes: list[str]
    interval: float = 5.0
    threshold_warning: int = 1
    threshold_critical: int = 10
    display_type: Union[MailType, str] = MailType.NEW
    icon: bool = True


class Maildir(Block):
    """Shows the total number of messages across the configured inboxes."""

    def __init__(
        self,
        block_config: MaildirConfig,
        request_update: Optional[RequestUpdate] = None,
    ) -> None:
        super().__init__()
        self.update_interval = block_config.interval
        self.text = Widget(text="", icon="mail" if block_config.icon else None)
        self.inboxes = list(block_config.inboxes)
        self.threshold_warning = block_config.threshold_warning
        self.threshold_critical = block_config.threshold_critical
        self.display_type = _resolve_mail_type(block_config.display_type)

    def update(self) -> Optional[float]:
        count = sum(count_mail(inbox, self.display_type) for inbox in self.inboxes)
        if count >= self.threshold_critical:
            self.text.state = State.CRITICAL
        elif count >= self.threshold_warning:
            self.text.state = State.WARNING
        else:
            self.text.state = State.IDLE
        self.text.text = str(count)
        return self.update_interval

    def view(self) -> list[Widget]:
        return [self.text]
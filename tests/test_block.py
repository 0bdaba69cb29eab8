import re

import pytest

from barblocks.block import (
    Block,
    BlockError,
    ClickEvent,
    MouseButton,
    State,
    Widget,
    new_block_id,
    parse_config,
    read_text,
    render_format,
)
from dataclasses import dataclass


@dataclass
class _Cfg:
    name: str
    interval: float = 5.0


class _Simple(Block):
    def __init__(self):
        super().__init__()
        self.widget = Widget(text="hi")

    def view(self):
        return [self.widget]


def test_render_format_replaces_placeholders():
    assert render_format("{a} and {b}%", {"a": "x", "b": 7}) == "x and 7%"


def test_render_format_without_placeholders():
    assert render_format("plain", {}) == "plain"


def test_render_format_unknown_placeholder():
    with pytest.raises(BlockError):
        render_format("{missing}", {"other": "1"})


def test_parse_config_defaults():
    cfg = parse_config(_Cfg, {"name": "cpu"})
    assert cfg.name == "cpu"
    assert cfg.interval == 5.0


def test_parse_config_unknown_field():
    with pytest.raises(BlockError):
        parse_config(_Cfg, {"name": "cpu", "bogus": 1})


def test_parse_config_missing_required():
    with pytest.raises(BlockError):
        parse_config(_Cfg, {})


def test_new_block_id_unique_hex():
    first, second = new_block_id(), new_block_id()
    assert first != second
    assert re.fullmatch(r"[0-9a-f]{32}", first)


def test_read_text_strips_one_newline(tmp_path):
    path = tmp_path / "value"
    path.write_text("42\n\n")
    assert read_text("x", path) == "42\n"


def test_read_text_missing_file(tmp_path):
    with pytest.raises(BlockError) as info:
        read_text("battery", tmp_path / "nope")
    assert info.value.block == "battery"


def test_block_defaults():
    block = _Simple()
    assert block.update() is None
    assert block.click(ClickEvent(MouseButton.LEFT, block.id)) is None
    assert block.view()[0].text == "hi"
    assert block.view()[0].state is State.IDLE


def test_block_error_message():
    err = BlockError("cpu", "boom")
    assert "cpu" in str(err) and "boom" in str(err)
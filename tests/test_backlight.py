import pytest

from barblocks.backlight import (
    Backlight,
    BacklightConfig,
    BacklitDevice,
    brightness_icon,
    read_brightness,
)
from barblocks.block import BlockError, ClickEvent, MouseButton


def _make_device(base, name="panel0", maximum="100\n", current="50\n"):
    device = base / name
    device.mkdir(parents=True)
    (device / "max_brightness").write_text(maximum)
    (device / "brightness").write_text(current)
    return device


def test_read_brightness(tmp_path):
    path = tmp_path / "b"
    path.write_text("937\n")
    assert read_brightness(path) == 937


def test_read_brightness_invalid(tmp_path):
    path = tmp_path / "b"
    path.write_text("abc\n")
    with pytest.raises(BlockError):
        read_brightness(path)


@pytest.mark.parametrize(
    "value, icon",
    [
        (0, "backlight_empty"),
        (19, "backlight_empty"),
        (20, "backlight_partial1"),
        (40, "backlight_partial2"),
        (79, "backlight_partial3"),
        (80, "backlight_full"),
        (100, "backlight_full"),
    ],
)
def test_brightness_icon(value, icon):
    assert brightness_icon(value) == icon


def test_from_device_and_brightness(tmp_path):
    _make_device(tmp_path)
    device = BacklitDevice.from_device("panel0", tmp_path)
    assert device.max_brightness == 100
    assert device.brightness() == 50
    assert device.brightness_file() == tmp_path / "panel0" / "brightness"


def test_from_device_missing(tmp_path):
    with pytest.raises(BlockError):
        BacklitDevice.from_device("nothing", tmp_path)


def test_default_picks_first(tmp_path):
    _make_device(tmp_path, "a_panel")
    _make_device(tmp_path, "b_panel")
    assert BacklitDevice.default(tmp_path).device_path.name == "a_panel"


def test_default_empty_dir(tmp_path):
    with pytest.raises(BlockError):
        BacklitDevice.default(tmp_path)


def test_brightness_capped(tmp_path):
    _make_device(tmp_path, current="250\n")
    assert BacklitDevice.from_device("panel0", tmp_path).brightness() == 100


def test_set_brightness_round_trip(tmp_path):
    _make_device(tmp_path, maximum="100\n")
    device = BacklitDevice.from_device("panel0", tmp_path)
    device.set_brightness(30)
    assert device.brightness() == 30
    device.set_brightness(500)
    assert device.brightness() == 100


def test_update_sets_text_and_icon(tmp_path):
    _make_device(tmp_path, current="50\n")
    block = Backlight(BacklightConfig(device="panel0"), base=tmp_path)
    assert block.update() is None
    widget = block.view()[0]
    assert widget.text == "50%"
    assert widget.icon == "backlight_partial2"
    assert widget.name == block.id


def test_click_wheel(tmp_path):
    _make_device(tmp_path, current="50\n")
    block = Backlight(BacklightConfig(device="panel0", step_width=10), base=tmp_path)
    block.click(ClickEvent(MouseButton.WHEEL_UP, block.id))
    assert block.device.brightness() == 60
    block.click(ClickEvent(MouseButton.WHEEL_DOWN, block.id))
    assert block.device.brightness() == 50


def test_click_other_name_ignored(tmp_path):
    _make_device(tmp_path, current="50\n")
    block = Backlight(BacklightConfig(device="panel0"), base=tmp_path)
    block.click(ClickEvent(MouseButton.WHEEL_UP, "someone-else"))
    assert block.device.brightness() == 50


def test_wheel_down_stops_at_step(tmp_path):
    _make_device(tmp_path, current="5\n")
    block = Backlight(BacklightConfig(device="panel0", step_width=5), base=tmp_path)
    block.click(ClickEvent(MouseButton.WHEEL_DOWN, block.id))
    assert block.device.brightness() == 5
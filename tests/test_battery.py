from pathlib import Path

import pytest

from barblocks.battery import (
    Battery,
    BatteryConfig,
    BatteryDevice,
    BatteryDriver,
    PowerSupplyDevice,
    battery_state,
    format_time,
)
from barblocks.block import BlockError, State


def make_device(base: Path, name: str = "BAT0", **files: str) -> Path:
    device = base / name
    device.mkdir(parents=True)
    for key, value in files.items():
        (device / key).write_text(value + "\n")
    return device


class FakeDevice(BatteryDevice):
    def __init__(self, status="Discharging", capacity=80, minutes=90, power=None):
        self._status = status
        self._capacity = capacity
        self._minutes = minutes
        self._power = power

    def status(self):
        return self._status

    def capacity(self):
        return self._capacity

    def time_remaining(self):
        return self._minutes

    def power_consumption(self):
        if self._power is None:
            raise BlockError("battery", "no power")
        return self._power


@pytest.mark.parametrize(
    "capacity, expected",
    [
        (0, State.CRITICAL),
        (15, State.CRITICAL),
        (16, State.WARNING),
        (30, State.WARNING),
        (31, State.INFO),
        (60, State.INFO),
        (61, State.GOOD),
        (100, State.GOOD),
        (101, State.WARNING),
        (None, State.WARNING),
    ],
)
def test_battery_state(capacity, expected):
    assert battery_state(capacity) is expected


def test_format_time_pads_minutes():
    assert format_time(125) == "2:05"


def test_format_time_round_trip():
    for minutes in (0, 59, 60, 61, 600):
        hours, mins = format_time(minutes).split(":")
        assert len(mins) == 2
        assert int(hours) * 60 + int(mins) == minutes


def test_from_device_missing(tmp_path):
    with pytest.raises(BlockError):
        PowerSupplyDevice.from_device("BAT9", tmp_path)


def test_from_device_bad_charge_full(tmp_path):
    make_device(tmp_path, charge_full="abc")
    with pytest.raises(BlockError):
        PowerSupplyDevice.from_device("BAT0", tmp_path)


def test_status_and_capacity_file(tmp_path):
    make_device(tmp_path, status="Discharging", capacity="57")
    device = PowerSupplyDevice.from_device("BAT0", tmp_path)
    assert device.status() == "Discharging"
    assert device.capacity() == 57


def test_capacity_capped_at_100(tmp_path):
    make_device(tmp_path, capacity="150")
    device = PowerSupplyDevice.from_device("BAT0", tmp_path)
    assert device.capacity() == 100


def test_capacity_from_charge_matches_capacity_file(tmp_path):
    make_device(tmp_path, "A", charge_now="40", charge_full="80")
    make_device(tmp_path, "B", energy_now="40", energy_full="80")
    from_charge = PowerSupplyDevice.from_device("A", tmp_path).capacity()
    from_energy = PowerSupplyDevice.from_device("B", tmp_path).capacity()
    assert from_charge == from_energy
    assert 0 <= from_charge <= 100


def test_capacity_unsupported(tmp_path):
    make_device(tmp_path, status="Full")
    device = PowerSupplyDevice.from_device("BAT0", tmp_path)
    with pytest.raises(BlockError):
        device.capacity()


def test_time_remaining_full_is_sum_of_parts(tmp_path):
    def minutes(status):
        root = tmp_path / status.replace(" ", "_")
        make_device(
            root, status=status, energy_full="60", energy_now="30", power_now="30"
        )
        return PowerSupplyDevice.from_device("BAT0", root).time_remaining()

    assert minutes("Charging") + minutes("Discharging") == minutes("Full")
    assert minutes("Unknown") == 0


def test_time_remaining_without_power(tmp_path):
    make_device(tmp_path, status="Discharging", energy_full="60", energy_now="30")
    device = PowerSupplyDevice.from_device("BAT0", tmp_path)
    with pytest.raises(BlockError):
        device.time_remaining()


def test_time_remaining_without_full(tmp_path):
    make_device(tmp_path, status="Discharging", energy_now="30", power_now="10")
    device = PowerSupplyDevice.from_device("BAT0", tmp_path)
    with pytest.raises(BlockError):
        device.time_remaining()


def test_power_consumption(tmp_path):
    make_device(tmp_path, power_now="1234567")
    device = PowerSupplyDevice.from_device("BAT0", tmp_path)
    assert device.power_consumption() == 1234567


def test_power_consumption_unsupported(tmp_path):
    make_device(tmp_path)
    device = PowerSupplyDevice.from_device("BAT0", tmp_path)
    with pytest.raises(BlockError):
        device.power_consumption()


def test_block_full_battery(tmp_path):
    make_device(tmp_path, status="Full", capacity="100")
    block = Battery(BatteryConfig(), base=tmp_path)
    assert block.update() == BatteryConfig().interval
    widget = block.view()[0]
    assert widget.text == ""
    assert widget.icon == "bat_full"
    assert widget.state is State.GOOD


def test_block_discharging_missing_values(tmp_path):
    make_device(tmp_path, status="Discharging", capacity="57")
    block = Battery(BatteryConfig(format="{percentage}% {time} {power}"), base=tmp_path)
    block.update()
    widget = block.view()[0]
    assert widget.text == "57% × ×"
    assert widget.icon == "bat_discharging"
    assert widget.state is battery_state(57)


def test_block_charging_is_good(tmp_path):
    make_device(tmp_path, status="Charging", capacity="5")
    block = Battery(base=tmp_path)
    block.update()
    widget = block.view()[0]
    assert widget.state is State.GOOD
    assert widget.icon == "bat_charging"


def test_block_show_time(tmp_path):
    device = FakeDevice(minutes=125)
    block = Battery(BatteryConfig(show="time"), device=device)
    block.update()
    assert block.view()[0].text == format_time(125)


def test_block_unknown_show(tmp_path):
    make_device(tmp_path, status="Full")
    with pytest.raises(BlockError):
        Battery(BatteryConfig(show="everything"), base=tmp_path)


def test_block_upower_driver_returns_no_interval():
    device = FakeDevice(power=1500000)
    block = Battery(BatteryConfig(driver="upower", format="{power}"), device=device)
    assert block.driver is BatteryDriver.UPOWER
    assert block.update() is None
    assert block.view()[0].text == "1.50"


def test_block_deprecated_upower_flag_without_device():
    with pytest.raises(BlockError):
        Battery(BatteryConfig(upower=True))


def test_block_unknown_driver(tmp_path):
    with pytest.raises(BlockError):
        Battery(BatteryConfig(driver="acpi"), base=tmp_path)
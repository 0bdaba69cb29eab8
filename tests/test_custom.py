import pytest

from barblocks.block import ClickEvent, MouseButton, parse_config, BlockError
from barblocks.custom import Custom, CustomConfig, run_shell


@pytest.fixture(autouse=True)
def posix_shell(monkeypatch):
    monkeypatch.setenv("SHELL", "sh")


def test_run_shell_trims_output():
    assert run_shell("echo '  hello  '") == "hello"


def test_run_shell_missing_shell(monkeypatch):
    monkeypatch.setenv("SHELL", "/nonexistent/shell")
    assert "/nonexistent/shell" in run_shell("echo hi")


def test_run_shell_empty_command():
    assert run_shell("") == ""


def test_update_shows_command_output():
    block = Custom(CustomConfig(command="echo status", interval=3.0))
    assert block.update() == 3.0
    assert block.view()[0].text == "status"


def test_update_without_command_is_empty():
    block = Custom()
    assert block.update() == CustomConfig().interval
    assert block.view()[0].text == ""


def test_widget_named_after_block():
    block = Custom()
    assert block.view()[0].name == block.id


def test_cycle_advances_on_click_and_wraps():
    requests = []
    block = Custom(
        CustomConfig(cycle=["echo first", "echo second"], command="echo ignored"),
        request_update=requests.append,
    )
    block.update()
    assert block.view()[0].text == "first"

    block.click(ClickEvent(MouseButton.LEFT, block.id))
    block.update()
    assert block.view()[0].text == "second"

    block.click(ClickEvent(MouseButton.LEFT, block.id))
    block.update()
    assert block.view()[0].text == "first"
    assert requests == [block.id, block.id]


def test_click_for_other_widget_is_ignored():
    requests = []
    block = Custom(CustomConfig(cycle=["echo a", "echo b"]), request_update=requests.append)
    block.click(ClickEvent(MouseButton.LEFT, "someone-else"))
    block.click(ClickEvent(MouseButton.LEFT, None))
    block.update()
    assert block.view()[0].text == "a"
    assert requests == []


def test_on_click_runs_command(tmp_path):
    marker = tmp_path / "clicked"
    requests = []
    block = Custom(
        CustomConfig(command="echo x", on_click=f"touch '{marker}'"),
        request_update=requests.append,
    )
    block.click(ClickEvent(MouseButton.RIGHT, block.id))
    assert marker.exists()
    assert requests == [block.id]


def test_click_without_actions_requests_nothing():
    requests = []
    block = Custom(CustomConfig(command="echo x"), request_update=requests.append)
    block.click(ClickEvent(MouseButton.LEFT, block.id))
    assert requests == []


def test_empty_cycle_shows_nothing():
    block = Custom(CustomConfig(cycle=[]))
    block.click(ClickEvent(MouseButton.LEFT, block.id))
    block.update()
    assert block.view()[0].text == ""


def test_config_from_mapping():
    config = parse_config(CustomConfig, {"command": "echo hi", "interval": 2.5})
    assert config.command == "echo hi"
    assert config.interval == 2.5
    with pytest.raises(BlockError):
        parse_config(CustomConfig, {"shell": "bash"})
# barblocks

Building blocks for a Linux status bar. Each block reads a piece of system
information and turns it into widgets: short pieces of text with an icon
name and a state. There are blocks for CPU usage, load average, memory and
swap, batteries, backlight brightness, disk space, Docker, NVIDIA GPUs, the
keyboard layout, maildirs, and custom shell commands.

Most blocks read from `/proc` and `/sys`. Some call external tools, such as
`nvidia-smi`, `nvidia-settings`, `setxkbmap` or `curl`. A block needs its
tool only when that block is in use.

## Using a block

Every block is a subclass of `barblocks.block.Block`. You build it from its
configuration dataclass and, optionally, a callable that the block uses to
ask for an immediate refresh, for example after a click. The callable gets
the block's `id`.

```python
from barblocks.block import parse_config
from barblocks.cpu import Cpu, CpuConfig

def request_update(block_id):
    print("refresh requested for", block_id)

config = parse_config(CpuConfig, {"interval": 2, "format": "{utilization}%"})
cpu = Cpu(config, request_update)

next_interval = cpu.update()   # seconds until the next refresh, or None
for widget in cpu.view():
    print(widget.text, widget.icon, widget.state)
```

`parse_config(config_class, values)` builds a configuration dataclass from a
mapping and raises `barblocks.block.BlockError` for an unknown or a missing
option.

- `update()` refreshes the block and returns how many seconds to wait before
  the next refresh. `None` means the block refreshes only when it asks for it.
- `view()` returns the `Widget` objects to draw. Each has `text`, `icon`,
  `state` and `name`.
- `click(event)` takes a `barblocks.block.ClickEvent`, which holds a
  `MouseButton` and the `name` of the clicked widget. A block reacts only to
  clicks on its own widgets.

Blocks raise `BlockError` when they cannot read or present their data.

## Available blocks

| Module                      | Block / config                            | Shows                                                 |
|-----------------------------|-------------------------------------------|-------------------------------------------------------|
| `barblocks.backlight`       | `Backlight`, `BacklightConfig`            | Screen brightness; the mouse wheel changes it         |
| `barblocks.battery`         | `Battery`, `BatteryConfig`                | Charge, time remaining and power draw (sysfs)         |
| `barblocks.cpu`             | `Cpu`, `CpuConfig`                        | Utilization, per-core bar chart, frequency            |
| `barblocks.custom`          | `Custom`, `CustomConfig`                  | Output of a shell command, with optional cycling      |
| `barblocks.disk_space`      | `DiskSpace`, `DiskSpaceConfig`            | Free, available, used or total space of a path        |
| `barblocks.docker`          | `Docker`, `DockerConfig`                  | Container and image counts                            |
| `barblocks.keyboard_layout` | `KeyboardLayout`, `KeyboardLayoutConfig`  | The current keyboard layout                           |
| `barblocks.load`            | `Load`, `LoadConfig`                      | 1, 5 and 15 minute load averages                      |
| `barblocks.maildir`         | `Maildir`, `MaildirConfig`                | Number of messages in maildir inboxes                 |
| `barblocks.memory`          | `Memory`, `MemoryConfig`                  | Memory or swap usage; a left click switches views     |
| `barblocks.nvidia_gpu`      | `NvidiaGpu`, `NvidiaGpuConfig`            | GPU utilization, memory, temperature, fan, clocks     |

The modules also expose the helpers their blocks are built from, such as
`parse_meminfo` and `memory_values` in `barblocks.memory`,
`parse_cpu_frequency` and `barchart` in `barblocks.cpu`,
`count_logical_cores` in `barblocks.load`, `parse_docker_info` in
`barblocks.docker`, `parse_setxkbmap` in `barblocks.keyboard_layout`,
`count_mail` in `barblocks.maildir` and `query_gpu` in
`barblocks.nvidia_gpu`.

`barblocks.ibus.find_ibus_address(config_home=None, environ=None)` returns
the D-Bus address of the running IBus daemon, from `$IBUS_ADDRESS` or from
the daemon's socket file.

## Format strings

Several blocks take a `format` option with `{placeholder}` fields, for
example `"{percentage}% {time}"` for `battery`, `"{1m} {5m} {15m}"` for
`load`, or `"{Mum}MB/{MTm}MB({Mup}%)"` for `memory`. An unknown placeholder
raises `BlockError`. Each configuration class lists the options it accepts
and their defaults.

## States

Every widget carries a `barblocks.block.State`: idle, info, good, warning or
critical. Blocks set it from their own thresholds, for example `cpu`'s
`info`, `warning` and `critical` percentages, or `memory`'s `warning_mem`
and `critical_mem`.

## What is not included

- There is no program that runs a bar. Nothing schedules updates, writes
  the bar's output protocol or reads click events. You drive the blocks
  yourself.
- There is no way to create a block by name. Import the block class and
  construct it.
- There is no network block that shows link state, SSID, IP address or
  throughput.
- `Battery` reads sysfs only. Selecting the `upower` driver raises
  `BlockError` unless you pass your own `BatteryDevice`.
- `KeyboardLayout` reads the layout with `setxkbmap` only. The `localebus`
  driver raises `BlockError` unless you pass your own monitor.
- There is no IBus block, only `find_ibus_address`.
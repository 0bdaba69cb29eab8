"""Status bar blocks reporting CPU, memory, load, battery, disk, GPU and other system information."""

__version__ = "0.1.0"
"""Plugin building blocks: request/result types, a stdin/stdout runner, YAML dumps,
annotation-driven device and mount injection, and change tracking between plugins."""

__version__ = "0.1.0"

__all__ = ["device_injector", "differ", "dump", "skel", "types"]
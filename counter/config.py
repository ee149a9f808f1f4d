"""Service configuration from an optional YAML file.

Example (every key optional):

    window_seconds: 60
    persistence_path: rs.json   # empty string disables persistence
    address: ":8080"
    metrics_port: 9090          # 0 disables the Prometheus endpoint
"""

from dataclasses import dataclass, fields
from pathlib import Path

import yaml

DEFAULT_WINDOW_SECONDS = 60
DEFAULT_PERSISTENCE_PATH = "rs.json"
DEFAULT_ADDRESS = ":8080"


@dataclass
class Config:
    window_seconds: int = DEFAULT_WINDOW_SECONDS
    persistence_path: str = DEFAULT_PERSISTENCE_PATH
    address: str = DEFAULT_ADDRESS
    metrics_port: int = 0


_KNOWN_FIELDS = tuple(f.name for f in fields(Config))


def load_config(path: str | Path) -> Config:
    """Parse *path* into a Config; missing keys keep their defaults."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        definition = yaml.safe_load(f)

    if definition is None:
        return Config()
    if not isinstance(definition, dict):
        raise ValueError(f"{path.name}: top level must be a mapping")

    for key in definition:
        if key not in _KNOWN_FIELDS:
            raise ValueError(f"{path.name}: unknown field '{key}'")

    config = Config(**definition)
    validate_config(config, path.name)
    return config


def validate_config(config: Config, source: str) -> None:
    """Raise ValueError naming *source* if any field is out of range."""
    window = config.window_seconds
    if not _is_int(window) or window <= 0:
        raise ValueError(
            f"{source}: 'window_seconds' must be a positive integer, got {window!r}"
        )
    if config.persistence_path is None:
        config.persistence_path = ""  # `persistence_path:` with no value
    if not isinstance(config.persistence_path, str):
        raise ValueError(f"{source}: 'persistence_path' must be a string")
    if not isinstance(config.address, str):
        raise ValueError(f"{source}: 'address' must be a string")
    parse_address(config.address)
    port = config.metrics_port
    if not _is_int(port) or not 0 <= port <= 65535:
        raise ValueError(f"{source}: 'metrics_port' must be 0-65535, got {port!r}")


def parse_address(address: str) -> tuple[str, int]:
    """Split "host:port" (host may be empty) into a bind tuple."""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid address '{address}', expected [host]:port")
    port_num = int(port)
    if port_num > 65535:
        raise ValueError(f"Invalid port in address '{address}'")
    return host, port_num


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)

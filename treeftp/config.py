import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import dotenv_values

ENV_PREFIX = "TREEFTP_"
DEFAULT_PORT = 21
DEFAULT_TIMEOUT = 30.0
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_TRUE = ('1', 'true', 'yes', 'on')
_FALSE = ('0', 'false', 'no', 'off', '')


@dataclass
class ReconnectPolicy:
    """
    Fixed-interval reconnect schedule for a dropped connection.

    Attributes:
        settle: Seconds to wait before the first reconnect attempt.
        interval: Seconds between two failed attempts.
        budget: Total seconds of attempts before giving up.
    """

    settle: float = 5.0
    interval: float = 5.0
    budget: float = 300.0

    def __post_init__(self) -> None:
        if self.settle < 0:
            raise ValueError("Reconnect settle delay cannot be negative")
        if self.interval < 0:
            raise ValueError("Reconnect interval cannot be negative")
        if self.budget < 0:
            raise ValueError("Reconnect budget cannot be negative")


@dataclass
class Settings:
    """
    Crawl settings, resolved from defaults, a `.env` file and the environment.

    Command line flags are applied on top by the entrypoint.
    """

    username: str = "anonymous"
    password: str = "anonymous"
    depth: int = 1
    extended: bool = False
    bfs: bool = False
    json: bool = False
    timeout: float = DEFAULT_TIMEOUT
    log_level: str = "INFO"
    reconnect: ReconnectPolicy = field(default_factory=ReconnectPolicy)

    def __post_init__(self) -> None:
        if self.depth < 0:
            raise ValueError("Depth cannot be negative")
        if self.timeout <= 0:
            raise ValueError("Timeout must be positive")

    @classmethod
    def from_env(cls, env_file: Optional[str] = ".env", environ: Optional[Dict[str, str]] = None) -> "Settings":
        values: Dict[str, str] = {}
        if env_file and os.path.exists(env_file):
            values.update({k: v for k, v in dotenv_values(dotenv_path=env_file).items() if v is not None})
        values.update(os.environ if environ is None else environ)

        def get(name, convert, default):
            key = ENV_PREFIX + name
            raw = values.get(key)
            if raw is None:
                return default
            try:
                return convert(raw.strip())
            except ValueError as e:
                raise ValueError(f"Invalid value for {key}: {raw!r}") from e

        defaults = cls()
        policy = ReconnectPolicy(
            settle=get("RECONNECT_SETTLE", float, defaults.reconnect.settle),
            interval=get("RECONNECT_INTERVAL", float, defaults.reconnect.interval),
            budget=get("RECONNECT_BUDGET", float, defaults.reconnect.budget),
        )
        return cls(
            username=get("USERNAME", str, defaults.username),
            password=get("PASSWORD", str, defaults.password),
            depth=get("DEPTH", int, defaults.depth),
            extended=get("EXTENDED", parse_bool, defaults.extended),
            bfs=get("BFS", parse_bool, defaults.bfs),
            json=get("JSON", parse_bool, defaults.json),
            timeout=get("TIMEOUT", float, defaults.timeout),
            log_level=get("LOG_LEVEL", str.upper, defaults.log_level),
            reconnect=policy,
        )


def parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"Not a boolean: {value!r}")


def configure_logging(level: str = "INFO") -> None:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    logging.getLogger("treeftp").setLevel(numeric)

"""
API configuration module.

Provides the configuration consumed by the client: where account data
lives, the browser identity, and the timeout and retry settings applied to
every outbound request. Values are read from a YAML file.
"""
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional, Dict, Any, Union

import yaml

from ..exceptions import ValidationError, StorageIOError

CONFIG_PATH_ENV = 'WSAPI_CONFIG_PATH'
DEFAULT_CONFIG_PATH = '~/.weibopy/config.yaml'
DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/94.0.4606.81 Safari/537.36'
)


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.

    ``total`` bounds a whole request including redirects.
    """
    total: float = 15.0
    connect: Optional[float] = None

    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        import aiohttp
        return aiohttp.ClientTimeout(total=self.total, connect=self.connect)


@dataclass
class RetryConfig:
    """
    Transport retry configuration.

    Controls how often a single GET is repeated after a connection error or
    a 5xx status. Independent of the stale-session retry in the client.
    """
    max_retries: int = 3
    base_delay: float = 0.25
    max_delay: float = 4.0
    exponential_base: float = 2.0

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for given attempt number."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        return min(delay, self.max_delay)


@dataclass
class WeiboConfig:
    """
    Complete client configuration.

    Attributes:
        data_dir: Data directory, relative paths resolve against the config file
        user_agent: User agent sent with every request
        request_timeout_seconds: Timeout for each request (at least 5)
        request_retries: Transport retries for each request
        config_path: Where the configuration was loaded from
    """
    data_dir: str = './data'
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout_seconds: float = 15.0
    request_retries: int = 3
    config_path: Path = field(default_factory=lambda: Path(DEFAULT_CONFIG_PATH).expanduser())

    def __post_init__(self):
        self.config_path = Path(self.config_path).expanduser().resolve()
        self.validate()

    @classmethod
    def default_values(cls) -> Dict[str, Any]:
        return {
            'data_dir': './data',
            'user_agent': DEFAULT_USER_AGENT,
            'request_timeout_seconds': 15.0,
            'request_retries': 3,
        }

    @staticmethod
    def resolve_path(config_path: Optional[Union[str, Path]] = None) -> Path:
        """
        Pick the configuration file path.

        Order: explicit argument, ``WSAPI_CONFIG_PATH`` (ignored when blank),
        then ``~/.weibopy/config.yaml``.
        """
        env_path = os.environ.get(CONFIG_PATH_ENV)
        if env_path is not None and not env_path.strip():
            env_path = None
        chosen = config_path or env_path or DEFAULT_CONFIG_PATH
        return Path(chosen).expanduser().resolve()

    @classmethod
    def load(cls, config_path: Optional[Union[str, Path]] = None) -> 'WeiboConfig':
        """
        Load configuration from YAML, writing the defaults first if missing.

        Raises:
            ValidationError: If the path is a directory or the YAML is invalid
            StorageIOError: If the file cannot be created or read
        """
        path = cls.resolve_path(config_path)

        if path.exists():
            if path.is_dir():
                raise ValidationError("the config path refers to a directory but should refer to a file")
        else:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageIOError("the config path is invalid - unable to create the containing directory") from e
            try:
                path.write_text(yaml.safe_dump(cls.default_values()), encoding='utf-8')
            except OSError as e:
                raise StorageIOError("the config path is invalid - unable to write file to disk") from e

        try:
            content = path.read_text(encoding='utf-8')
        except OSError as e:
            raise StorageIOError("the config path is invalid - unable to read file from disk") from e

        try:
            values = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise ValidationError(f"config file is invalid - unable to parse YAML content with error: {e}")
        if not isinstance(values, dict):
            raise ValidationError("config file is invalid - expected a mapping at the top level")

        defaults = cls.default_values()
        merged = {key: values.get(key) if values.get(key) is not None else default
                  for key, default in defaults.items()}
        return cls(config_path=path, **merged)

    def validate(self) -> None:
        if not isinstance(self.data_dir, str) or not self.data_dir:
            raise ValidationError("config file is invalid - data_dir is expected to be a non-empty string")
        if not isinstance(self.user_agent, str) or not self.user_agent:
            raise ValidationError("config file is invalid - user_agent is expected to be a non-empty string")
        timeout = self.request_timeout_seconds
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout < 5:
            raise ValidationError(
                "config file is invalid - request_timeout_seconds is expected to be a number and at least 5"
            )
        retries = self.request_retries
        if isinstance(retries, bool) or not isinstance(retries, int) or retries < 0:
            raise ValidationError(
                "config file is invalid - request_retries is expected to be a non-negative integer"
            )

    @property
    def data_path(self) -> Path:
        """Data directory resolved against the config file's directory."""
        return (self.config_path.parent / Path(self.data_dir).expanduser()).resolve()

    @property
    def timeout(self) -> TimeoutConfig:
        return TimeoutConfig(total=float(self.request_timeout_seconds))

    @property
    def retry(self) -> RetryConfig:
        return RetryConfig(max_retries=self.request_retries)

    def to_dict(self) -> Dict[str, Any]:
        values = asdict(self)
        values.pop('config_path')
        return values

    def save(self) -> None:
        try:
            self.config_path.write_text(yaml.safe_dump(self.to_dict()), encoding='utf-8')
        except OSError as e:
            raise StorageIOError("the config path is invalid - unable to write file to disk") from e

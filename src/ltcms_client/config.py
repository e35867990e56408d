"""Configuration management for the content API client.

Supports TOML configuration format with auto-discovery.
"""

import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

CONFIG_FILENAME = "ltcms.toml"
DEFAULT_CSRF_COOKIE = "ltcms_csrf"


@dataclass
class ApiConfig:
    """Remote content API configuration."""

    base_url: str | None = None
    origin: str | None = None
    base_path: str = "/"
    timeout: float = 15.0
    cache_bust: bool = False
    csrf_cookie: str = DEFAULT_CSRF_COOKIE


@dataclass
class RetryConfig:
    """Retry policy for list loads."""

    max_attempts: int = 3
    base_delay: float = 0.3


@dataclass
class CliSettings:
    """Overrides collected from command-line options.

    Every field left as None keeps the value from the configuration file.
    """

    base_url: str | None = None
    timeout: float | None = None
    cache_bust: bool | None = None


@dataclass
class Config:
    """Application configuration."""

    api: ApiConfig
    retry: RetryConfig
    config_path: Path | None = None

    @classmethod
    def load(
        cls,
        config_path: Path | None = None,
        cli_settings: CliSettings | None = None,
    ) -> "Config":
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for ltcms.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file
            cli_settings: Optional command-line overrides

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            config = cls._load_from_file(config_path)
        else:
            discovered_path = cls._discover_config()
            if discovered_path is None:
                config = cls.default()
            else:
                config = cls._load_from_file(discovered_path)

        if cli_settings is not None:
            config = config.with_overrides(cli_settings)
        return config

    @classmethod
    def default(cls) -> "Config":
        """Create config with all defaults."""
        return cls(api=ApiConfig(), retry=RetryConfig())

    def with_overrides(self, cli_settings: CliSettings) -> "Config":
        """Return a copy with command-line overrides applied."""
        api = self.api
        if cli_settings.base_url is not None:
            api = replace(api, base_url=cli_settings.base_url)
        if cli_settings.timeout is not None:
            api = replace(api, timeout=cli_settings.timeout)
        if cli_settings.cache_bust is not None:
            api = replace(api, cache_bust=cli_settings.cache_bust)
        return replace(self, api=api)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents.

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load configuration from a specific file.

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            data = tomllib.load(f)

        return cls(
            api=cls._parse_api(data.get("api")),
            retry=cls._parse_retry(data.get("retry")),
            config_path=path,
        )

    @classmethod
    def _parse_api(cls, data: object) -> ApiConfig:
        """Parse api configuration section."""
        if data is None:
            return ApiConfig()

        if not isinstance(data, dict):
            raise ValueError("api section must be a dictionary")

        base_url = data.get("base_url")
        if base_url is not None and not isinstance(base_url, str):
            raise ValueError("api.base_url must be a string")

        origin = data.get("origin")
        if origin is not None and not isinstance(origin, str):
            raise ValueError("api.origin must be a string")

        base_path = data.get("base_path", "/")
        if not isinstance(base_path, str):
            raise ValueError("api.base_path must be a string")

        timeout = data.get("timeout", 15.0)
        if isinstance(timeout, bool) or not isinstance(timeout, int | float):
            raise ValueError("api.timeout must be a number")
        if timeout <= 0:
            raise ValueError("api.timeout must be positive")

        cache_bust = data.get("cache_bust", False)
        if not isinstance(cache_bust, bool):
            raise ValueError("api.cache_bust must be a boolean")

        csrf_cookie = data.get("csrf_cookie", DEFAULT_CSRF_COOKIE)
        if not isinstance(csrf_cookie, str) or not csrf_cookie:
            raise ValueError("api.csrf_cookie must be a non-empty string")

        return ApiConfig(
            base_url=base_url,
            origin=origin,
            base_path=base_path,
            timeout=float(timeout),
            cache_bust=cache_bust,
            csrf_cookie=csrf_cookie,
        )

    @classmethod
    def _parse_retry(cls, data: object) -> RetryConfig:
        """Parse retry configuration section."""
        if data is None:
            return RetryConfig()

        if not isinstance(data, dict):
            raise ValueError("retry section must be a dictionary")

        max_attempts = data.get("max_attempts", 3)
        if isinstance(max_attempts, bool) or not isinstance(max_attempts, int):
            raise ValueError("retry.max_attempts must be an integer")
        if max_attempts < 1:
            raise ValueError("retry.max_attempts must be at least 1")

        base_delay = data.get("base_delay", 0.3)
        if isinstance(base_delay, bool) or not isinstance(base_delay, int | float):
            raise ValueError("retry.base_delay must be a number")
        if base_delay < 0:
            raise ValueError("retry.base_delay must not be negative")

        return RetryConfig(max_attempts=max_attempts, base_delay=float(base_delay))

"""Configuration management using Pydantic settings and a YAML target file."""

import ipaddress
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REFRESH_INTERVAL = 3600
MAX_ASN = 4294967295
DEFAULT_VALIDATOR_URL = "https://rpki-validator.ripe.net/validity"


class ConfigError(Exception):
    """Raised when the target configuration cannot be loaded or is invalid."""

    pass


class Settings(BaseSettings):
    """Process settings loaded from environment and CLI.

    Settings are loaded in priority order:
    1. CLI arguments (highest priority)
    2. Environment variables (RPKI_EXPORTER_ prefix)
    3. .env file
    4. Default values (lowest priority)
    """

    model_config = SettingsConfigDict(
        env_prefix="RPKI_EXPORTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    listen_address: str = Field(
        default=":9959",
        description="Address to listen on for HTTP requests (host:port)",
    )
    metrics_path: str = Field(
        default="/metrics",
        description="Path under which to expose metrics",
    )
    config_file: str = Field(
        default="config.yaml",
        description="Path to the YAML target configuration file",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug logging",
    )
    validator_url: str = Field(
        default=DEFAULT_VALIDATOR_URL,
        description="Base URL of the remote RPKI validity endpoint",
    )

    @field_validator("metrics_path")
    @classmethod
    def _check_metrics_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError(f"metrics path must start with '/': {value!r}")
        return value

    def listen_host_port(self) -> tuple[str | None, int]:
        """Split the listen address into host and port.

        An empty host (e.g. ":9959") means all interfaces and is returned as None.

        Raises:
            ValueError: If the port is missing or not a number.
        """
        host, sep, port = self.listen_address.rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"invalid listen address: {self.listen_address!r}")
        host = host.strip("[]")
        return (host or None), int(port)


class TargetConfig(BaseModel):
    """One origin AS and the prefixes it is expected to announce."""

    model_config = ConfigDict(populate_by_name=True)

    asn: int = Field(alias="as")
    prefixes: list[str] = Field(default_factory=list)

    @field_validator("asn", mode="before")
    @classmethod
    def _check_asn(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"AS number must be an integer, got {value!r}")
        if value < 1 or value > MAX_ASN:
            raise ValueError(f"AS number {value} is out of range [1, {MAX_ASN}]")
        return value

    @field_validator("prefixes")
    @classmethod
    def _check_prefixes(cls, value: list[str]) -> list[str]:
        for prefix in value:
            if not is_canonical_prefix(prefix):
                raise ValueError(f"prefix is not valid: {prefix}")
        return value

    @model_validator(mode="after")
    def _check_not_empty(self) -> "TargetConfig":
        if not self.prefixes:
            raise ValueError(f"no prefixes defined for AS {self.asn}")
        return self


class ExporterConfig(BaseModel):
    """Target configuration file contents."""

    model_config = ConfigDict(extra="ignore")

    refresh_interval: int = DEFAULT_REFRESH_INTERVAL
    track_vrp_detail: bool = False
    targets: list[TargetConfig] = Field(default_factory=list, validate_default=True)

    @field_validator("refresh_interval", mode="before")
    @classmethod
    def _default_interval(cls, value: Any) -> Any:
        if value is None:
            return DEFAULT_REFRESH_INTERVAL
        return value

    @field_validator("refresh_interval")
    @classmethod
    def _positive_interval(cls, value: int) -> int:
        return value if value > 0 else DEFAULT_REFRESH_INTERVAL

    @field_validator("targets")
    @classmethod
    def _check_targets(cls, value: list[TargetConfig]) -> list[TargetConfig]:
        if not value:
            raise ValueError("no targets defined in the configuration file")
        return value

    @property
    def prefix_count(self) -> int:
        """Total number of (AS, prefix) pairs queried per cycle."""
        return sum(len(target.prefixes) for target in self.targets)


def is_canonical_prefix(prefix: str) -> bool:
    """Return True if prefix is a CIDR block already in canonical (masked) form.

    "192.0.2.0/24" is canonical; "192.0.2.1/24", "192.0.2.0" and scoped
    IPv6 addresses ("fe80::%eth0/64") are not.
    """
    if not isinstance(prefix, str) or "/" not in prefix or "%" in prefix:
        return False
    try:
        network = ipaddress.ip_network(prefix, strict=False)
    except ValueError:
        return False
    return str(network) == prefix


def _format_errors(exc: ValidationError) -> str:
    lines = []
    for error in exc.errors():
        location = ""
        for part in error["loc"]:
            location += f"[{part}]" if isinstance(part, int) else f".{part}"
        lines.append(f"{location.lstrip('.') or 'config'}: {error['msg']}")
    return "; ".join(lines)


def parse_config(data: Any, source: str = "<config>") -> ExporterConfig:
    """Validate an already-parsed configuration document.

    Args:
        data: Parsed YAML document.
        source: Name used in error messages.

    Raises:
        ConfigError: If the document is not a mapping or fails validation.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{source}: configuration must be a mapping, got {type(data).__name__}")
    try:
        return ExporterConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"{source}: {_format_errors(e)}") from e


def load_config(path: str | Path) -> ExporterConfig:
    """Load and validate the YAML target configuration file.

    Args:
        path: Path to the configuration file.

    Returns:
        Validated ExporterConfig.

    Raises:
        ConfigError: If the file is unreadable, not valid YAML, or invalid.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read configuration file {path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"cannot parse configuration file {path}: {e}") from e

    return parse_config(data, source=str(path))


def load_settings(**overrides) -> Settings:
    """Load settings with optional overrides.

    Args:
        **overrides: Keyword arguments to override settings.

    Returns:
        Settings instance.
    """
    return Settings(**{k: v for k, v in overrides.items() if v is not None})

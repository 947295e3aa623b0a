"""
dssdeploy Configuration System

Configuration for the external-deployment migration: which network is the
bootstrap network, where the fixed address table lives, the synthetic
economic parameters seeded on bootstrap, and logging.

Configuration Sources (in order of precedence):
    1. Environment variables (DSSDEPLOY_*)
    2. Runtime overrides
    3. User config file (~/.dssdeploy/config.yaml)
    4. Project config file (./dssdeploy.yaml)
    5. Default values

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

import yaml

from dssdeploy.observability import DeployStage, LogLevel, get_logger

T = TypeVar("T")

logger = get_logger("config", DeployStage.CONFIG)


class ConfigError(Exception):
    """Configuration error."""
    pass


class ValidationError(ConfigError):
    """Configuration validation error."""
    pass


@dataclass
class ConfigValue(Generic[T]):
    """
    A single configuration value with metadata.

    Supports default values, environment variable binding and
    validation. Environment values go through the same validator as
    values set from files.
    """
    default: T
    env_var: Optional[str] = None
    description: str = ""
    validator: Optional[Callable[[T], bool]] = None
    _value: Optional[T] = field(default=None, repr=False)

    def get(self) -> T:
        """Get the current value."""
        if self.env_var and self.env_var in os.environ:
            raw = os.environ[self.env_var]
            try:
                value = self._coerce(raw)
            except (ValueError, ArithmeticError) as exc:
                raise ValidationError(f"Invalid value for {self.env_var}: {raw!r}") from exc
            self._check(value, f"{self.env_var}={raw!r}")
            return value
        return self._value if self._value is not None else self.default

    def set(self, value: T) -> None:
        """Set the value with validation."""
        if isinstance(self.default, Decimal) and not isinstance(value, Decimal):
            try:
                value = Decimal(str(value))  # type: ignore
            except ArithmeticError as exc:
                raise ValidationError(f"Invalid value for config: {value}") from exc
        elif isinstance(self.default, list) and not isinstance(value, list):
            if isinstance(value, str):
                value = self._coerce(value)
            elif isinstance(value, tuple):
                value = list(value)  # type: ignore
            else:
                value = [value]  # type: ignore
        self._check(value, str(value))
        self._value = value

    def _check(self, value: T, shown: str) -> None:
        try:
            valid = self.validator is None or self.validator(value)
        except (ValueError, ArithmeticError, TypeError) as exc:
            raise ValidationError(f"Invalid value for config: {shown}") from exc
        if not valid:
            raise ValidationError(f"Invalid value for config: {shown}")

    def _coerce(self, value: str) -> T:
        """Coerce string value to target type."""
        target_type = type(self.default)

        if target_type == bool:
            return value.lower() in ("true", "1", "yes", "on")  # type: ignore
        elif target_type == int:
            return int(value)  # type: ignore
        elif target_type == Decimal:
            return Decimal(value)  # type: ignore
        elif target_type == list:
            return [v.strip() for v in value.split(",") if v.strip()]  # type: ignore
        else:
            return value  # type: ignore


@dataclass
class NetworkConfig:
    """Network classification and the fixed address table."""
    bootstrap_network: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="development",
        env_var="DSSDEPLOY_BOOTSTRAP_NETWORK",
        description="Network that gets a full deployment from scratch",
        validator=lambda x: bool(x),
    ))
    addresses_file: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="fixed_addrs.json",
        env_var="DSSDEPLOY_ADDRESSES_FILE",
        description="Fixed address table for reuse networks (JSON or YAML)",
    ))


@dataclass
class BootstrapConfig:
    """Synthetic economic state seeded on the bootstrap network."""
    collateral: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="ETH-A",
        env_var="DSSDEPLOY_COLLATERAL",
        description="Collateral type (ilk) initialised on the vat",
        validator=lambda x: 0 < len(x.encode("ascii")) <= 32,
    ))
    debt_ceiling: ConfigValue[Decimal] = field(default_factory=lambda: ConfigValue(
        default=Decimal("10000"),
        env_var="DSSDEPLOY_DEBT_CEILING",
        description="Per-ilk and global debt ceiling (encoded as RAD)",
        validator=lambda x: x >= 0,
    ))
    spot: ConfigValue[Decimal] = field(default_factory=lambda: ConfigValue(
        default=Decimal("150"),
        env_var="DSSDEPLOY_SPOT",
        description="Collateral price ratio (encoded as RAY)",
        validator=lambda x: x >= 0,
    ))
    rate: ConfigValue[Decimal] = field(default_factory=lambda: ConfigValue(
        default=Decimal("1.25"),
        env_var="DSSDEPLOY_RATE",
        description="Target stability-fee accumulator after the seeding fold",
        validator=lambda x: x >= 1,
    ))
    unity_rate: ConfigValue[Decimal] = field(default_factory=lambda: ConfigValue(
        default=Decimal("1"),
        env_var="DSSDEPLOY_UNITY_RATE",
        description="Accumulator value of a freshly initialised ilk",
        validator=lambda x: x >= 0,
    ))
    chi: ConfigValue[Decimal] = field(default_factory=lambda: ConfigValue(
        default=Decimal("1.2"),
        env_var="DSSDEPLOY_CHI",
        description="Savings rate accumulator set on the pot",
        validator=lambda x: x >= 0,
    ))


@dataclass
class WrapperConfig:
    """Derived wrapper (Chai) deployment."""
    guard_networks: ConfigValue[list] = field(default_factory=lambda: ConfigValue(
        default=["mainnet", "kovan", "kovan-fork"],
        env_var="DSSDEPLOY_WRAPPER_NETWORKS",
        description="Networks named by the wrapper reuse guard",
        validator=lambda x: all(isinstance(n, str) and n for n in x),
    ))
    reuse_fixed_address: ConfigValue[bool] = field(default_factory=lambda: ConfigValue(
        default=False,
        env_var="DSSDEPLOY_WRAPPER_REUSE",
        description=(
            "Reuse the table's chaiAddress on guard networks instead of "
            "evaluating the guard as a conjunction (which never holds)"
        ),
    ))


@dataclass
class ObservabilityConfig:
    """Configuration for Observability."""
    log_level: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="info",
        env_var="DSSDEPLOY_LOG_LEVEL",
        description="Log level (debug, info, warning, error)",
        validator=lambda x: x in {level.value for level in LogLevel},
    ))
    log_format: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="json",
        env_var="DSSDEPLOY_LOG_FORMAT",
        description="Log format (json, text)",
        validator=lambda x: x in ("json", "text"),
    ))
    enable_tracing: ConfigValue[bool] = field(default_factory=lambda: ConfigValue(
        default=True,
        env_var="DSSDEPLOY_TRACING_ENABLED",
        description="Record a span per deployment stage",
    ))


@dataclass
class DeployConfig:
    """
    Root configuration for dssdeploy.

    Aggregates all section configurations.
    """
    network: NetworkConfig = field(default_factory=NetworkConfig)
    bootstrap: BootstrapConfig = field(default_factory=BootstrapConfig)
    wrapper: WrapperConfig = field(default_factory=WrapperConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        def extract_values(obj: Any) -> Any:
            if isinstance(obj, ConfigValue):
                value = obj.get()
                return str(value) if isinstance(value, Decimal) else value
            elif hasattr(obj, "__dataclass_fields__"):
                return {k: extract_values(getattr(obj, k)) for k in obj.__dataclass_fields__}
            return obj

        return extract_values(self)


class ConfigManager:
    """
    Configuration manager with file loading and environment binding.

    Each manager owns its own DeployConfig so a deployment context can carry
    an isolated configuration; get_config_manager() returns a shared default.
    """

    def __init__(self, config: Optional[DeployConfig] = None):
        self._config = config or DeployConfig()

    @property
    def config(self) -> DeployConfig:
        """Get the current configuration."""
        return self._config

    def load_from_file(self, path: Union[str, Path]) -> None:
        """Load configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        with open(path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

        if data:
            if not isinstance(data, dict):
                raise ConfigError(f"Configuration root must be a mapping: {path}")
            self._apply_dict(data)
        logger.debug("Configuration loaded", path=str(path))

    def load_defaults(self) -> None:
        """Load default configuration files if they exist."""
        default_paths = [
            Path("dssdeploy.yaml"),
            Path("config/dssdeploy.yaml"),
            Path.home() / ".dssdeploy" / "config.yaml",
        ]

        for path in default_paths:
            if path.exists():
                try:
                    self.load_from_file(path)
                except ConfigError as exc:
                    logger.warning(
                        "Skipping unreadable default config",
                        path=str(path),
                        error=str(exc),
                    )

    def _apply_dict(self, data: Dict[str, Any]) -> None:
        """Apply dictionary values to configuration."""
        def apply_to_config(config_obj: Any, values: Dict[str, Any], prefix: str) -> None:
            for key, value in values.items():
                path = f"{prefix}{key}"
                if not hasattr(config_obj, key):
                    raise ConfigError(f"Unknown config key: {path}")
                attr = getattr(config_obj, key)
                if isinstance(attr, ConfigValue):
                    attr.set(value)
                elif hasattr(attr, "__dataclass_fields__") and isinstance(value, dict):
                    apply_to_config(attr, value, f"{path}.")
                else:
                    raise ConfigError(f"Invalid value for section {path}")

        apply_to_config(self._config, data, "")

    def get(self, path: str) -> Any:
        """
        Get a configuration value by path.

        Example: manager.get("network.bootstrap_network")
        """
        obj: Any = self._config

        for part in path.split("."):
            if not hasattr(obj, part):
                raise ConfigError(f"Invalid config path: {path}")
            obj = getattr(obj, part)

        if isinstance(obj, ConfigValue):
            return obj.get()
        return obj

    def validate(self) -> List[str]:
        """
        Validate all configuration values, environment overrides included.

        Returns list of validation errors.
        """
        errors: List[str] = []

        def validate_config(obj: Any, path: str = "") -> None:
            if isinstance(obj, ConfigValue):
                try:
                    value = obj.get()
                    if obj.validator and not obj.validator(value):
                        errors.append(f"{path}: validation failed for value {value}")
                except ConfigError as e:
                    errors.append(f"{path}: {e}")
            elif hasattr(obj, "__dataclass_fields__"):
                for field_name in obj.__dataclass_fields__:
                    field_path = f"{path}.{field_name}" if path else field_name
                    validate_config(getattr(obj, field_name), field_path)

        validate_config(self._config)
        return errors


_default_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get the shared configuration manager instance."""
    global _default_manager
    if _default_manager is None:
        _default_manager = ConfigManager()
    return _default_manager

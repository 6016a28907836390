"""Configuration management for WebStack projects"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import yaml
from dotenv import dotenv_values

from webstack.constants import (
    DEFAULT_INVENTORY_FILE,
    DEFAULT_LOG_DIR,
    DEFAULT_PLAYBOOK_FILE,
    DEFAULT_SERVICE_NAME,
    DEFAULT_SETTINGS_FILE,
    DEFAULT_STACK_DIR,
    DEFAULT_TARGET_GROUP,
    DEFAULT_TIMEOUT,
    DEFAULT_VAULT_FILE,
    HEADER_OVERRIDE_KEYS,
    VAULT_PASSWORD_FILE_ENV,
)
from webstack.exceptions import UsageError
from webstack.models.headers import HeaderMode


@dataclass
class WebStackSettings:
    """Project settings from webstack.yml and .env"""

    project_dir: Path
    inventory: str = DEFAULT_INVENTORY_FILE
    playbook: str = DEFAULT_PLAYBOOK_FILE
    vault_file: str = DEFAULT_VAULT_FILE
    vault_password_file: Optional[str] = None
    target_group: str = DEFAULT_TARGET_GROUP
    stack_dir: str = DEFAULT_STACK_DIR
    service_name: str = DEFAULT_SERVICE_NAME
    concurrency: Optional[int] = None
    timeout: int = DEFAULT_TIMEOUT
    log_dir: str = DEFAULT_LOG_DIR

    @property
    def inventory_path(self) -> Path:
        return self._resolve(self.inventory)

    @property
    def playbook_path(self) -> Path:
        return self._resolve(self.playbook)

    @property
    def vault_path(self) -> Path:
        return self._resolve(self.vault_file)

    @property
    def vault_password_path(self) -> Optional[Path]:
        if self.vault_password_file:
            return self._resolve(self.vault_password_file)
        return None

    @property
    def log_path(self) -> Path:
        return self._resolve(self.log_dir)

    def _resolve(self, value: str) -> Path:
        path = Path(value).expanduser()
        if path.is_absolute():
            return path
        return self.project_dir / path

    @classmethod
    def load(cls, project_dir: Path, settings_file: Optional[Path] = None) -> "WebStackSettings":
        """
        Load settings for a project directory.

        Args:
            project_dir: Directory holding the inventory, playbook and vault
            settings_file: Explicit settings file (defaults to webstack.yml)

        Returns:
            WebStackSettings

        Raises:
            UsageError: If the settings file is malformed or has unknown keys
        """
        project_dir = Path(project_dir).resolve()
        settings_file = settings_file or project_dir / DEFAULT_SETTINGS_FILE

        data: Dict[str, Any] = {}
        if settings_file.exists():
            try:
                data = yaml.safe_load(settings_file.read_text()) or {}
            except yaml.YAMLError as e:
                raise UsageError(f"Invalid settings file: {settings_file}", context=str(e))
            if not isinstance(data, dict):
                raise UsageError(f"Settings file must be a mapping: {settings_file}")

        known = {f.name for f in fields(cls)} - {"project_dir"}
        unknown = sorted(set(data) - known)
        if unknown:
            raise UsageError(
                f"Unknown settings in {settings_file.name}: {', '.join(unknown)}",
                context=f"Known settings: {', '.join(sorted(known))}",
            )

        settings = cls(project_dir=project_dir, **data)

        if not settings.vault_password_file:
            env_file = project_dir / ".env"
            env_values = dotenv_values(env_file) if env_file.exists() else {}
            settings.vault_password_file = os.environ.get(
                VAULT_PASSWORD_FILE_ENV, env_values.get(VAULT_PASSWORD_FILE_ENV)
            )

        settings.concurrency = _positive_int("concurrency", settings.concurrency, allow_none=True)
        settings.timeout = _positive_int("timeout", settings.timeout)
        return settings


@dataclass
class StackOverrides:
    """Typed invocation-time overrides (-e key=value)."""

    header_mode: Optional[HeaderMode] = None
    custom_server_header: Optional[str] = None
    custom_powered_by: Optional[str] = None
    custom_framework: Optional[str] = None
    custom_served_by: Optional[str] = None
    concurrency: Optional[int] = None
    timeout: Optional[int] = None
    stack_dir: Optional[str] = None
    raw: Dict[str, str] = field(default_factory=dict, repr=False)

    @classmethod
    def parse(cls, pairs: Iterable[str]) -> "StackOverrides":
        """
        Parse key=value pairs.

        Raises:
            UsageError: On malformed pairs, unknown keys or bad values
        """
        values: Dict[str, str] = {}
        for pair in pairs:
            if "=" not in pair:
                raise UsageError(f"Invalid override '{pair}'", context="Expected key=value")
            key, value = pair.split("=", 1)
            key = key.strip()
            if key not in OVERRIDE_OPTIONS:
                raise UsageError(
                    f"Unknown override '{key}'",
                    context=f"Recognized: {', '.join(sorted(OVERRIDE_OPTIONS))}",
                )
            values[key] = value
        return cls.from_mapping(values)

    @classmethod
    def from_mapping(cls, values: Dict[str, str]) -> "StackOverrides":
        overrides = cls(raw=dict(values))
        for key, value in values.items():
            if key == "header_mode":
                try:
                    overrides.header_mode = HeaderMode.parse(value)
                except ValueError as e:
                    raise UsageError(str(e))
            elif key in ("concurrency", "timeout"):
                setattr(overrides, key, _positive_int(key, value))
            else:
                setattr(overrides, key, value)
        return overrides

    def header_values(self) -> Dict[str, str]:
        """Header name -> value for every header override given."""
        return {
            header: getattr(self, key)
            for key, header in HEADER_OVERRIDE_KEYS.items()
            if getattr(self, key) is not None
        }

    def to_extra_vars(self) -> Dict[str, Any]:
        """Variables forwarded to the playbook."""
        extra: Dict[str, Any] = {}
        if self.stack_dir:
            extra["stack_dir"] = self.stack_dir
        return extra


OVERRIDE_OPTIONS = {
    f.name for f in fields(StackOverrides) if f.name != "raw"
}


def host_header_values(variables: Dict[str, Any]) -> Dict[str, str]:
    """Header name -> value from a host's inventory variables."""
    return {
        header: str(variables[key])
        for key, header in HEADER_OVERRIDE_KEYS.items()
        if variables.get(key) is not None
    }


def _positive_int(name: str, value: Any, allow_none: bool = False) -> Optional[int]:
    if value is None and allow_none:
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise UsageError(f"'{name}' must be an integer, got '{value}'")
    if number <= 0:
        raise UsageError(f"'{name}' must be greater than zero, got {number}")
    return number

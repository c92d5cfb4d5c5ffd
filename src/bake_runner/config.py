"""Configuration utilities for the bake task runner."""

from __future__ import annotations

import dataclasses
import logging
import pathlib
from typing import Dict, Mapping, Optional

import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "Bakefile.yaml"

_OPTION_FIELDS = {
    "stacktrace": "stacktrace",
    "big-print": "big_print",
    "pedantic-task-cd": "pedantic_cd",
}


def parse_switch(option: str, value: object) -> bool:
    """Interpret a ``yes``/``no`` configuration value."""

    # YAML 1.1 already turns bare yes/no into booleans.
    if isinstance(value, bool):
        return value
    if value == "yes":
        return True
    if value == "no":
        return False
    raise ConfigurationError(
        f"Config property '{option}' accepts only either 'yes' or 'no' (got '{value}')"
    )


@dataclasses.dataclass(slots=True)
class RunConfig:
    """Switches that change how a single run behaves."""

    stacktrace: bool = False
    big_print: bool = True
    pedantic_cd: bool = False

    def update(self, option: str, value: object) -> None:
        try:
            field = _OPTION_FIELDS[option]
        except KeyError as exc:
            raise ConfigurationError(f"Config property '{option}' is not valid") from exc
        enabled = parse_switch(option, value)
        logger.debug("Setting config %s=%s", option, enabled)
        setattr(self, field, enabled)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "RunConfig":
        config = cls()
        for option, value in data.items():
            config.update(str(option), value)
        return config


@dataclasses.dataclass(slots=True)
class ProjectSettings:
    """Optional per-project defaults read from ``Bakefile.yaml``."""

    config: RunConfig = dataclasses.field(default_factory=RunConfig)
    variables: Dict[str, str] = dataclasses.field(default_factory=dict)

    @classmethod
    def load(cls, root: pathlib.Path) -> "ProjectSettings":
        path = root / SETTINGS_FILENAME
        if not path.exists():
            return cls()
        if not path.is_file():
            raise ConfigurationError(f"Settings path '{path}' is not actually a file")

        logger.debug("Loading project settings from %s", path)
        with path.open("r", encoding="utf-8") as handle:
            try:
                payload = yaml.safe_load(handle)
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Settings file '{path}' is not valid YAML: {exc}") from exc

        if payload is None:
            return cls()
        if not isinstance(payload, Mapping):
            raise ConfigurationError("Settings file must define a mapping at the top level")

        unknown = sorted(set(payload) - {"cfg", "variables"})
        if unknown:
            raise ConfigurationError(f"Settings file has unknown keys: {', '.join(map(str, unknown))}")

        config = RunConfig.from_mapping(_ensure_mapping(payload.get("cfg"), field="cfg"))
        variables = {
            str(name): _stringify(value)
            for name, value in _ensure_mapping(payload.get("variables"), field="variables").items()
        }
        return cls(config=config, variables=variables)


def _ensure_mapping(value: Optional[object], *, field: str) -> Mapping[str, object]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Settings field '{field}' must be a mapping")
    return value


def _stringify(value: object) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    if value is None:
        return ""
    return str(value)

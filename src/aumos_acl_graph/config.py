"""Engine settings with Pydantic v2 validation.

Settings live either in a standalone YAML file or in the ``acl:`` section of
a graph file.  Unknown keys are allowed so that applications can keep their
own options next to the engine's.

Example
-------
>>> settings = settings_from_string("default_node: anonymous")
>>> settings.default_node
'anonymous'
>>> settings.fault_level
30
"""
from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

_LEVEL_NAMES: frozenset[str] = frozenset(
    ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]
)


class AclSettings(BaseModel):
    """Runtime options of an :class:`~aumos_acl_graph.engine.acl.Acl`."""

    model_config = {"extra": "allow"}

    default_node: str = Field(default="public", min_length=1)
    fault_log_level: str = Field(default="WARNING")
    explain_include_context: bool = Field(default=True)

    @field_validator("fault_log_level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LEVEL_NAMES:
            raise ValueError(
                f"Unknown log level '{value}'. Valid: {sorted(_LEVEL_NAMES)}"
            )
        return level

    @property
    def fault_level(self) -> int:
        """Numeric logging level used for predicate faults."""
        return logging.getLevelName(self.fault_log_level)


def load_settings(config_path: Path) -> AclSettings:
    """Load and validate settings from a YAML file.

    A file holding a graph definition is accepted too: its ``acl:`` section
    is used.

    Raises
    ------
    FileNotFoundError:
        When the file does not exist.
    pydantic.ValidationError:
        When the values fail validation.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"ACL settings not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as fh:
        raw: dict[str, object] = yaml.safe_load(fh) or {}

    return settings_from_dict(raw)


def settings_from_string(yaml_content: str) -> AclSettings:
    """Load and validate settings from a YAML string."""
    raw: dict[str, object] = yaml.safe_load(yaml_content) or {}
    return settings_from_dict(raw)


def settings_from_dict(raw: dict[str, object]) -> AclSettings:
    section = raw.get("acl", raw) if isinstance(raw, dict) else raw
    return AclSettings.model_validate(section or {})

"""YAML-based permission graph loader.

GraphLoader reads YAML graph definitions and builds :class:`Acl` instances.
Predicates and restriction fills are referenced by import path, either
``"package.module:attribute"`` or ``"package.module.attribute"``.

Schema
------
::

    version: "1"
    acl:
      default_node: public
      fault_log_level: WARNING
    edges:
      - from: public
        to: authenticated
        explain: "User carries a basic authentication token"
        check: "myapp.acl:basic_auth"
      - from: authenticated
        to: [can_post_comment]
        explain: "Authenticated users can post new comments"
      - from: moderator
        to: [can_edit_article, can_edit_comment]
        explain: "Moderators can edit all articles and comments"
        restrict:
          fields: "myapp.acl:all_fields"

Example
-------
::

    loader = GraphLoader()
    acl = loader.load("/path/to/acl.yaml")
    result = await acl.check("can_post_comment", {"token": "Basic ..."})
"""
from __future__ import annotations

import importlib
import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from aumos_acl_graph.config import AclSettings
from aumos_acl_graph.engine.acl import Acl
from aumos_acl_graph.graph.edge import EdgeConfigError, EdgeDefinition

logger = logging.getLogger(__name__)

_SUPPORTED_VERSIONS: frozenset[str] = frozenset(["1.0", "1"])


class GraphConfigError(ValueError):
    """Raised when a graph YAML config is malformed or invalid.

    Attributes
    ----------
    config_path:
        The path to the config file that caused the error, if known.
    """

    def __init__(self, message: str, config_path: str | None = None) -> None:
        self.config_path = config_path
        prefix = f"[{config_path}] " if config_path else ""
        super().__init__(f"{prefix}{message}")


def resolve_reference(reference: str) -> Callable[..., Any]:
    """Import and return the callable named by ``reference``.

    Raises
    ------
    ImportError
        If the module cannot be imported.
    AttributeError
        If the attribute does not exist.
    TypeError
        If the attribute is not callable.
    """
    if ":" in reference:
        module_name, _, attr_path = reference.partition(":")
    else:
        module_name, _, attr_path = reference.rpartition(".")
    if not module_name or not attr_path:
        raise ImportError(f"Invalid reference {reference!r}; expected 'module:attribute'.")

    target: Any = importlib.import_module(module_name)
    for part in attr_path.split("."):
        target = getattr(target, part)

    if not callable(target):
        raise TypeError(f"{reference!r} does not name a callable.")
    return target


class GraphLoader:
    """Loads :class:`Acl` configurations from YAML files or dicts.

    Parameters
    ----------
    strict:
        When ``True``, unknown top-level keys in the YAML file are treated
        as an error.  Default ``False`` (unknown keys are ignored).
    resolver:
        Function turning a string reference into a callable.  Defaults to
        :func:`resolve_reference`; tests and applications with their own
        registries can supply a dict lookup instead.

    Examples
    --------
    ::

        loader = GraphLoader(resolver={"is_admin": is_admin}.__getitem__)
        acl = loader.load_from_dict({
            "edges": [
                {"from": "public", "to": "admin", "explain": "Admin", "check": "is_admin"},
            ],
        })
    """

    _KNOWN_TOP_KEYS: frozenset[str] = frozenset(
        ["version", "acl", "edges", "metadata", "description"]
    )

    def __init__(
        self,
        strict: bool = False,
        resolver: Callable[[str], Callable[..., Any]] | None = None,
    ) -> None:
        self._strict = strict
        self._resolver = resolver or resolve_reference

    def load(self, config_path: str | Path) -> Acl:
        """Load an Acl from a YAML file on disk.

        Raises
        ------
        GraphConfigError
            If the file cannot be parsed or is structurally invalid.
        FileNotFoundError
            If the config file does not exist.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Graph config not found: {config_path}")

        try:
            with config_path.open("r", encoding="utf-8") as fh:
                raw: dict[str, object] = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise GraphConfigError(
                f"Failed to parse YAML: {exc}", str(config_path)
            ) from exc

        return self._build_acl(raw, config_path=str(config_path))

    def load_from_dict(
        self,
        config: dict[str, object],
        config_path: str | None = None,
    ) -> Acl:
        """Load an Acl from an already-parsed config dictionary."""
        return self._build_acl(config, config_path=config_path)

    def load_from_yaml_string(
        self,
        yaml_string: str,
        config_path: str | None = None,
    ) -> Acl:
        """Load an Acl from a YAML string."""
        try:
            raw: dict[str, object] = yaml.safe_load(yaml_string) or {}
        except yaml.YAMLError as exc:
            raise GraphConfigError(
                f"Failed to parse YAML string: {exc}", config_path
            ) from exc
        return self._build_acl(raw, config_path=config_path)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_acl(
        self,
        raw: dict[str, object],
        config_path: str | None = None,
    ) -> Acl:
        """Validate and build an Acl from a raw config dict."""
        self._validate_structure(raw, config_path)

        version = str(raw.get("version", "1"))
        if version not in _SUPPORTED_VERSIONS:
            raise GraphConfigError(
                f"Unsupported config version {version!r}. "
                f"Supported: {sorted(_SUPPORTED_VERSIONS)}.",
                config_path,
            )

        try:
            settings = AclSettings.model_validate(raw.get("acl") or {})
        except ValidationError as exc:
            raise GraphConfigError(f"Invalid 'acl' section: {exc}", config_path) from exc

        raw_edges: list[object] = list(raw["edges"])  # type: ignore[arg-type]
        definitions = [
            self._build_definition(raw_edge, index, config_path)
            for index, raw_edge in enumerate(raw_edges)
        ]

        try:
            acl = Acl(None, definitions, settings=settings)
        except EdgeConfigError as exc:
            raise GraphConfigError(str(exc), config_path) from exc

        logger.info(
            "Loaded %d edge declarations (%d edges) from %s (default_node=%s)",
            len(definitions),
            acl.graph.edge_count,
            config_path or "<dict>",
            settings.default_node,
        )
        return acl

    def _build_definition(
        self,
        raw_edge: object,
        index: int,
        config_path: str | None,
    ) -> EdgeDefinition:
        if not isinstance(raw_edge, Mapping):
            raise GraphConfigError(
                f"Edge at index {index} must be a mapping.", config_path
            )

        data: dict[str, object] = dict(raw_edge)
        try:
            if data.get("check") is not None:
                data["check"] = self._resolve(data["check"])
            raw_restrict = data.get("restrict")
            if raw_restrict is not None:
                if not isinstance(raw_restrict, Mapping):
                    raise EdgeConfigError("'restrict' must be a mapping.", index)
                data["restrict"] = {
                    str(key): self._resolve(ref) for key, ref in raw_restrict.items()
                }
            return EdgeDefinition.from_dict(data, index=index)
        except (EdgeConfigError, ImportError, AttributeError, TypeError, KeyError) as exc:
            raise GraphConfigError(
                f"Error in edge at index {index}: {exc}", config_path
            ) from exc

    def _resolve(self, reference: object) -> Callable[..., Any]:
        if callable(reference):
            return reference  # type: ignore[return-value]
        if not isinstance(reference, str):
            raise TypeError(f"Expected an import reference string; got {reference!r}.")
        return self._resolver(reference)

    def _validate_structure(
        self,
        raw: dict[str, object],
        config_path: str | None,
    ) -> None:
        """Validate top-level structure of the config dict."""
        if not isinstance(raw, dict):
            raise GraphConfigError(
                "Graph config must be a YAML mapping (dict).", config_path
            )

        if "edges" not in raw:
            raise GraphConfigError(
                "Graph config must contain an 'edges' list.", config_path
            )

        if not isinstance(raw["edges"], list):
            raise GraphConfigError(
                "Graph config 'edges' must be a list.", config_path
            )

        if raw.get("acl") is not None and not isinstance(raw["acl"], dict):
            raise GraphConfigError("Graph config 'acl' must be a mapping.", config_path)

        if self._strict:
            unknown_keys = set(raw.keys()) - self._KNOWN_TOP_KEYS
            if unknown_keys:
                raise GraphConfigError(
                    f"Unknown top-level keys: {sorted(unknown_keys)}. "
                    f"Known keys: {sorted(self._KNOWN_TOP_KEYS)}.",
                    config_path,
                )

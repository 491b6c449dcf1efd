"""Configuration and graph-document loading with JSON and YAML support."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
import yaml

from flowscene.core.config.models import AppConfig
from flowscene.core.graph.models import FlowGraph
from flowscene.core.properties.overrides import BatchOverrideTable
from flowscene.core.utils.json import read_json

logger = logging.getLogger(__name__)

_DEFAULT_APP_CONFIG_PATH = AppConfig.default_path()
_app_config_cache: AppConfig | None = None

ENV_LOG_LEVEL = "FLOWSCENE_LOG_LEVEL"
ENV_MAX_NODES = "FLOWSCENE_MAX_NODES"


class GraphDocument(FlowGraph):
    """Graph file as saved by the editor: nodes, edges and batch overrides."""

    batch_overrides: BatchOverrideTable = Field(default_factory=BatchOverrideTable)

    @field_validator("batch_overrides", mode="before")
    @classmethod
    def _accept_bare_table(cls, value: Any) -> Any:
        return BatchOverrideTable.from_mapping(value)

    @property
    def graph(self) -> FlowGraph:
        return FlowGraph(nodes=self.nodes, edges=self.edges)


def detect_format(file_path: Path | str) -> str:
    """Detect config file format from extension.

    Args:
        file_path: Path to config file

    Returns:
        Format string: "json" or "yaml"

    Raises:
        ValueError: If format cannot be determined

    Example:
        >>> detect_format("graph.json")
        'json'
        >>> detect_format("flowscene.yml")
        'yaml'
    """
    suffix = Path(file_path).suffix.lower()
    if suffix == ".json":
        return "json"
    if suffix in (".yaml", ".yml"):
        return "yaml"
    raise ValueError(f"Unsupported config format: {suffix}")


def load_config(path: str | Path) -> dict[str, Any]:
    """Load a raw JSON or YAML mapping, format detected from the extension.

    Args:
        path: Path to a .json, .yaml or .yml file

    Returns:
        Raw mapping (empty for an empty YAML file)

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the format is unsupported or the content is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    fmt = detect_format(path)
    if fmt == "json":
        try:
            content = read_json(path)
        except ValueError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
    else:
        try:
            with path.open("r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e
        if content is None:
            return {}

    if not isinstance(content, dict):
        raise ValueError(f"Expected a mapping at the top level of {path}")
    return content


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    """Return ``config`` with environment overrides applied."""
    level = os.getenv(ENV_LOG_LEVEL)
    if level:
        logger.debug("Loaded %s from environment", ENV_LOG_LEVEL)
        config = config.model_copy(
            update={"logging": config.logging.model_copy(update={"level": level.upper()})}
        )

    max_nodes = os.getenv(ENV_MAX_NODES)
    if max_nodes:
        try:
            value = int(max_nodes)
        except ValueError:
            logger.warning("Ignoring non-integer %s=%r", ENV_MAX_NODES, max_nodes)
        else:
            logger.debug("Loaded %s from environment", ENV_MAX_NODES)
            config = config.model_copy(
                update={"compiler": config.compiler.model_copy(update={"max_nodes": value})}
            )
    return config


def load_app_config(path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration.

    Missing files fall back to defaults. Environment variables
    (``FLOWSCENE_LOG_LEVEL``, ``FLOWSCENE_MAX_NODES``) override file values.

    Args:
        path: Path to the app config file; defaults to ``flowscene.yaml``

    Returns:
        Validated AppConfig

    Raises:
        ValidationError: If the config is invalid
    """
    global _app_config_cache

    if path is None:
        path = _DEFAULT_APP_CONFIG_PATH

    if _app_config_cache is not None and Path(path) == _DEFAULT_APP_CONFIG_PATH:
        return _app_config_cache

    if Path(path).exists():
        config = AppConfig.model_validate(load_config(path))
    else:
        config = AppConfig()

    config = _apply_env_overrides(config)

    if Path(path) == _DEFAULT_APP_CONFIG_PATH:
        _app_config_cache = config

    return config


def reset_app_config_cache() -> None:
    """Forget the cached default-path config."""
    global _app_config_cache
    _app_config_cache = None


def load_graph_document(path: str | Path) -> GraphDocument:
    """Load a graph document saved by the editor.

    Args:
        path: Path to a .json, .yaml or .yml graph file

    Returns:
        Validated GraphDocument

    Raises:
        FileNotFoundError: If the file does not exist
        ValidationError: If the document shape is invalid
    """
    return GraphDocument.model_validate(load_config(path))


__all__ = [
    "ENV_LOG_LEVEL",
    "ENV_MAX_NODES",
    "GraphDocument",
    "detect_format",
    "load_app_config",
    "load_config",
    "load_graph_document",
    "reset_app_config_cache",
]

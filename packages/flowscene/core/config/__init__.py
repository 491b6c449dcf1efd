"""Configuration models and loaders."""

from flowscene.core.config.loader import (
    GraphDocument,
    load_app_config,
    load_config,
    load_graph_document,
)
from flowscene.core.config.models import AppConfig, CompilerConfig, LoggingConfig

__all__ = [
    "AppConfig",
    "CompilerConfig",
    "GraphDocument",
    "LoggingConfig",
    "load_app_config",
    "load_config",
    "load_graph_document",
]

"""
Load the optional YAML sources file with ``${ENV}`` placeholder expansion.

Example::

    generic_feeds:
      blogroll:
        feeds:
          - https://example.com/feed.xml
          - ${EXTRA_FEED_URL}
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


def load_sources_config(config_path: Path, resolve: Callable[[str], Optional[str]]) -> Dict[str, Any]:
    if not config_path.exists():
        logger.warning("Sources file not found at %s", config_path)
        return {}
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        logger.error("Sources file %s is not valid YAML: %s", config_path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Sources file %s must contain a mapping at the top level", config_path)
        return {}
    return _expand_env(data, resolve)


def _expand_env(data: Dict[str, Any], resolve: Callable[[str], Optional[str]]) -> Dict[str, Any]:
    def replace(value: Any) -> Any:
        if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            return resolve(value[2:-1]) or ""
        if isinstance(value, dict):
            return {k: replace(v) for k, v in value.items()}
        if isinstance(value, list):
            return [replace(item) for item in value]
        return value

    return replace(data)  # type: ignore[return-value]

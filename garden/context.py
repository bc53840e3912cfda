"""
Per-request configuration passed explicitly to the aggregator and adapters.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from garden.kv_cache import DurableCache, FileKeyValueStore, KeyValueStore
from garden.settings import DEFAULT_KV_BINDING, EnvResolver, GardenSettings

logger = logging.getLogger(__name__)


def file_bindings(env: EnvResolver) -> Dict[str, KeyValueStore]:
    """Register a file-backed store under the configured binding name when KV_STORE_PATH is set."""
    path = env.resolve("KV_STORE_PATH")
    if not path:
        return {}
    name = env.resolve("KV_BINDING_NAME") or DEFAULT_KV_BINDING
    logger.info("KV binding %s backed by %s", name, path)
    return {name: FileKeyValueStore(Path(path))}


@dataclass
class RequestContext:
    env: EnvResolver
    settings: GardenSettings
    kv: DurableCache


def build_context(
    runtime_env: Optional[Mapping[str, Any]] = None,
    bindings: Optional[Mapping[str, KeyValueStore]] = None,
    embedded: Optional[Mapping[str, Optional[str]]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> RequestContext:
    """
    Build the context for one request or CLI invocation.

    ``bindings`` maps binding names to key-value stores; the durable cache
    uses the one named by ``KV_BINDING_NAME``. A missing binding simply
    leaves the durable tier unavailable.
    """
    env = EnvResolver(runtime=runtime_env, embedded=embedded, environ=environ)
    settings = GardenSettings.from_env(env)
    store = (bindings or {}).get(settings.kv_binding_name)
    if store is None:
        logger.debug("KV binding %s not present; durable cache disabled", settings.kv_binding_name)
    return RequestContext(env=env, settings=settings, kv=DurableCache(store))

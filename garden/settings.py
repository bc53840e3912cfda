"""
Configuration resolution for the aggregator (env-first, code-light).

Values are looked up per request through an ``EnvResolver`` with a fixed
priority: the runtime mapping injected by the hosting platform, then the
build-time env file, then the process environment.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from dotenv import dotenv_values

from garden.config_loader import load_sources_config
from garden.security import is_configured_key

logger = logging.getLogger(__name__)

DEFAULT_BUILD_ENV_FILE = ".env"
DEFAULT_RSSHUB_INSTANCE = "https://rsshub.app"
DEFAULT_KV_BINDING = "GARDEN_CACHE"
DEFAULT_PUBLISHED_PROPERTY = "发布"
DEFAULT_NOTION_VERSION = "2022-06-28"
DEFAULT_PROXY_PATH = "/api/proxy-image"
DEFAULT_PROXY_HOSTS = ["doubanio.com"]
DEFAULT_PROXY_REFERER = "https://www.douban.com/"


class EnvResolver:
    """Resolve configuration keys across runtime, build-time and process tiers."""

    def __init__(
        self,
        runtime: Optional[Mapping[str, Any]] = None,
        embedded: Optional[Mapping[str, Optional[str]]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        # Non-string runtime values (platform bindings, counters) are not configuration
        self._runtime = {k: v for k, v in (runtime or {}).items() if isinstance(v, str)}
        self._embedded = dict(embedded or {})
        self._environ = os.environ if environ is None else environ

    def resolve(self, name: str) -> Optional[str]:
        for tier in (self._runtime, self._embedded, self._environ):
            value = tier.get(name)
            if value:
                return value
        return None

    def __call__(self, name: str) -> Optional[str]:
        return self.resolve(name)


def load_build_env(path: Optional[str] = None) -> Dict[str, Optional[str]]:
    """Read the build-time env file without exporting it into os.environ."""
    env_path = Path(path or os.getenv("GARDEN_BUILD_ENV", DEFAULT_BUILD_ENV_FILE))
    if not env_path.exists():
        return {}
    return dict(dotenv_values(env_path))


def _int_from_env(resolver: EnvResolver, key: str, default: int) -> int:
    raw = resolver.resolve(key)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        value = int(raw)
        return value if value > 0 else default
    except ValueError:
        logger.warning("Invalid int value for %s=%s; using default %s", key, raw, default)
        return default


def _bool_from_env(resolver: EnvResolver, key: str, default: bool = False) -> bool:
    raw = resolver.resolve(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _list_from_env(resolver: EnvResolver, key: str) -> List[str]:
    raw = resolver.resolve(key) or ""
    return [token.strip() for token in raw.split(",") if token.strip()]


def _configured(resolver: EnvResolver, key: str) -> Optional[str]:
    value = resolver.resolve(key)
    return value.strip() if is_configured_key(value) else None


@dataclass
class GardenSettings:
    notion_api_key: Optional[str] = None
    notion_articles_database_id: Optional[str] = None
    notion_photos_database_id: Optional[str] = None
    notion_published_property: str = DEFAULT_PUBLISHED_PROPERTY
    notion_version: str = DEFAULT_NOTION_VERSION
    telegram_channel_username: Optional[str] = None
    rsshub_instance: str = DEFAULT_RSSHUB_INSTANCE
    telegram_feed_limit: int = 30
    douban_user_rss: Optional[str] = None
    generic_feeds: List[str] = field(default_factory=list)
    kv_binding_name: str = DEFAULT_KV_BINDING
    kv_cache_ttl: int = 3600
    memory_cache_ttl: int = 300
    use_fallback: bool = False
    image_proxy_path: str = DEFAULT_PROXY_PATH
    image_proxy_allowed_hosts: List[str] = field(default_factory=lambda: list(DEFAULT_PROXY_HOSTS))
    image_proxy_referer: str = DEFAULT_PROXY_REFERER
    http_timeout: int = 15

    @property
    def document_store_configured(self) -> bool:
        return bool(self.notion_api_key and self.notion_articles_database_id)

    @property
    def photos_configured(self) -> bool:
        return bool(self.notion_api_key and self.notion_photos_database_id)

    @property
    def channel_configured(self) -> bool:
        return bool(self.telegram_channel_username)

    @property
    def media_log_configured(self) -> bool:
        return bool(self.douban_user_rss)

    @property
    def generic_feeds_configured(self) -> bool:
        return bool(self.generic_feeds)

    @property
    def any_source_configured(self) -> bool:
        return (
            self.document_store_configured
            or self.channel_configured
            or self.media_log_configured
            or self.generic_feeds_configured
        )

    @classmethod
    def from_env(cls, resolver: EnvResolver) -> "GardenSettings":
        generic_feeds = _list_from_env(resolver, "GENERIC_RSS_FEEDS")
        sources_file = resolver.resolve("GARDEN_SOURCES_FILE")
        if sources_file:
            generic_feeds.extend(_feeds_from_sources_file(sources_file, resolver))

        return cls(
            notion_api_key=_configured(resolver, "NOTION_API_KEY"),
            notion_articles_database_id=_configured(resolver, "NOTION_ARTICLES_DATABASE_ID"),
            notion_photos_database_id=_configured(resolver, "NOTION_PHOTOS_DATABASE_ID"),
            notion_published_property=resolver.resolve("NOTION_PUBLISHED_PROPERTY") or DEFAULT_PUBLISHED_PROPERTY,
            notion_version=resolver.resolve("NOTION_VERSION") or DEFAULT_NOTION_VERSION,
            telegram_channel_username=_configured(resolver, "TELEGRAM_CHANNEL_USERNAME"),
            rsshub_instance=(resolver.resolve("RSSHUB_INSTANCE") or DEFAULT_RSSHUB_INSTANCE).rstrip("/"),
            telegram_feed_limit=_int_from_env(resolver, "TELEGRAM_FEED_LIMIT", 30),
            douban_user_rss=_configured(resolver, "DOUBAN_USER_RSS"),
            generic_feeds=list(dict.fromkeys(generic_feeds)),
            kv_binding_name=resolver.resolve("KV_BINDING_NAME") or DEFAULT_KV_BINDING,
            kv_cache_ttl=_int_from_env(resolver, "KV_CACHE_TTL", 3600),
            memory_cache_ttl=_int_from_env(resolver, "MEMORY_CACHE_TTL", 300),
            use_fallback=_bool_from_env(resolver, "GARDEN_USE_FALLBACK"),
            image_proxy_path=resolver.resolve("IMAGE_PROXY_PATH") or DEFAULT_PROXY_PATH,
            image_proxy_allowed_hosts=_list_from_env(resolver, "IMAGE_PROXY_ALLOWED_HOSTS")
            or list(DEFAULT_PROXY_HOSTS),
            image_proxy_referer=resolver.resolve("IMAGE_PROXY_REFERER") or DEFAULT_PROXY_REFERER,
            http_timeout=_int_from_env(resolver, "HTTP_TIMEOUT", 15),
        )


def _feeds_from_sources_file(path: str, resolver: EnvResolver) -> List[str]:
    config = load_sources_config(Path(path), resolver)
    feeds: List[str] = []
    for name, cfg in (config.get("generic_feeds") or {}).items():
        if not isinstance(cfg, dict) or cfg.get("enabled") is False:
            continue
        urls = cfg.get("feeds") or []
        if isinstance(cfg.get("url"), str):
            urls = [cfg["url"], *urls]
        feeds.extend(url for url in urls if isinstance(url, str) and url.strip())
    return feeds

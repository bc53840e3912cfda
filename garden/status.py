"""
Status/health payload for the aggregator.

Kept light-weight and redacted: configuration is reported as booleans,
never as values.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from garden.context import RequestContext
from garden.pipeline import Aggregator
from garden.serialization import health_to_dict


def build_status(aggregator: Aggregator, ctx: RequestContext) -> Dict[str, Any]:
    settings = ctx.settings
    health = [health_to_dict(entry) for entry in aggregator.get_health()]
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "pipeline": {
            "health": health,
            "adapter_count": len(health),
            "healthy_count": sum(1 for entry in health if entry["healthy"]),
        },
        "cache": {
            "memory": aggregator.cache_snapshots(),
            "durable_available": ctx.kv.is_available(),
        },
        "config": {
            "document_store": settings.document_store_configured,
            "photos": settings.photos_configured,
            "messaging_channel": settings.channel_configured,
            "media_log": settings.media_log_configured,
            "generic_feeds": len(settings.generic_feeds),
            "use_fallback": settings.use_fallback,
            "kv_binding": settings.kv_binding_name,
            "kv_cache_ttl_seconds": settings.kv_cache_ttl,
            "memory_cache_ttl_seconds": settings.memory_cache_ttl,
        },
    }

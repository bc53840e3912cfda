"""API routes for the content aggregator."""
from __future__ import annotations

import logging

import requests
from flask import Response, g, jsonify, request

from crawler.infra.http import HttpFetcher

from garden.errors import ConfigurationError
from garden.pipeline import Aggregator
from garden.security import host_is_allowed, redact_secrets
from garden.serialization import archive_group_to_dict, current_item_to_dict, item_to_dict
from garden.status import build_status

logger = logging.getLogger("garden")

PROXY_USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
PROXY_CACHE_CONTROL = "public, max-age=86400"


def register_routes(app, aggregator: Aggregator, image_fetcher: HttpFetcher | None = None):
    """Register all API routes with the Flask app.

    Args:
        app: Flask app instance; ``g.garden_ctx`` must be set before each request.
        aggregator: Aggregator holding the in-process caches.
        image_fetcher: HTTP fetcher used by the image proxy.
    """
    fetcher = image_fetcher or HttpFetcher(user_agent=PROXY_USER_AGENT, accept="image/*,*/*;q=0.8")

    @app.route("/api/feed")
    def api_feed():
        try:
            items = aggregator.get_feed(g.garden_ctx)
            return jsonify([item_to_dict(item) for item in items])
        except Exception as exc:  # pragma: no cover
            logger.error("API feed failed: %s", exc, exc_info=True)
            return jsonify({"error": "Failed to fetch feed"}), 500

    @app.route("/api/archives")
    def api_archives():
        try:
            groups = aggregator.get_archive_groups(g.garden_ctx)
            return jsonify([archive_group_to_dict(group) for group in groups])
        except Exception as exc:  # pragma: no cover
            logger.error("API archives failed: %s", exc, exc_info=True)
            return jsonify({"error": "Failed to fetch archives"}), 500

    @app.route("/api/photos")
    def api_photos():
        try:
            photos = aggregator.get_photos(g.garden_ctx)
            return jsonify([item_to_dict(item) for item in photos])
        except Exception as exc:
            logger.error("Photos API error: %s", redact_secrets(str(exc)), exc_info=True)
            return jsonify({"error": "Failed to fetch photos"}), 500

    @app.route("/api/current")
    def api_current():
        try:
            items = aggregator.get_currently_consuming(g.garden_ctx)
            return jsonify([current_item_to_dict(item) for item in items])
        except Exception as exc:  # pragma: no cover
            logger.error("API current failed: %s", exc, exc_info=True)
            return jsonify({"error": "Failed to fetch current items"}), 500

    @app.route("/api/articles/<slug>")
    def api_article(slug: str):
        try:
            article = aggregator.get_article_by_slug(g.garden_ctx, slug)
        except Exception as exc:  # pragma: no cover
            logger.error("API article %s failed: %s", slug, exc, exc_info=True)
            return jsonify({"error": "Failed to fetch article"}), 500
        if article is None:
            return jsonify({"error": "Article not found"}), 404
        return jsonify(item_to_dict(article))

    @app.route("/api/cache-clear")
    def api_cache_clear():
        try:
            cleared = aggregator.clear_caches(g.garden_ctx)
        except ConfigurationError as exc:
            logger.warning("Cache clear refused: %s", exc)
            return jsonify({"error": "KV not available"}), 500
        return jsonify({"success": True, "cleared": cleared})

    @app.route("/api/proxy-image")
    def api_proxy_image():
        image_url = request.args.get("url")
        if not image_url:
            return Response("Missing url parameter", status=400)

        settings = g.garden_ctx.settings
        if not host_is_allowed(image_url, settings.image_proxy_allowed_hosts):
            allowed = ", ".join(settings.image_proxy_allowed_hosts)
            return Response(f"Only {allowed} images are allowed", status=403)

        try:
            upstream = fetcher.get(image_url, headers={"Referer": settings.image_proxy_referer})
        except requests.RequestException as exc:
            logger.error("Error proxying image %s: %s", image_url, exc)
            return Response("Error fetching image", status=500)

        if not 200 <= upstream.status_code < 300:
            return Response("Failed to fetch image", status=upstream.status_code)

        return Response(
            upstream.content,
            status=200,
            content_type=upstream.headers.get("Content-Type") or "image/jpeg",
            headers={"Cache-Control": PROXY_CACHE_CONTROL},
        )

    @app.route("/api/status")
    def api_status():
        return jsonify(build_status(aggregator, g.garden_ctx))

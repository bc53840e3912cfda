"""Flask application for the content aggregator."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from flask import Flask, g, request
from flask_cors import CORS

from garden import get_aggregator
from garden.api_routes import register_routes
from garden.context import build_context, file_bindings
from garden.kv_cache import KeyValueStore
from garden.pipeline import Aggregator
from garden.settings import EnvResolver, load_build_env

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# WSGI environ key under which a hosting platform injects its per-request env mapping
RUNTIME_ENV_KEY = "garden.runtime_env"

logger = logging.getLogger("garden")


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    handlers = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, (level or "INFO").upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


def create_app(
    bindings: Optional[Mapping[str, KeyValueStore]] = None,
    embedded: Optional[Mapping[str, Optional[str]]] = None,
    aggregator: Optional[Aggregator] = None,
) -> Flask:
    embedded_env = dict(load_build_env() if embedded is None else embedded)
    kv_bindings = dict(file_bindings(EnvResolver(embedded=embedded_env)) if bindings is None else bindings)

    app = Flask(__name__)
    CORS(app)
    app.json.ensure_ascii = False
    app.config["GARDEN_EMBEDDED_ENV"] = embedded_env
    app.config["GARDEN_KV_BINDINGS"] = kv_bindings

    @app.before_request
    def attach_request_context():
        g.garden_ctx = build_context(
            runtime_env=request.environ.get(RUNTIME_ENV_KEY),
            bindings=kv_bindings,
            embedded=embedded_env,
        )

    register_routes(app, aggregator or get_aggregator())
    logger.info("Aggregator app ready (KV bindings: %s)", ", ".join(kv_bindings) or "none")
    return app


configure_logging(os.getenv("GARDEN_LOG_LEVEL"), os.getenv("GARDEN_LOG_FILE"))
app = create_app()

__all__ = ["app", "create_app", "configure_logging", "RUNTIME_ENV_KEY"]

"""
Command line access to the aggregator. Every command prints JSON lines.
"""
from __future__ import annotations

import json
import logging

import click

from garden import get_aggregator
from garden.context import RequestContext, build_context, file_bindings
from garden.errors import ConfigurationError
from garden.serialization import archive_group_to_dict, current_item_to_dict, item_to_dict
from garden.settings import EnvResolver, load_build_env
from garden.status import build_status

FLUSH_TIMEOUT_SECONDS = 10


def _echo(payload) -> None:
    click.echo(json.dumps(payload, ensure_ascii=False, default=str))


@click.group()
@click.option("--env-file", default=None, help="Build-time env file (defaults to GARDEN_BUILD_ENV or .env).")
@click.option("--log-level", default="WARNING", show_default=True)
@click.pass_context
def cli(click_ctx: click.Context, env_file: str | None, log_level: str):
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    embedded = load_build_env(env_file)
    request_ctx = build_context(bindings=file_bindings(EnvResolver(embedded=embedded)), embedded=embedded)
    click_ctx.obj = request_ctx
    # pending durable writes must land before the process exits
    click_ctx.call_on_close(lambda: request_ctx.kv.flush(timeout=FLUSH_TIMEOUT_SECONDS))


@cli.command()
@click.option("--limit", type=int, default=None, help="Only print the newest N items.")
@click.option("--fallback", is_flag=True, help="Serve the static dataset without touching the network.")
@click.pass_obj
def feed(ctx: RequestContext, limit: int | None, fallback: bool):
    items = get_aggregator().get_feed(ctx, use_fallback=fallback)
    for item in items[:limit] if limit else items:
        _echo(item_to_dict(item))


@cli.command()
@click.pass_obj
def archives(ctx: RequestContext):
    for group in get_aggregator().get_archive_groups(ctx):
        _echo(archive_group_to_dict(group))


@cli.command()
@click.pass_obj
def current(ctx: RequestContext):
    for item in get_aggregator().get_currently_consuming(ctx):
        _echo(current_item_to_dict(item))


@cli.command()
@click.argument("slug")
@click.pass_obj
def article(ctx: RequestContext, slug: str):
    found = get_aggregator().get_article_by_slug(ctx, slug)
    if found is None:
        raise click.ClickException(f"Article not found: {slug}")
    _echo(item_to_dict(found))


@cli.command("clear-cache")
@click.pass_obj
def clear_cache(ctx: RequestContext):
    try:
        cleared = get_aggregator().clear_caches(ctx)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc
    _echo({"success": True, "cleared": cleared})


@cli.command()
@click.pass_obj
def status(ctx: RequestContext):
    _echo(build_status(get_aggregator(), ctx))


if __name__ == "__main__":  # pragma: no cover
    cli()

import os

from app import app
from garden.context import build_context
from garden.settings import load_build_env

if __name__ == '__main__':
    host = os.getenv('HOST', '127.0.0.1')
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('DEBUG', 'False').lower() == 'true'

    print(f"Starting Digital Garden aggregator on {host}:{port}")
    print("Source Status Check:")

    settings = build_context(embedded=load_build_env()).settings
    print(f"  Document store configured: {settings.document_store_configured}")
    print(f"  Photos configured: {settings.photos_configured}")
    print(f"  Telegram channel configured: {settings.channel_configured}")
    print(f"  Media log configured: {settings.media_log_configured}")
    print(f"  Generic feeds: {len(settings.generic_feeds)}")

    if not settings.any_source_configured:
        print("\n[WARN] No sources configured; the feed will serve the static fallback dataset.")

    print(f"\nAccess URL: http://{host}:{port}/api/feed")

    app.run(host=host, port=port, debug=debug, threaded=True)

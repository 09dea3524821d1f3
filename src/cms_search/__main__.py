"""Entry point: ``python -m cms_search [serve|build|mapping]``."""

import asyncio
import contextlib
import sys

import uvicorn

from cms_search.app import create_app, create_index_services, load_store
from cms_search.config import Settings
from cms_search.logging import configure_logging
from cms_search.search import build_client

USAGE = "usage: python -m cms_search [serve|build|mapping]"


async def serve(settings: Settings) -> None:
    """Run the API server until SIGINT/SIGTERM.

    Args:
        settings: Server configuration.
    """
    config = uvicorn.Config(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level="warning",
        access_log=False,
    )
    await uvicorn.Server(config).serve()


def run_offline(settings: Settings, command: str) -> int:
    """Run an index command without starting the HTTP server.

    Args:
        settings: Service configuration.
        command: ``build`` or ``mapping``.

    Returns:
        Process exit code.
    """
    store = load_store(settings)
    client = build_client(settings)

    exit_code = 0
    try:
        for service in create_index_services(client, store, settings).values():
            if command == "mapping":
                service.update_index_type_mapping(settings.index_name)
                continue
            summary = service.build(settings.index_name)
            print(summary.model_dump_json())
            if summary.error is not None:
                exit_code = 1
    finally:
        client.close()
    return exit_code


def main() -> None:
    """Entry point for python -m cms_search."""
    command = sys.argv[1].lower() if len(sys.argv) > 1 else "serve"
    settings = Settings()
    configure_logging(debug=settings.debug)

    if command == "serve":
        with contextlib.suppress(KeyboardInterrupt):
            asyncio.run(serve(settings))
        sys.exit(0)

    if command in ("build", "mapping"):
        sys.exit(run_offline(settings, command))

    print(USAGE, file=sys.stderr)
    sys.exit(2)


if __name__ == "__main__":
    main()

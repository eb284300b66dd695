from __future__ import annotations

import argparse

import uvicorn

from maturity_engine.infrastructure.config import get_settings, load_settings_from_file
from maturity_engine.infrastructure.logging import configure_logging


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run the maturity scoring API")
    parser.add_argument(
        "--config",
        default=None,
        help='JSON settings file of {"app": {...}, "db": {...}, "log": {...}} sections',
    )
    args = parser.parse_args(argv)

    settings = load_settings_from_file(args.config) if args.config else get_settings()
    configure_logging(settings.logging)

    database = settings.database
    if database.backend == "sqlite":
        database.ensure_sqlite_directory()

    uvicorn.run(
        "maturity_engine.web.main:app",
        host=settings.app.host,
        port=settings.app.port,
        reload=settings.app.reload,
    )


if __name__ == "__main__":
    main()

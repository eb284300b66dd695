from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from maturity_engine.infrastructure.config import DatabaseConfig
from maturity_engine.infrastructure.db import make_engine_and_session
from maturity_engine.infrastructure.logging import setup_logging
from maturity_engine.utils.seed import initialise_database, load_catalog, seed_catalog


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Seed an assessment catalog (dimensions, topics, recommendation rules)"
    )

    backend_default = os.environ.get("DB_BACKEND", "sqlite")
    sqlite_default = os.environ.get("DB_SQLITE_PATH", "./maturity.db")
    mysql_host_default = os.environ.get("DB_MYSQL_HOST", "localhost")
    mysql_port_default = int(os.environ.get("DB_MYSQL_PORT") or 3306)
    mysql_user_default = os.environ.get("DB_MYSQL_USER", "root")
    mysql_password_default = os.environ.get("DB_MYSQL_PASSWORD", "")
    mysql_database_default = os.environ.get("DB_MYSQL_DATABASE", "maturity")

    parser.add_argument("--backend", choices=["sqlite", "mysql"], default=backend_default)
    parser.add_argument("--sqlite-path", default=sqlite_default)
    parser.add_argument("--mysql-host", default=mysql_host_default)
    parser.add_argument("--mysql-port", type=int, default=mysql_port_default)
    parser.add_argument("--mysql-user", default=mysql_user_default)
    parser.add_argument("--mysql-password", default=mysql_password_default)
    parser.add_argument(
        "--mysql-database", "--mysql-db", dest="mysql_database", default=mysql_database_default
    )
    parser.add_argument(
        "--catalog-path",
        required=True,
        help="Catalog as a .json file or an .xlsx workbook with Topics/Recommendations sheets",
    )
    parser.add_argument("--title", default=None, help="Override the assessment title")
    args = parser.parse_args()

    setup_logging(level="INFO")

    cfg = DatabaseConfig(
        backend=args.backend,
        sqlite_path=args.sqlite_path,
        mysql_host=args.mysql_host,
        mysql_port=args.mysql_port,
        mysql_user=args.mysql_user,
        mysql_password=args.mysql_password,
        mysql_database=args.mysql_database,
    )
    cfg.ensure_sqlite_directory()
    engine, SessionLocal = make_engine_and_session(cfg.get_connection_url())

    initialise_database(engine)

    catalog_path = Path(args.catalog_path)
    if not catalog_path.exists():
        print(f"ERROR: Catalog file not found at {catalog_path}", file=sys.stderr)
        sys.exit(1)

    catalog = load_catalog(catalog_path, title=args.title)
    with SessionLocal() as session:
        assessment = seed_catalog(session, catalog)
        session.commit()
        print(f"Seed completed. Assessment id: {assessment.id}")


if __name__ == "__main__":
    main()

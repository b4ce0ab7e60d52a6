from __future__ import annotations

import argparse
import logging
import sys
from typing import NoReturn

import uvicorn

from .api.main import create_app, set_repository
from .config import settings
from .storage import Database, EntityRepository
from .storage.migrations import apply_migrations

logger = logging.getLogger("trackerlens.main")


def run(db_path: str, host: str, port: int) -> None:
    db = Database(db_path)
    db.init_schema()
    apply_migrations(db)
    set_repository(EntityRepository(db))

    app = create_app()
    uv_config = uvicorn.Config(app, host=host, port=port, log_level="warning")
    server = uvicorn.Server(uv_config)

    logger.info("TrackerLens — db=%r  API=http://%s:%d", db_path, host, port)
    try:
        server.run()
    finally:
        set_repository(None)
        db.close()
        logger.info("TrackerLens stopped cleanly")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="TrackerLens analytics API")
    parser.add_argument("--db",   default=settings.DB_PATH, dest="db_path")
    parser.add_argument("--host", default=settings.API_HOST)
    parser.add_argument("--port", default=settings.API_PORT, type=int)
    parser.add_argument(
        "--log-level", default=settings.LOG_LEVEL.upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args()


def main() -> NoReturn:
    args = _parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    if not 0 < args.port < 65536:
        print(f"ERROR: invalid --port: {args.port}", file=sys.stderr)
        sys.exit(1)

    run(db_path=args.db_path, host=args.host, port=args.port)
    sys.exit(0)


if __name__ == "__main__":
    main()

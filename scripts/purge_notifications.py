"""Delete expired notifications, optionally together with every one sharing a title."""

from __future__ import annotations

import argparse
import logging

from sqlalchemy.exc import SQLAlchemyError

from app.application.use_cases.notifications import NotificationService
from app.infrastructure.database import SessionLocal, initialize_database

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Remove expired notifications from the marketplace database.",
    )
    parser.add_argument(
        "--title",
        default=None,
        help="Elimina además todas las notificaciones con este título exacto.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO)

    initialize_database()

    session = SessionLocal()
    try:
        # No realtime channel runs in this process; counters refresh on next fetch.
        deleted = NotificationService(session).purge_expired(title=args.title)
    except SQLAlchemyError as exc:
        raise SystemExit(f"Error al depurar notificaciones: {exc}") from exc
    finally:
        session.close()

    logger.info("%s notificaciones eliminadas", deleted)


if __name__ == "__main__":
    main()

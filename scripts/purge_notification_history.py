"""Utility script to delete notification history past its retention horizon."""

from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from app.application.use_cases.notifications import purge_expired_history
from app.config import get_settings
from app.infrastructure.database import get_session_factory, initialize_database
from app.infrastructure.log_config import configure_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Delete history records whose TTL has passed.",
    )
    parser.add_argument("--log-level", default=None, help="Log level override")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level or get_settings().log_level)
    initialize_database()

    session = get_session_factory()()
    try:
        removed = purge_expired_history(session)
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Database error while purging history: {exc}") from exc
    else:
        print(f"Removed {removed} expired record(s)")
    finally:
        session.close()


if __name__ == "__main__":
    main()

"""Utility script to seed the default notification templates."""

from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from app.application.use_cases.notifications import seed_default_templates
from app.config import get_settings
from app.infrastructure.database import get_session_factory, initialize_database
from app.infrastructure.log_config import configure_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Store the built-in notification templates that are not yet defined.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override (defaults to LOG_LEVEL)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Seed the template catalogue; existing templates are kept."""

    args = parse_args(argv)
    configure_logging(args.log_level or get_settings().log_level)
    initialize_database()

    session = get_session_factory()()
    try:
        created = seed_default_templates(session)
    except ValueError as exc:
        session.rollback()
        raise SystemExit(f"Could not seed templates: {exc}") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Database error while seeding templates: {exc}") from exc
    else:
        print(f"Seeded {len(created)} template(s)")
        for template in created:
            print(f"  {template.event_type}/{template.channel} -> {template.template_id}")
    finally:
        session.close()


if __name__ == "__main__":
    main()

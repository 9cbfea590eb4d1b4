#!/usr/bin/env python3
"""Apply the Alembic migrations to the configured database.

Usage:
    python scripts/run_migrations.py [revision]

The revision defaults to ``head``. The database URL comes from the
application settings (DATABASE__URL), never from alembic.ini.
"""

import sys

import logfire
from alembic import command
from alembic.config import Config

from hubauth.config import Settings
from hubauth.util.observability import configure_logfire


def main(revision: str = "head") -> int:
    settings = Settings()
    configure_logfire(settings)

    alembic_cfg = Config("alembic.ini")
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)

    with logfire.span("run_migrations", revision=revision):
        try:
            command.upgrade(alembic_cfg, revision)
        except Exception as e:
            logfire.error(
                "Migration to {revision} failed",
                revision=revision,
                error_type=type(e).__name__,
                error=str(e),
                _exc_info=sys.exc_info(),
            )
            # Fail the deploy
            raise

    logfire.info("Database at revision {revision}", revision=revision)
    return 0


if __name__ == "__main__":
    sys.exit(main(*sys.argv[1:2]))

"""Alembic entry point for the qsys queue tables.

The target URL comes from ``ALEMBIC_URL``, then ``sqlalchemy.url`` in
alembic.ini, then the application's synchronous ``DATABASE_URL`` variant.
SQLite runs in batch mode so ALTER TABLE revisions work there too.
"""
from __future__ import annotations

import os
import sys
from logging.config import fileConfig
from pathlib import Path
from typing import Any

from alembic import context
from sqlalchemy import engine_from_config, pool

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from qsys.core.settings import settings  # noqa: E402
from qsys.db.session import Base  # noqa: E402

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def database_url() -> str:
    """Pick the URL migrations run against."""
    return (
        os.getenv("ALEMBIC_URL")
        or config.get_main_option("sqlalchemy.url")
        or settings.database_url_sync
    )


def skip_version_table(obj: Any, name: str | None, type_: str, reflected: bool,
                       compare_to: Any) -> bool:
    return not (type_ == "table" and name == "alembic_version")


def shared_options(is_sqlite: bool) -> dict[str, Any]:
    return {
        "target_metadata": Base.metadata,
        "include_object": skip_version_table,
        "render_as_batch": is_sqlite,
        "compare_type": True,
    }


def run_offline(url: str) -> None:
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **shared_options(url.startswith("sqlite")),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online(url: str) -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = url
    engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            **shared_options(connection.dialect.name == "sqlite"),
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline(database_url())
else:
    run_online(database_url())

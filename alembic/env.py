"""Migration environment for the SaaS Base schema.

The database URL comes from ``DATABASE_URL`` (env or ``.env``) and can be
overridden per run with ``alembic -x db_url=... upgrade head``.
"""

from logging.config import fileConfig

from dotenv import load_dotenv
from sqlalchemy import create_engine, pool

from alembic import context

load_dotenv()

import app.models  # noqa: E402,F401  registers every table on Base.metadata
from app.config import get_settings  # noqa: E402
from app.database import Base  # noqa: E402

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def database_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("db_url") or get_settings().DATABASE_URL


def configure_options(is_sqlite: bool) -> dict:
    # SQLite cannot ALTER most constraints in place.
    return {"target_metadata": target_metadata, "compare_type": True, "render_as_batch": is_sqlite}


def run_migrations_offline() -> None:
    """Emit SQL for the migrations without connecting."""
    url = database_url()
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **configure_options(url.startswith("sqlite")),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply the migrations over a short-lived connection."""
    url = database_url()
    connectable = create_engine(url, poolclass=pool.NullPool)
    try:
        with connectable.connect() as connection:
            context.configure(connection=connection, **configure_options(connection.dialect.name == "sqlite"))
            with context.begin_transaction():
                context.run_migrations()
    finally:
        connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool
from sqlmodel import SQLModel

from app.config import settings
import app.models  # noqa: F401  registers every table

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata
db_url = settings.database_url


def _options(**extra):
    # sqlite cannot ALTER columns in place
    return dict(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=db_url.startswith("sqlite"),
        **extra,
    )


def run_migrations_offline():
    context.configure(url=db_url, literal_binds=True, **_options())
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    engine = create_engine(db_url, poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, **_options())
        with context.begin_transaction():
            context.run_migrations()
    engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

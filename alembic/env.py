import logging
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine

from greep.core.config import get_settings
from greep.db.base import Base
import greep.models  # noqa: F401  registers every table on Base.metadata


config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)
logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=get_settings().database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(get_settings().database_url, future=True)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()
    logger.info("Migrations applied.")


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

from __future__ import annotations
import asyncio, logging
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.pvz_api.db.models import Base
from app.pvz_api.settings import Settings

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)
logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata


def db_url() -> str:
    """
    Адрес БД: `alembic -x dburl=...` важнее настроек окружения.
    """
    return context.get_x_argument(as_dictionary=True).get("dburl") or Settings().database_url


def configure_options(url: str) -> dict:
    # SQLite не умеет ALTER COLUMN, изменения идут через пересоздание таблицы
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def do_run_migrations(connection: Connection, url: str) -> None:
    context.configure(connection=connection, **configure_options(url))
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    url = db_url()
    logger.info(f"Running migrations against {url.split('@')[-1]}")
    connectable: AsyncEngine = create_async_engine(url, poolclass=pool.NullPool)

    async with connectable.connect() as conn:
        await conn.run_sync(do_run_migrations, url)

    await connectable.dispose()


def run_migrations_offline() -> None:
    url = db_url()
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **configure_options(url),
    )
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())

"""Database migration utilities."""

from pathlib import Path

from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import text

from a1c_estimator.database import get_engine
from a1c_estimator.logging_config import get_logger

logger = get_logger(__name__)


def get_alembic_config() -> Config:
    """Get Alembic configuration (alembic.ini at the project root)."""
    app_root = Path(__file__).parent.parent.parent
    alembic_ini = app_root / "alembic.ini"

    if not alembic_ini.exists():
        raise FileNotFoundError(f"alembic.ini not found at {alembic_ini}")

    config = Config(str(alembic_ini))
    config.set_main_option("script_location", str(app_root / "migrations"))

    return config


def get_head_revision() -> str | None:
    """Get the latest revision available in the migration scripts."""
    try:
        script = ScriptDirectory.from_config(get_alembic_config())
        return script.get_current_head()
    except FileNotFoundError:
        return None


async def check_migrations_current() -> bool:
    """Return True if the database is at the head migration revision."""
    try:
        async with get_engine().connect() as conn:
            result = await conn.execute(
                text("SELECT version_num FROM alembic_version LIMIT 1")
            )
            row = result.fetchone()
    except Exception as e:
        logger.warning("Could not read migration revision", error=str(e))
        return False

    if row is None:
        return False

    head = get_head_revision()
    if head is not None and row[0] != head:
        logger.warning(
            "Database schema is behind the migration scripts",
            current=row[0],
            head=head,
        )
        return False
    return True

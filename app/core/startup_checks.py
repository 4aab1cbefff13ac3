from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path

from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from app.core.config import DATABASE_URL, DEFAULT_JWT_SECRET_KEY, JWT_SECRET_KEY

logger = logging.getLogger(__name__)
MIGRATIONS_PREFIX = "[MIGRATIONS]"
SECURITY_PREFIX = "[SECURITY]"

_PRODUCTION_NAMES = {"prod", "production"}
_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _runtime_env() -> str:
    return os.getenv("ENVIRONMENT", os.getenv("ENV", "dev")).strip().lower()


def _is_production() -> bool:
    return _runtime_env() in _PRODUCTION_NAMES


def _require_alembic_config(alembic_config_path: Path) -> None:
    if not alembic_config_path.exists():
        logger.critical("%s alembic config not found path=%s", MIGRATIONS_PREFIX, alembic_config_path)
        raise RuntimeError("alembic config not found")


def validate_database_environment() -> None:
    if _is_production() and DATABASE_URL.startswith("sqlite"):
        logger.critical("%s SQLite is forbidden in production", MIGRATIONS_PREFIX)
        raise RuntimeError("SQLite is forbidden in production environment")


def validate_security_environment() -> None:
    if JWT_SECRET_KEY != DEFAULT_JWT_SECRET_KEY:
        return
    if _is_production():
        logger.critical("%s JWT_SECRET_KEY is not configured", SECURITY_PREFIX)
        raise RuntimeError("JWT_SECRET_KEY must be configured in production environment")
    logger.warning("%s using the development JWT secret; set JWT_SECRET_KEY", SECURITY_PREFIX)


def _auto_apply_enabled() -> bool:
    raw = os.getenv("AUTO_APPLY_MIGRATIONS", "").strip().lower()
    if raw in _FALSY:
        logger.info("%s auto migration disabled by AUTO_APPLY_MIGRATIONS", MIGRATIONS_PREFIX)
        return False
    if raw in _TRUTHY:
        return True
    return _is_production()


def apply_migrations(*, alembic_config_path: Path) -> None:
    """Run `alembic upgrade head` when AUTO_APPLY_MIGRATIONS allows it (on by default in production)."""
    if not _auto_apply_enabled():
        logger.info("%s auto migration skipped env=%s", MIGRATIONS_PREFIX, _runtime_env())
        return

    _require_alembic_config(alembic_config_path)

    command = [sys.executable, "-m", "alembic", "-c", str(alembic_config_path), "upgrade", "head"]
    logger.info("%s applying migrations to head", MIGRATIONS_PREFIX)
    try:
        subprocess.run(command, check=True, capture_output=True, text=True)
    except subprocess.CalledProcessError as exc:
        logger.critical(
            "%s migration apply failed returncode=%s stdout=%s stderr=%s",
            MIGRATIONS_PREFIX,
            exc.returncode,
            (exc.stdout or "").strip(),
            (exc.stderr or "").strip(),
        )
        raise RuntimeError("Automatic migration failed") from exc

    logger.info("%s migrations applied", MIGRATIONS_PREFIX)


def _expected_heads(alembic_config_path: Path) -> set[str]:
    script_directory = ScriptDirectory.from_config(Config(str(alembic_config_path)))
    return set(script_directory.get_heads())


def _current_heads(engine: Engine) -> set[str]:
    with engine.connect() as connection:
        if "alembic_version" not in inspect(connection).get_table_names():
            logger.critical("%s alembic_version table missing", MIGRATIONS_PREFIX)
            raise RuntimeError("Database has no migration state")
        rows = connection.exec_driver_sql("SELECT version_num FROM alembic_version").fetchall()
    return {row[0] for row in rows if row and row[0]}


def ensure_migrations_applied(*, engine: Engine, alembic_config_path: Path) -> None:
    if _runtime_env() == "test":
        logger.info("%s skipped migration check in test environment", MIGRATIONS_PREFIX)
        return

    _require_alembic_config(alembic_config_path)

    expected = _expected_heads(alembic_config_path)
    current = _current_heads(engine)
    if current != expected:
        logger.critical(
            "%s pending migration detected current=%s expected=%s",
            MIGRATIONS_PREFIX,
            sorted(current),
            sorted(expected),
        )
        raise RuntimeError("Pending migrations detected")

    logger.info("%s migration state verified", MIGRATIONS_PREFIX)

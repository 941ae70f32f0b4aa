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

from app.core.config import DATABASE_URL, IS_PROD

logger = logging.getLogger(__name__)
MIGRATIONS_PREFIX = "[MIGRATIONS]"

REQUIRED_TABLES = {
    "tenants",
    "properties",
    "coupons",
    "coupon_redemptions",
    "bookings",
    "loyalty_accounts",
    "loyalty_transactions",
}


def _runtime_env() -> str:
    return os.getenv("ENVIRONMENT", os.getenv("ENV", "dev")).strip().lower()


def validate_database_environment() -> None:
    if IS_PROD and DATABASE_URL.startswith("sqlite"):
        logger.critical("%s SQLite is forbidden in production", MIGRATIONS_PREFIX)
        raise RuntimeError("SQLite is forbidden in production environment")


def apply_migrations(*, alembic_config_path: Path) -> None:
    """Upgrade to head when AUTO_APPLY_MIGRATIONS asks for it (default: on in production)."""
    auto_apply_raw = os.getenv("AUTO_APPLY_MIGRATIONS", "").strip().lower()
    if auto_apply_raw in {"0", "false", "no", "off"}:
        logger.info("%s auto migration disabled by AUTO_APPLY_MIGRATIONS", MIGRATIONS_PREFIX)
        return

    should_auto_apply = auto_apply_raw in {"1", "true", "yes", "on"} or (auto_apply_raw == "" and IS_PROD)
    if not should_auto_apply:
        logger.info("%s auto migration skipped env=%s", MIGRATIONS_PREFIX, _runtime_env())
        return

    if not alembic_config_path.exists():
        logger.critical("%s alembic config not found path=%s", MIGRATIONS_PREFIX, alembic_config_path)
        raise RuntimeError("alembic config not found")

    logger.info("%s applying migrations to head", MIGRATIONS_PREFIX)
    try:
        subprocess.run(
            [sys.executable, "-m", "alembic", "-c", str(alembic_config_path), "upgrade", "head"],
            check=True,
            capture_output=True,
            text=True,
        )
    except subprocess.CalledProcessError as exc:
        logger.critical(
            "%s migration apply failed returncode=%s stderr=%s",
            MIGRATIONS_PREFIX,
            exc.returncode,
            (exc.stderr or "").strip(),
        )
        raise RuntimeError("Automatic migration failed") from exc

    logger.info("%s migrations applied", MIGRATIONS_PREFIX)


def ensure_migrations_applied(*, engine: Engine, alembic_config_path: Path) -> None:
    if _runtime_env() == "test":
        logger.info("%s skipped migration check in test environment", MIGRATIONS_PREFIX)
        return

    if not alembic_config_path.exists():
        logger.critical("%s alembic config not found path=%s", MIGRATIONS_PREFIX, alembic_config_path)
        raise RuntimeError("alembic config not found")

    script_directory = ScriptDirectory.from_config(Config(str(alembic_config_path)))
    expected_heads = set(script_directory.get_heads())

    with engine.connect() as connection:
        if "alembic_version" not in inspect(connection).get_table_names():
            logger.critical("%s alembic_version table missing", MIGRATIONS_PREFIX)
            raise RuntimeError("Database has no migration state")
        current_rows = connection.exec_driver_sql("SELECT version_num FROM alembic_version").fetchall()

    current_heads = {row[0] for row in current_rows if row and row[0]}
    if current_heads != expected_heads:
        logger.critical(
            "%s pending migration detected current=%s expected=%s",
            MIGRATIONS_PREFIX,
            sorted(current_heads),
            sorted(expected_heads),
        )
        raise RuntimeError("Pending migrations detected")

    logger.info("%s migration state verified", MIGRATIONS_PREFIX)


def ensure_required_tables(engine: Engine) -> None:
    existing = set(inspect(engine).get_table_names())
    missing = sorted(REQUIRED_TABLES - existing)
    if missing:
        logger.critical("%s tables missing / migrations not applied missing=%s", MIGRATIONS_PREFIX, ",".join(missing))
        raise RuntimeError("tables missing / migrations not applied")

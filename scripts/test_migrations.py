"""Alembic migration pipeline against a throwaway SQLite database."""

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"

TABLES = {
    "users",
    "user_profiles",
    "company_pages",
    "company_pages_members",
    "notifications",
    "connections",
    "jobs",
    "job_applications",
}


def _config(url: str) -> Config:
    cfg = Config(str(ALEMBIC_INI))
    cfg.set_main_option("sqlalchemy.url", url)
    return cfg


def test_upgrade_and_downgrade(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrations.db'}"
    cfg = _config(url)

    command.upgrade(cfg, "head")
    engine = create_engine(url)
    inspector = inspect(engine)
    tables = set(inspector.get_table_names())
    member_uniques = inspector.get_unique_constraints("company_pages_members")
    user_indexes = {ix["name"]: ix for ix in inspector.get_indexes("users")}
    engine.dispose()

    assert TABLES <= tables
    assert "alembic_version" in tables
    assert any(set(u["column_names"]) == {"company_page_id", "user_id"} for u in member_uniques)
    assert user_indexes["ix_users_email"]["unique"]

    command.downgrade(cfg, "base")
    engine = create_engine(url)
    remaining = set(inspect(engine).get_table_names())
    engine.dispose()

    assert not TABLES & remaining

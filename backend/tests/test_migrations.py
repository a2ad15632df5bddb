"""Tests for Alembic database migrations."""

from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect

BACKEND_DIR = Path(__file__).resolve().parent.parent


def _get_alembic_cfg() -> Config:
    """Return an Alembic Config pointing at the backend directory."""
    cfg = Config(str(BACKEND_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(BACKEND_DIR / "migrations"))
    return cfg


def test_alembic_single_head():
    """Verify that the migration chain has exactly one head."""
    script_dir = ScriptDirectory.from_config(_get_alembic_cfg())
    assert len(script_dir.get_heads()) == 1


def test_migration_chain_is_linear():
    """Verify the migration chain has proper linear dependencies."""
    script_dir = ScriptDirectory.from_config(_get_alembic_cfg())
    revisions = list(script_dir.walk_revisions())
    revision_map = {rev.revision: rev for rev in revisions}

    for rev in revisions:
        if rev.down_revision is not None:
            assert isinstance(
                rev.down_revision, str
            ), f"Revision {rev.revision} has multiple parents: {rev.down_revision}"
            assert (
                rev.down_revision in revision_map
            ), f"Revision {rev.revision} references non-existent down_revision: {rev.down_revision}"


def test_upgrade_head_creates_model_tables(tmp_path):
    """Running the migrations on a fresh SQLite file creates every model table."""
    from meshmap.database import Base

    db_file = tmp_path / "migrated.db"
    cfg = _get_alembic_cfg()
    cfg.set_main_option("sqlalchemy.url", f"sqlite+aiosqlite:///{db_file}")

    command.upgrade(cfg, "head")

    engine = create_engine(f"sqlite:///{db_file}")
    try:
        inspector = inspect(engine)
        tables = set(inspector.get_table_names())
        assert set(Base.metadata.tables) <= tables
        for table in Base.metadata.sorted_tables:
            migrated = {c["name"] for c in inspector.get_columns(table.name)}
            assert migrated == set(table.columns.keys()), table.name
    finally:
        engine.dispose()


def test_model_server_defaults_present():
    """All NOT NULL columns with Python defaults should declare server_default."""
    import sys

    sys.path.insert(0, str(BACKEND_DIR / "scripts"))
    try:
        from validate_server_defaults import validate
    finally:
        sys.path.pop(0)

    assert validate() == []


def test_server_default_check_flags_orm_only_default():
    import sys

    from sqlalchemy import Column, Integer, text

    sys.path.insert(0, str(BACKEND_DIR / "scripts"))
    try:
        from validate_server_defaults import needs_server_default
    finally:
        sys.path.pop(0)

    assert needs_server_default(Column("lost", Integer, nullable=False, default=0))
    assert not needs_server_default(
        Column("lost", Integer, nullable=False, default=0, server_default=text("0"))
    )
    assert not needs_server_default(Column("lost", Integer, nullable=True, default=0))

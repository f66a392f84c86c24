from sqlalchemy import text

from simstudio.init_db import check_user_roles


def _columns(session):
    return {row.name for row in session.execute(text("PRAGMA table_info(users)"))}


def test_startup_check_reports_missing_role_columns(legacy_db):
    capabilities = check_user_roles(legacy_db)

    assert capabilities.missing_user_role_columns == ("is_admin", "is_coach")
    assert "is_admin" not in _columns(legacy_db)


def test_startup_check_can_apply_migration(legacy_db):
    capabilities = check_user_roles(legacy_db, apply=True)

    assert capabilities.user_roles is True
    assert {"is_admin", "is_coach"} <= _columns(legacy_db)


def test_startup_check_on_current_schema(db):
    assert check_user_roles(db, apply=True).user_roles is True

"""Create every table on the configured database; run as ``python -m simstudio.init_db``."""

import logging

from sqlalchemy.orm import Session

from simstudio.database import Base, SessionLocal, engine
import simstudio.models  # noqa: F401
from simstudio.services.schema_capabilities import SchemaCapabilities, get_schema_capabilities
from simstudio.services.user_service import UserService

logger = logging.getLogger(__name__)


def check_user_roles(db: Session, apply: bool = False) -> SchemaCapabilities:
    """
    Check the users table for the role columns.

    ``create_all`` never alters an existing table, so a users table that
    predates the role flags stays without them. With ``apply`` the columns
    are added here; otherwise the gap is reported and role edits answer
    with ``needsMigration`` until POST /api/migrations/user-roles runs.
    """
    capabilities = get_schema_capabilities(db, refresh=True)
    if capabilities.user_roles:
        return capabilities
    if apply:
        added = UserService(db).apply_user_roles_migration()
        logger.info("Added user role columns at startup: %s", ", ".join(added))
        return get_schema_capabilities(db)
    logger.warning(
        "users table lacks %s; run POST /api/migrations/user-roles or set AUTO_MIGRATE_USER_ROLES",
        ", ".join(capabilities.missing_user_role_columns),
        extra={"event": "user_roles_pending"},
    )
    return capabilities


def init_db() -> None:
    logger.info("Creating database tables on %s", engine.url.render_as_string(hide_password=True))
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        check_user_roles(db, apply=True)
    logger.info("Tables created successfully")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()

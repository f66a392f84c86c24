# simstudio/services/schema_capabilities.py
"""
Cached detection of optional schema features.

Role editing needs ``users.is_admin`` and ``users.is_coach``. Older
deployments may lack them; detection runs once per process and the result
is reused until a migration refreshes it.

While the columns are missing, loaded users read both flags as False, so
identity checks keep working and nobody holds the admin role.
"""

from dataclasses import dataclass
import logging
from threading import Lock
from typing import Any, Optional, Tuple

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from ..core.exceptions import MigrationRequiredException
from ..models.user import User
from ..repositories.factory import RepositoryFactory

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
USER_ROLE_COLUMNS: Tuple[str, ...] = ("is_admin", "is_coach")


@dataclass(frozen=True)
class SchemaCapabilities:
    missing_user_role_columns: Tuple[str, ...] = ()

    @property
    def user_roles(self) -> bool:
        return not self.missing_user_role_columns


_cache_lock = Lock()
_cached: Optional[SchemaCapabilities] = None


def detect_schema_capabilities(db: Session) -> SchemaCapabilities:
    present = RepositoryFactory.create_schema_repository(db).column_names(USERS_TABLE)
    missing = tuple(column for column in USER_ROLE_COLUMNS if column not in present)
    if missing:
        logger.warning(
            "User role columns missing; role edits disabled until migrated",
            extra={"event": "schema_capabilities", "missing_columns": list(missing)},
        )
    return SchemaCapabilities(missing_user_role_columns=missing)


def get_schema_capabilities(db: Session, refresh: bool = False) -> SchemaCapabilities:
    """Return the cached capabilities, probing the database on first use."""
    global _cached
    with _cache_lock:
        if _cached is None or refresh:
            _cached = detect_schema_capabilities(db)
        return _cached


def reset_schema_capabilities() -> None:
    global _cached
    with _cache_lock:
        _cached = None


def require_user_roles(db: Session) -> None:
    """Raise MigrationRequiredException unless the role columns exist."""
    capabilities = get_schema_capabilities(db)
    if not capabilities.user_roles:
        raise MigrationRequiredException(USERS_TABLE, list(capabilities.missing_user_role_columns))


def _default_missing_role_flags(target: User) -> None:
    capabilities = _cached
    if capabilities is None or capabilities.user_roles:
        return
    unloaded = inspect(target).unloaded
    for column in capabilities.missing_user_role_columns:
        if column in unloaded:
            set_committed_value(target, column, False)


@event.listens_for(User, "load")
def _on_user_load(target: User, context: Any) -> None:
    _default_missing_role_flags(target)


@event.listens_for(User, "refresh")
def _on_user_refresh(target: User, context: Any, attrs: Any) -> None:
    _default_missing_role_flags(target)

# simstudio/services/package_service.py
"""
Package administration and the studio's hourly rate.

Packages are deactivated rather than deleted so credit transactions that
reference them stay intact. The hourly rate lives in a reserved package
row named ``hourly_rate``.
"""

from decimal import Decimal, InvalidOperation
import logging
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from ..core.constants import HOURLY_RATE_PACKAGE_NAME
from ..core.exceptions import NotFoundException, ValidationException
from ..models.package import Package
from ..repositories.factory import RepositoryFactory
from .audit_service import AuditService, snapshot
from .base import BaseService

logger = logging.getLogger(__name__)

PACKAGE_AUDIT_FIELDS = ("name", "hours", "price", "description", "is_active")


def to_price(value: Any, *, allow_zero: bool = True) -> Decimal:
    try:
        price = Decimal(str(value)).quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationException("Price must be a number", details={"price": value}) from exc
    if price < 0 or (price == 0 and not allow_zero):
        raise ValidationException("Price must be greater than zero", details={"price": value})
    return price


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class PackageService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_package_repository(db)
        self.audit = AuditService(db)

    def list_active(self) -> List[Package]:
        return self.repository.list_active()

    def get_active(self, package_id: str) -> Package:
        package = self.repository.get_active(package_id)
        if package is None:
            raise NotFoundException("Package not found", details={"package_id": package_id})
        return package

    @BaseService.measure_operation("create_package")
    def create_package(
        self,
        name: str,
        hours: int,
        price: Any,
        description: Optional[str] = None,
        actor: Any = None,
    ) -> Package:
        name = (name or "").strip()
        if not name:
            raise ValidationException("Package name is required")
        if name == HOURLY_RATE_PACKAGE_NAME:
            raise ValidationException(f"'{HOURLY_RATE_PACKAGE_NAME}' is a reserved package name")
        if not _is_positive_int(hours):
            raise ValidationException(
                "Hours must be a positive whole number", details={"hours": hours}
            )

        with self.transaction():
            package = self.repository.create(
                name=name, hours=hours, price=to_price(price), description=description
            )
            self.audit.log(
                "package",
                package.id,
                "create",
                actor=actor,
                after=snapshot(package, PACKAGE_AUDIT_FIELDS),
            )
        return package

    @BaseService.measure_operation("update_package")
    def update_package(self, package_id: str, actor: Any = None, **fields: Any) -> Package:
        """Partial update of name, hours, price, description or is_active."""
        package = self.repository.get_by_id(package_id)
        if package is None:
            raise NotFoundException("Package not found", details={"package_id": package_id})

        changes = {k: v for k, v in fields.items() if v is not None}
        if "price" in changes:
            changes["price"] = to_price(changes["price"])
        if "hours" in changes and not _is_positive_int(changes["hours"]):
            raise ValidationException("Hours must be a positive whole number")
        if "name" in changes and not str(changes["name"]).strip():
            raise ValidationException("Package name is required")
        if not changes:
            return package

        before = snapshot(package, PACKAGE_AUDIT_FIELDS)
        with self.transaction():
            self.repository.update(package_id, **changes)
            self.audit.log(
                "package",
                package_id,
                "update",
                actor=actor,
                before=before,
                after=snapshot(package, PACKAGE_AUDIT_FIELDS),
            )
        return package

    @BaseService.measure_operation("deactivate_package")
    def deactivate_package(self, package_id: str, actor: Any = None) -> Package:
        """Soft delete: the row stays, ``is_active`` becomes False."""
        package = self.repository.get_active(package_id)
        if package is None:
            raise NotFoundException("Package not found", details={"package_id": package_id})
        with self.transaction():
            self.repository.update(package_id, is_active=False)
            self.audit.log(
                "package",
                package_id,
                "deactivate",
                actor=actor,
                before={"is_active": True},
                after={"is_active": False},
            )
        return package


class HourlyRateService(BaseService):
    """Reads and writes the studio's per-hour simulator price."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_package_repository(db)
        self.audit = AuditService(db)

    def get_rate(self) -> Optional[Decimal]:
        package = self.repository.get_hourly_rate_package()
        return package.price if package is not None else None

    @BaseService.measure_operation("set_hourly_rate")
    def set_rate(self, price: Any, actor: Any = None) -> Decimal:
        new_price = to_price(price, allow_zero=False)
        package = self.repository.get_hourly_rate_package()
        before = {"price": package.price} if package is not None else None
        with self.transaction():
            if package is None:
                package = self.repository.create(
                    name=HOURLY_RATE_PACKAGE_NAME,
                    hours=1,
                    price=new_price,
                    description="Studio hourly rate",
                    is_active=False,
                )
            else:
                self.repository.update(package.id, price=new_price)
            self.audit.log(
                "hourly_rate",
                package.id,
                "set",
                actor=actor,
                before=before,
                after={"price": new_price},
            )
        return new_price

# simstudio/routes/user_credits.py
"""
Credit ledger routes.

Endpoints:
    GET /user-credits?userId= - Current balance (own balance unless admin)
    GET /user-credits/history?userId= - Balance plus recent transactions
    POST /user-credits - Additive purchase from a package; raw hour grants are admin-only
    PUT /user-credits - Absolute balance overwrite (admin)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from ..api.dependencies import (
    ensure_self_or_admin,
    get_credit_ledger_service,
    get_current_user,
    require_admin,
)
from ..core.exceptions import DomainException
from ..models.user import User
from ..schemas.credit import (
    CreditBalanceResponse,
    CreditHistoryResponse,
    CreditPurchaseRequest,
    CreditSetRequest,
    CreditTransactionResponse,
)
from ..services.credit_ledger_service import CreditLedgerService
from . import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["credits"])


@router.get("/user-credits", response_model=CreditBalanceResponse)
def get_user_credits(
    user_id: Optional[str] = Query(None, alias="userId"),
    current_user: User = Depends(get_current_user),
    ledger: CreditLedgerService = Depends(get_credit_ledger_service),
) -> CreditBalanceResponse:
    target = user_id or current_user.id
    ensure_self_or_admin(current_user, target)
    return CreditBalanceResponse.model_validate(ledger.get(target))


@router.get("/user-credits/history", response_model=CreditHistoryResponse)
def get_credit_history(
    user_id: Optional[str] = Query(None, alias="userId"),
    limit: int = Query(50, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    ledger: CreditLedgerService = Depends(get_credit_ledger_service),
) -> CreditHistoryResponse:
    target = user_id or current_user.id
    ensure_self_or_admin(current_user, target)
    return CreditHistoryResponse(
        balance=CreditBalanceResponse.model_validate(ledger.get(target)),
        transactions=[
            CreditTransactionResponse.model_validate(t)
            for t in ledger.list_transactions(target, limit=limit)
        ],
    )


@router.post("/user-credits", response_model=CreditBalanceResponse)
def purchase_credits(
    payload: CreditPurchaseRequest = Body(...),
    current_user: User = Depends(get_current_user),
    ledger: CreditLedgerService = Depends(get_credit_ledger_service),
) -> CreditBalanceResponse:
    """Top up a balance. Adds to what is already there."""
    ensure_self_or_admin(current_user, payload.user_id)
    try:
        balance = ledger.purchase(
            payload.user_id,
            package_id=payload.package_id,
            hours=payload.hours,
            coaching_sessions=payload.coaching_sessions,
            actor=current_user,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return CreditBalanceResponse.model_validate(balance)


@router.put("/user-credits", response_model=CreditBalanceResponse)
def set_user_credits(
    payload: CreditSetRequest = Body(...),
    current_user: User = Depends(require_admin),
    ledger: CreditLedgerService = Depends(get_credit_ledger_service),
) -> CreditBalanceResponse:
    """Overwrite a balance with absolute values."""
    try:
        balance = ledger.set_absolute(
            payload.user_id,
            simulator_hours=payload.simulator_hours,
            coaching_sessions=payload.coaching_sessions,
            actor=current_user,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return CreditBalanceResponse.model_validate(balance)

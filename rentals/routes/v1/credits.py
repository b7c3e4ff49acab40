# rentals/routes/v1/credits.py
"""
Credit wallet routes - API v1

Endpoints:
    GET /balance - Caller's current balance
    GET /ledger - Caller's ledger entries, newest first
    POST /grants - Admin grant of credits to an account
"""

import asyncio
import logging

from fastapi import APIRouter, Body, Depends, Query, status

from ...api.dependencies import get_credit_service, get_current_active_user
from ...core.constants import DEFAULT_LEDGER_PAGE_SIZE, MAX_LEDGER_PAGE_SIZE
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.credits import (
    BalanceResponse,
    CreditGrantRequest,
    CreditGrantResponse,
    LedgerEntryResponse,
    LedgerListResponse,
)
from ...services.credit_service import CreditService
from ._common import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["credits-v1"])


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    current_user: User = Depends(get_current_active_user),
    credit_service: CreditService = Depends(get_credit_service),
) -> BalanceResponse:
    """Sum of the caller's ledger deltas."""
    try:
        balance = await asyncio.to_thread(credit_service.get_balance, current_user.id)
        return BalanceResponse(user_id=current_user.id, balance=balance)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/ledger", response_model=LedgerListResponse)
async def get_ledger(
    limit: int = Query(DEFAULT_LEDGER_PAGE_SIZE, ge=1, le=MAX_LEDGER_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_active_user),
    credit_service: CreditService = Depends(get_credit_service),
) -> LedgerListResponse:
    try:
        entries, total = await asyncio.to_thread(
            credit_service.get_ledger, current_user.id, limit=limit, offset=offset
        )
        balance = await asyncio.to_thread(credit_service.get_balance, current_user.id)
        return LedgerListResponse(
            items=[LedgerEntryResponse.model_validate(entry) for entry in entries],
            total=total,
            balance=balance,
            limit=limit,
            offset=offset,
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/grants",
    response_model=CreditGrantResponse,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"description": "Admin only"}, 404: {"description": "User not found"}},
)
async def grant_credits(
    payload: CreditGrantRequest = Body(...),
    current_user: User = Depends(get_current_active_user),
    credit_service: CreditService = Depends(get_credit_service),
) -> CreditGrantResponse:
    """Add credits to an account (admin only)."""
    try:
        result = await asyncio.to_thread(
            credit_service.admin_grant_credits,
            current_user,
            payload.user_id,
            payload.amount,
            payload.reason,
        )
        return CreditGrantResponse(
            user_id=result.user_id,
            granted=result.granted,
            new_balance=result.new_balance,
            ledger_entry_id=result.ledger_entry_id,
        )
    except DomainException as e:
        handle_domain_exception(e)

import pytest

from rentals.core.exceptions import (
    AccountBusyException,
    ForbiddenException,
    InsufficientBalanceException,
    NoRateConfiguredException,
    NotFoundException,
    UnauthorizedException,
    UnitUnavailableException,
    ValidationException,
    is_db_pool_exhaustion,
)


@pytest.mark.parametrize(
    "exc,status,code",
    [
        (UnauthorizedException("no caller"), 401, "UNAUTHORIZED"),
        (ForbiddenException("not yours"), 403, "FORBIDDEN"),
        (ValidationException("bad"), 400, "INVALID_REQUEST"),
        (NotFoundException("missing"), 404, "NOT_FOUND"),
        (UnitUnavailableException(), 409, "UNIT_UNAVAILABLE"),
        (NoRateConfiguredException("unit-1"), 422, "NO_RATE_CONFIGURED"),
        (InsufficientBalanceException(10, 50), 422, "INSUFFICIENT_BALANCE"),
        (AccountBusyException("user-1"), 409, "ACCOUNT_BUSY"),
    ],
)
def test_http_mapping(exc, status, code):
    http_exc = exc.to_http_exception()

    assert http_exc.status_code == status
    assert http_exc.detail["code"] == code


def test_insufficient_balance_details():
    exc = InsufficientBalanceException(balance=30, required=100)

    assert exc.details == {"balance": 30, "required": 100, "shortfall": 70}
    assert "Balance: 30" in exc.message


def test_pool_exhaustion_detection():
    assert is_db_pool_exhaustion(Exception("QueuePool limit of size 10 overflow 5 reached"))
    assert is_db_pool_exhaustion(Exception("timeout waiting for connection"))
    assert not is_db_pool_exhaustion(Exception("division by zero"))

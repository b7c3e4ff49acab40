import pytest

from rentals.core.ids import generate_id
from rentals.repositories.ledger_repository import LedgerRepository
from rentals.repositories.user_repository import UserRepository


def test_balance_defaults_to_zero(db, customer):
    assert LedgerRepository(db).get_balance(customer.id) == 0


def test_append_and_balance(db, customer):
    repo = LedgerRepository(db)

    repo.append(user_id=customer.id, delta=100, reason="Top-up")
    repo.append(user_id=customer.id, delta=-35, reason="Booking charge")
    db.commit()

    assert repo.get_balance(customer.id) == 65


def test_balances_are_per_account(db, customer, other_customer, fund):
    fund(customer, 100)
    fund(other_customer, 7)

    repo = LedgerRepository(db)
    assert repo.get_balance(customer.id) == 100
    assert repo.get_balance(other_customer.id) == 7


def test_zero_delta_rejected(db, customer):
    with pytest.raises(ValueError):
        LedgerRepository(db).append(user_id=customer.id, delta=0, reason="nothing")


def test_claim_ledger_version_is_compare_and_swap(db, customer):
    repo = UserRepository(db)

    assert repo.claim_ledger_version(customer.id, 0)
    assert not repo.claim_ledger_version(customer.id, 0)
    db.commit()

    assert repo.lock_for_debit(customer.id).ledger_version == 1


def test_lock_for_debit_unknown_account(db):
    assert UserRepository(db).lock_for_debit(generate_id()) is None

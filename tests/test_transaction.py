"""
Tests for `produce_trading/domain/transaction.py`.

Covers contract rules:
- quantity_kg is at least 1 and amounts are never negative.
- CreditSale status only moves Pending -> Paid; Paid is terminal.
- Overdue means still Pending after the due date.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError, replace
from datetime import date

import pytest

from produce_trading.domain.transaction import CreditStatus, TransactionKind, can_transition
from tests.fakes import make_cash_sale, make_credit_sale, make_lot


def test_quantity_must_be_at_least_one() -> None:
    lot = make_lot()
    with pytest.raises(ValueError):
        make_cash_sale(lot, quantity_kg=0)
    with pytest.raises(ValueError):
        make_credit_sale(lot, quantity_kg=-5)


def test_amounts_cannot_be_negative() -> None:
    lot = make_lot()
    with pytest.raises(ValueError):
        make_cash_sale(lot, amount_paid="-1")
    with pytest.raises(ValueError):
        make_credit_sale(lot, amount_due="-1")


def test_transaction_kinds() -> None:
    lot = make_lot()
    cash = make_cash_sale(lot, amount_paid="450000")
    credit = make_credit_sale(lot, amount_due="600000")

    assert cash.kind is TransactionKind.CASH
    assert cash.amount == cash.amount_paid
    assert credit.kind is TransactionKind.CREDIT
    assert credit.amount == credit.amount_due


def test_credit_sale_defaults_to_pending() -> None:
    sale = make_credit_sale(make_lot())
    assert sale.status is CreditStatus.PENDING
    assert sale.is_pending


def test_mark_paid_returns_new_instance() -> None:
    sale = make_credit_sale(make_lot())
    paid = sale.mark_paid()

    assert paid.status is CreditStatus.PAID
    assert sale.status is CreditStatus.PENDING
    assert paid.sale_id == sale.sale_id


def test_paid_is_terminal() -> None:
    paid = make_credit_sale(make_lot(), status=CreditStatus.PAID)
    with pytest.raises(ValueError):
        paid.mark_paid()


def test_transition_table() -> None:
    assert can_transition(CreditStatus.PENDING, CreditStatus.PAID)
    assert not can_transition(CreditStatus.PAID, CreditStatus.PENDING)
    assert not can_transition(CreditStatus.PAID, CreditStatus.PAID)
    assert not can_transition(CreditStatus.PENDING, CreditStatus.PENDING)


def test_is_overdue_only_while_pending() -> None:
    sale = make_credit_sale(make_lot(), due_date=date(2025, 3, 1))

    assert sale.is_overdue(date(2025, 3, 2))
    assert not sale.is_overdue(date(2025, 3, 1))
    assert not replace(sale, status=CreditStatus.PAID).is_overdue(date(2025, 3, 2))


def test_sale_is_immutable() -> None:
    sale = make_cash_sale(make_lot())
    with pytest.raises(FrozenInstanceError):
        sale.quantity_kg = 1  # type: ignore[misc]

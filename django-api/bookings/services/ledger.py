"""Wallet primitives. Callers must be inside a ledger transaction."""

import logging
from dataclasses import replace

from bookings.domain import Transaction, TransactionKind, TransactionStatus, Wallet
from bookings.domain.errors import InsufficientFundsError
from bookings.stores.interfaces import LedgerStore

logger = logging.getLogger(__name__)


def available_balance(ledger: LedgerStore, wallet: Wallet) -> int:
    """Balance not already promised to a pending withdrawal."""
    return wallet.balance - pending_withdrawals(ledger, wallet.user_id)


def ensure_funds(ledger: LedgerStore, wallet: Wallet, amount: int) -> None:
    available = available_balance(ledger, wallet)
    if available < amount:
        raise InsufficientFundsError(required=amount, available=available)


def debit(ledger: LedgerStore, user_id: str, amount: int, description: str) -> tuple[Wallet, Transaction]:
    """Withdraw ``amount`` credits as one completed transaction."""
    wallet = ledger.get_wallet(user_id, for_update=True)
    ensure_funds(ledger, wallet, amount)
    wallet = replace(wallet, balance=wallet.balance - amount)
    ledger.save_wallet(wallet)
    entry = ledger.add_transaction(
        Transaction(
            user_id=user_id,
            amount=-amount,
            kind=TransactionKind.WITHDRAWAL,
            description=description,
        )
    )
    logger.info("wallet_debited user=%s amount=%s balance=%s", user_id, amount, wallet.balance)
    return wallet, entry


def credit(
    ledger: LedgerStore,
    user_id: str,
    amount: int,
    description: str,
    external_reference: str | None = None,
) -> tuple[Wallet, Transaction]:
    """Deposit ``amount`` credits as one completed transaction."""
    wallet = ledger.get_wallet(user_id, for_update=True)
    wallet = replace(wallet, balance=wallet.balance + amount)
    ledger.save_wallet(wallet)
    entry = ledger.add_transaction(
        Transaction(
            user_id=user_id,
            amount=amount,
            kind=TransactionKind.DEPOSIT,
            description=description,
            external_reference=external_reference,
        )
    )
    logger.info("wallet_credited user=%s amount=%s balance=%s", user_id, amount, wallet.balance)
    return wallet, entry


def completed_total(ledger: LedgerStore, user_id: str) -> int:
    return sum(t.amount for t in ledger.list_transactions(user_id) if t.status is TransactionStatus.COMPLETED)


def pending_withdrawals(ledger: LedgerStore, user_id: str) -> int:
    return -sum(
        t.amount
        for t in ledger.list_transactions(user_id)
        if t.status is TransactionStatus.PENDING and t.kind is TransactionKind.WITHDRAWAL
    )

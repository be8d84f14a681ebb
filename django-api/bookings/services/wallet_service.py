"""Wallet reads, top-ups, withdrawals and settlement.

Balances only move through completed transactions. A top-up is credited
once the gateway confirms the charge, and a withdrawal is recorded as
pending and reduces the balance when it settles, so the sum of completed
amounts always equals the balance. Settlement is driven by the payment
gateway's callback, never by the wallet owner.
"""

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from bookings.config import BookingConfig
from bookings.domain import Money, Transaction, TransactionKind, TransactionStatus, Wallet
from bookings.domain.errors import NotFoundError, ValidationError
from bookings.domain.outcomes import Reconciliation
from bookings.services import ledger, pricing
from bookings.services.base import BaseService, Outbox, returns_result
from bookings.stores.interfaces import LedgerStore, Notifier, PaymentGateway, SessionStore

logger = logging.getLogger(__name__)

SETTLED_STATUSES = frozenset({TransactionStatus.COMPLETED, TransactionStatus.FAILED})


class WalletService(BaseService):
    """Service for the credit wallet of students and coaches."""

    def __init__(
        self,
        sessions: SessionStore,
        ledger: LedgerStore,
        notifier: Notifier,
        gateway: PaymentGateway,
        config: BookingConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(sessions, ledger, notifier, config=config, clock=clock)
        self._gateway = gateway

    @returns_result
    def get_wallet(self, user_id: str) -> Wallet:
        with self._ledger.atomic():
            return self._ledger.get_wallet(user_id)

    @returns_result
    def list_transactions(self, user_id: str) -> list[Transaction]:
        return self._ledger.list_transactions(user_id)

    @returns_result
    def top_up(self, user_id: str, amount: Money, payment_method: str) -> Transaction:
        """Charge the payer through the gateway and record the deposit.

        The deposit is credited only once the gateway reports it completed,
        either in its receipt or later through ``settle``. A receipt whose
        reference is already recorded for this wallet returns that entry.

        Raises:
            ValidationError: If the amount is not positive, the payment method
                is blank, the gateway declines the charge, or the reference
                belongs to another wallet.
        """
        if amount.amount <= 0:
            raise ValidationError("Top-up amount must be positive", amount=str(amount))
        if not payment_method.strip():
            raise ValidationError("A payment method is required")

        try:
            receipt = self._gateway.collect(amount.amount, payment_method)
        except Exception as exc:
            logger.exception("top_up_collection_failed user=%s amount=%s", user_id, amount)
            raise ValidationError("Payment failed", amount=str(amount)) from exc
        if receipt.status is TransactionStatus.FAILED:
            raise ValidationError("Payment failed", reference=receipt.reference)

        credits = pricing.credits_for(amount, self._config.credits_per_unit)
        with self.transaction() as outbox:
            self._ledger.get_wallet(user_id, for_update=True)
            existing = self._ledger.get_transaction_by_reference(receipt.reference, for_update=True)
            if existing is not None:
                if existing.user_id != user_id:
                    raise ValidationError("Payment reference already used", reference=receipt.reference)
                logger.info("top_up_replayed user=%s reference=%s", user_id, receipt.reference)
                return existing
            entry = self._ledger.add_transaction(
                Transaction(
                    user_id=user_id,
                    amount=credits,
                    kind=TransactionKind.DEPOSIT,
                    description=f"Top-up of {amount} SGD ({credits} PC)",
                    status=TransactionStatus.PENDING,
                    external_reference=receipt.reference,
                )
            )
            if receipt.status is TransactionStatus.COMPLETED:
                entry = self._apply(entry, TransactionStatus.COMPLETED, outbox)
        logger.info(
            "top_up_recorded user=%s credits=%s reference=%s status=%s",
            user_id,
            credits,
            receipt.reference,
            entry.status.value,
        )
        return entry

    @returns_result
    def withdraw(self, user_id: str, credits: int, destination: str) -> Transaction:
        """Cash credits out through the payment gateway.

        The withdrawal is recorded as pending before the gateway is called.
        A gateway that answers ``completed`` settles it at once; one that
        raises marks it failed.

        Raises:
            ValidationError: If the amount is not positive or the destination is blank.
            InsufficientFundsError: If the available balance cannot cover it.
        """
        if credits <= 0:
            raise ValidationError("Withdrawal amount must be positive", credits=credits)
        if not destination.strip():
            raise ValidationError("A payout destination is required")

        with self.transaction():
            wallet = self._ledger.get_wallet(user_id, for_update=True)
            ledger.ensure_funds(self._ledger, wallet, credits)
            entry = self._ledger.add_transaction(
                Transaction(
                    user_id=user_id,
                    amount=-credits,
                    kind=TransactionKind.WITHDRAWAL,
                    description=f"Withdrawal of {credits} PC to {destination}",
                    status=TransactionStatus.PENDING,
                )
            )

        amount = (Decimal(credits) / self._config.credits_per_unit).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        try:
            receipt = self._gateway.transfer(amount, destination)
        except Exception:
            logger.exception("withdrawal_transfer_failed user=%s transaction=%s", user_id, entry.id)
            with self._ledger.atomic():
                entry = replace(entry, status=TransactionStatus.FAILED)
                self._ledger.save_transaction(entry)
            return entry

        with self.transaction() as outbox:
            entry = replace(entry, external_reference=receipt.reference)
            self._ledger.save_transaction(entry)
            if receipt.status in SETTLED_STATUSES:
                entry = self._apply(entry, receipt.status, outbox)
        logger.info(
            "withdrawal_requested user=%s credits=%s reference=%s status=%s",
            user_id,
            credits,
            receipt.reference,
            entry.status.value,
        )
        return entry

    @returns_result
    def settle(self, reference: str, status: TransactionStatus) -> Transaction:
        """Resolve a pending deposit or withdrawal reported back by the gateway.

        Raises:
            ValidationError: If ``status`` is not a final status.
            NotFoundError: If no transaction carries the reference.
        """
        if status not in SETTLED_STATUSES:
            raise ValidationError("Settlement status must be completed or failed", status=status.value)
        with self.transaction() as outbox:
            found = self._ledger.get_transaction_by_reference(reference)
            if found is None:
                raise NotFoundError("transaction", reference)
            self._ledger.get_wallet(found.user_id, for_update=True)
            entry = self._ledger.get_transaction_by_reference(reference, for_update=True)
            if entry.status is not TransactionStatus.PENDING:
                return entry
            return self._apply(entry, status, outbox)

    def _apply(self, entry: Transaction, status: TransactionStatus, outbox: Outbox) -> Transaction:
        if status is TransactionStatus.COMPLETED:
            wallet = self._ledger.get_wallet(entry.user_id, for_update=True)
            # Pending entries never touched the balance; withdrawals only reserved it.
            self._ledger.save_wallet(replace(wallet, balance=wallet.balance + entry.amount))
            if entry.kind is TransactionKind.DEPOSIT:
                outbox.add(
                    entry.user_id,
                    "wallet_top_up",
                    title="Wallet Topped Up",
                    message=f"{entry.amount} PC has been added to your wallet.",
                    amount=entry.amount,
                )
        entry = replace(entry, status=status)
        self._ledger.save_transaction(entry)
        logger.info("transaction_settled id=%s user=%s status=%s", entry.id, entry.user_id, status.value)
        return entry

    @returns_result
    def reconcile(self, user_id: str) -> Reconciliation:
        with self._ledger.atomic():
            wallet = self._ledger.get_wallet(user_id)
            total = ledger.completed_total(self._ledger, user_id)
        report = Reconciliation(wallet=wallet, ledger_total=total)
        if not report.balanced:
            logger.warning("wallet_out_of_balance user=%s balance=%s ledger=%s", user_id, wallet.balance, total)
        return report

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from seamstress.models import PaymentEntryStatus, PaymentKind, PaymentStatus
from seamstress.services.errors import ReconciliationError
from seamstress.services.snapshots import GarmentSnapshot, PaymentEntry

_PERCENT_QUANT = Decimal('0.01')


@dataclass(frozen=True)
class PaymentSummary:
    total_cents: int
    total_paid: int
    total_refunded: int
    net_paid: int
    amount_due: int
    percentage: Decimal
    payment_status: PaymentStatus


def _validate_entry(entry: PaymentEntry) -> None:
    if entry.refunded_amount_cents < 0:
        raise ReconciliationError(f'Payment {entry.id} has a negative refunded amount')
    if entry.refunded_amount_cents > entry.amount_cents:
        raise ReconciliationError(
            f'Payment {entry.id} refunded {entry.refunded_amount_cents} cents of {entry.amount_cents}'
        )


def _payment_status(total_cents: int, net_paid: int) -> PaymentStatus:
    if net_paid > total_cents:
        return PaymentStatus.OVERPAID
    if net_paid == total_cents and total_cents > 0:
        return PaymentStatus.PAID
    if 0 < net_paid < total_cents:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def _percentage(total_cents: int, net_paid: int) -> Decimal:
    if total_cents <= 0:
        return Decimal('0')
    ratio = Decimal(net_paid) * Decimal('100') / Decimal(total_cents)
    return ratio.quantize(_PERCENT_QUANT, rounding=ROUND_HALF_UP)


def reconcile(total_cents: int, entries: Iterable[PaymentEntry]) -> PaymentSummary:
    if total_cents < 0:
        raise ReconciliationError(f'Order total cannot be negative ({total_cents} cents)')

    total_paid = 0
    total_refunded = 0
    net_paid = 0
    for entry in entries:
        # Refund rows mirror refunded_amount_cents on the original payment.
        if entry.kind == PaymentKind.REFUND:
            continue
        _validate_entry(entry)
        if entry.status != PaymentEntryStatus.COMPLETED:
            continue
        total_paid += entry.amount_cents
        total_refunded += entry.refunded_amount_cents
        net_paid += max(entry.amount_cents - entry.refunded_amount_cents, 0)

    return PaymentSummary(
        total_cents=total_cents,
        total_paid=total_paid,
        total_refunded=total_refunded,
        net_paid=net_paid,
        amount_due=total_cents - net_paid,
        percentage=_percentage(total_cents, net_paid),
        payment_status=_payment_status(total_cents, net_paid),
    )


def clamp_percentage(percentage: Decimal) -> Decimal:
    return min(max(percentage, Decimal('0')), Decimal('100'))


def billable_total_cents(garments: Iterable[GarmentSnapshot]) -> int | None:
    """Sum of the order's non-removed service lines.

    Returns None when no garment carries service lines, in which case the
    stored order total is the only figure available.
    """
    lines = [service for garment in garments if garment.services for service in garment.services]
    if not lines:
        return None
    return sum(service.line_total_cents for service in lines if not service.is_removed)

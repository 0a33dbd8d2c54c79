"""
Money Package

Currency parsing/formatting, installment splitting and transfers.
Everything here is pure arithmetic on integer minor units.
"""

from finboard.money.currency import (
    coerce_amount,
    decimal_to_minor_units,
    ensure_positive_amount,
    format_amount,
    format_plain,
    minor_units_to_decimal,
    parse_amount,
)
from finboard.money.installments import (
    InstallmentPlan,
    installment_dates,
    month_count,
    plan_installments,
    split_installments,
)
from finboard.money.transfer import TransferResult, compute_transfer

__all__ = [
    # Currency
    "coerce_amount",
    "decimal_to_minor_units",
    "ensure_positive_amount",
    "format_amount",
    "format_plain",
    "minor_units_to_decimal",
    "parse_amount",
    # Installments
    "InstallmentPlan",
    "installment_dates",
    "month_count",
    "plan_installments",
    "split_installments",
    # Transfers
    "TransferResult",
    "compute_transfer",
]

"""
Transfer Engine

Moves part of one card's amount into a new card in a target list.

CONSERVATION: remaining source amount + new card amount == original
source amount. A source left with zero is removed, never kept.

The new card is always a realized balance, even when the source was a
projection: money that was actually moved is no longer a plan.

This module only computes the result. Applying it (locally and in the
store) is one atomic step owned by the caller.
"""

from datetime import datetime
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict

from finboard.errors import InsufficientFundsError
from finboard.models.board import Card, ensure_utc, new_identifier, utc_now
from finboard.money.currency import ensure_positive_amount


class TransferResult(BaseModel):
    """Outcome of a transfer: the source after the move and the new card."""
    model_config = ConfigDict(frozen=True)

    source_id: str
    updated_source: Optional[Card]
    new_card: Card

    @property
    def source_removed(self) -> bool:
        return self.updated_source is None


def compute_transfer(
    source: Card,
    amount_minor_units: int,
    target_list_id: str,
    occurred_at: Optional[datetime] = None,
    new_card_id: Optional[str] = None,
    id_factory: Callable[[str], str] = new_identifier,
) -> TransferResult:
    """
    Compute the effect of moving `amount_minor_units` out of `source`.

    Raises:
        InvalidAmountError: amount is not a positive integer
        InsufficientFundsError: amount exceeds the source amount
    """
    amount = ensure_positive_amount(amount_minor_units)
    if amount > source.amount_minor_units:
        raise InsufficientFundsError(
            available=source.amount_minor_units,
            requested=amount,
        )

    remaining = source.amount_minor_units - amount
    updated_source = (
        source.model_copy(update={"amount_minor_units": remaining})
        if remaining > 0
        else None
    )

    new_card = Card(
        id=new_card_id or id_factory("card"),
        list_id=target_list_id,
        amount_minor_units=amount,
        occurred_at=ensure_utc(occurred_at) if occurred_at else utc_now(),
        is_projection=False,
    )

    return TransferResult(
        source_id=source.id,
        updated_source=updated_source,
        new_card=new_card,
    )

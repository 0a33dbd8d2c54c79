"""
Board Totals

Sums of realized balances and planned projections, per list and for the
whole board. Pure integer arithmetic on minor units.
"""

from pydantic import BaseModel, ConfigDict, Field

from finboard.models.board import BoardSnapshot, Card


class ListTotals(BaseModel):
    """Totals for one list."""
    model_config = ConfigDict(frozen=True)

    list_id: str
    title: str
    balance_minor_units: int = Field(default=0, description="Sum of realized cards")
    projection_minor_units: int = Field(default=0, description="Sum of projection cards")
    card_count: int = 0

    @property
    def total_minor_units(self) -> int:
        return self.balance_minor_units + self.projection_minor_units


class BoardSummary(BaseModel):
    """Totals for every list plus the whole board."""
    model_config = ConfigDict(frozen=True)

    lists: tuple[ListTotals, ...] = ()

    @property
    def balance_minor_units(self) -> int:
        return sum(entry.balance_minor_units for entry in self.lists)

    @property
    def projection_minor_units(self) -> int:
        return sum(entry.projection_minor_units for entry in self.lists)

    @property
    def total_minor_units(self) -> int:
        return self.balance_minor_units + self.projection_minor_units

    def for_list(self, list_id: str) -> ListTotals:
        for entry in self.lists:
            if entry.list_id == list_id:
                return entry
        raise KeyError(list_id)


def _list_totals(list_id: str, title: str, cards: list[Card]) -> ListTotals:
    return ListTotals(
        list_id=list_id,
        title=title,
        balance_minor_units=sum(c.amount_minor_units for c in cards if not c.is_projection),
        projection_minor_units=sum(c.amount_minor_units for c in cards if c.is_projection),
        card_count=len(cards),
    )


def summarize(snapshot: BoardSnapshot) -> BoardSummary:
    """
    Totals for a board snapshot, lists in display order.

    Cards whose list is unknown are not counted.
    """
    return BoardSummary(lists=tuple(
        _list_totals(board_list.id, board_list.title, snapshot.cards_for_list(board_list.id))
        for board_list in snapshot.lists
    ))

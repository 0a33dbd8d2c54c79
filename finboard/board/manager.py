"""
Board State Manager

The orchestrator. Owns the canonical board (lists, board order, cards)
and is the only component that mutates it.

EVERY MUTATION FOLLOWS THE SAME TWO PHASES:
1. In fallback mode: apply to local state and return.
2. Otherwise: apply to local state first (the change is visible at once),
   then send it through the persistence adapter.
   - Success: nothing more to do; the store's push confirms it.
   - Store failure: the board drops to fallback for the rest of the
     session, the change is applied again locally, and the outcome
     carries a one-time warning. The user's edit is never lost.
   - Stale rejection (the store no longer has the card): the board
     returns to the last state the store pushed.

Input is validated BEFORE phase 1. Invalid amounts, reversed month
ranges and transfers larger than the source never touch state or the
store.

DESIGN DECISION: Which operations a board accepts is an explicit
capability set given at construction, not something inferred from the
presence of UI controls.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Awaitable, Callable, Iterable, Iterator, Optional, Sequence, Union

import structlog
from pydantic import ValidationError

from finboard.board.totals import BoardSummary, summarize
from finboard.config import BoardSettings, get_settings
from finboard.errors import (
    BoardInputError,
    CapabilityDeniedError,
    InvalidMonthRangeError,
    InvalidTitleError,
)
from finboard.events import BoardLogger
from finboard.models.board import (
    ALL_CAPABILITIES,
    BoardCapability,
    BoardList,
    BoardMode,
    BoardSnapshot,
    Card,
    CardUpdate,
    DragKind,
    OperationOutcome,
    ensure_utc,
    new_identifier,
    utc_now,
)
from finboard.money.currency import coerce_amount
from finboard.money.installments import InstallmentPlan, month_count, plan_installments
from finboard.money.transfer import compute_transfer
from finboard.ordering.board_order import order_lists, reconcile_board_order
from finboard.ordering.drag import (
    IDLE,
    ClearPreview,
    CommitBoardOrder,
    DragCancel,
    DragEffect,
    DragEnd,
    DragOver,
    DragStart,
    DragState,
    PreviewBoardOrder,
    PreviewCardOrder,
    ReassignCard,
    RestoreLastSnapshot,
    transition,
)
from finboard.services.persistence import PersistenceAdapter, PersistenceFallbackError
from finboard.services.storage import (
    BoardStoreInterface,
    GoogleSheetsBoardStore,
    GoogleSheetsClient,
    NotFoundError,
)


FALLBACK_WARNING = (
    "Remote storage is unavailable. Changes are kept for this session only."
)

MAX_TITLE_LENGTH = 200

Amount = Union[int, str]


class BoardStateManager:
    """
    Canonical board state plus every operation the UI can request.

    Usage:
        async with BoardStateManager(store) as board:
            outcome = await board.add_card("investment1", "1.234,56")
            if outcome.warning:
                show_banner(outcome.warning)
    """

    def __init__(
        self,
        store: Optional[BoardStoreInterface] = None,
        capabilities: Iterable[BoardCapability] = ALL_CAPABILITIES,
        settings: Optional[BoardSettings] = None,
        board_logger: Optional[BoardLogger] = None,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[str], str] = new_identifier,
    ):
        """
        Initialize the manager.

        Args:
            store: Remote board store. None means the board runs locally
                   from the start (fallback mode on connect).
            capabilities: Operations this board accepts.
            settings: Board settings (defaults to the environment).
            board_logger: Structured logger for board events.
            clock: Source of "now" for new cards and drag reassignments.
            id_factory: Generates list and card ids from a prefix.
        """
        self._settings = settings or get_settings().board
        self._logger = board_logger or BoardLogger()
        self._capabilities = frozenset(capabilities)
        self._clock = clock
        self._id_factory = id_factory

        self._adapter = PersistenceAdapter(
            store,
            on_fallback=self._on_fallback,
            board_logger=self._logger,
        )
        self._mode = BoardMode.DISCONNECTED
        self._closed = False

        # Canonical state; dicts keep arrival order
        self._lists: dict[str, BoardList] = {}
        self._board_order: list[str] = []
        self._cards: dict[str, Card] = {}
        self._last_pushed: Optional[BoardSnapshot] = None

        # Drag gesture and its previews (never persisted)
        self._drag_state: DragState = IDLE
        self._board_order_preview: Optional[tuple[str, ...]] = None
        self._card_previews: dict[str, tuple[str, ...]] = {}

        self._warnings: list[str] = []

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> OperationOutcome:
        """
        Subscribe to the store, or drop to fallback mode if that fails.

        Returns:
            Outcome with persisted=True when the board is remote-backed,
            or a warning when it starts in fallback mode.
        """
        if self._mode != BoardMode.DISCONNECTED or self._closed:
            raise RuntimeError("Board has already been connected")

        subscribed = await self._adapter.subscribe(self._on_snapshot)
        if subscribed and not self._adapter.is_fallback:
            self._mode = BoardMode.REMOTE

        self._logger.log_connected(self._mode.value, len(self._lists), len(self._cards))
        return OperationOutcome(
            operation="connect",
            persisted=self._mode == BoardMode.REMOTE,
            warning=None if self._mode == BoardMode.REMOTE else self._take_warning(),
        )

    def teardown(self) -> None:
        """Release the store subscription. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._drag_state = IDLE
        self._clear_previews()
        try:
            self._adapter.close()
        finally:
            self._logger.log_torn_down(self._mode.value)

    async def __aenter__(self) -> "BoardStateManager":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.teardown()

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    @property
    def mode(self) -> BoardMode:
        return self._mode

    @property
    def is_fallback(self) -> bool:
        return self._mode == BoardMode.FALLBACK

    @property
    def capabilities(self) -> frozenset:
        return self._capabilities

    @property
    def drag_state(self) -> DragState:
        return self._drag_state

    def snapshot(self) -> BoardSnapshot:
        """The committed board, without drag previews."""
        return BoardSnapshot(
            lists=tuple(order_lists(self._lists.values(), self._board_order)),
            board_order=tuple(reconcile_board_order(self._lists, self._board_order)),
            cards=tuple(self._cards.values()),
        )

    @property
    def display_order(self) -> list[str]:
        """List ids as currently shown, including a list drag preview."""
        order = self._board_order_preview
        if order is None:
            order = tuple(self._board_order)
        return reconcile_board_order(self._lists, order)

    @property
    def lists(self) -> list[BoardList]:
        return [self._lists[list_id] for list_id in self.display_order]

    def cards_for_list(self, list_id: str) -> list[Card]:
        """Cards of one list as currently shown, including a card drag preview."""
        cards = self.snapshot().cards_for_list(list_id)
        preview = self._card_previews.get(list_id)
        if not preview:
            return cards

        by_id = {card.id: card for card in cards}
        shown = [by_id[card_id] for card_id in preview if card_id in by_id]
        placed = {card.id for card in shown}
        return shown + [card for card in cards if card.id not in placed]

    def summary(self) -> BoardSummary:
        return summarize(self.snapshot())

    def pop_warnings(self) -> list[str]:
        """Warnings not yet returned in an operation outcome."""
        warnings, self._warnings = self._warnings, []
        return warnings

    # -------------------------------------------------------------------------
    # Lists
    # -------------------------------------------------------------------------

    async def add_list(self, title: str) -> OperationOutcome:
        """
        Add a list at the end of the board.

        Raises:
            InvalidTitleError: title is blank or too long
        """
        operation = "add_list"
        self._require(BoardCapability.ADD_LIST, operation)
        with self._validating(operation):
            title = (title or "").strip()
            if not title:
                raise InvalidTitleError("List title is required")
            if len(title) > MAX_TITLE_LENGTH:
                raise InvalidTitleError(
                    f"List title is longer than {MAX_TITLE_LENGTH} characters"
                )

        board_list = BoardList(id=self._id_factory("list"), title=title)

        def apply() -> None:
            self._lists[board_list.id] = board_list
            if board_list.id not in self._board_order:
                self._board_order.append(board_list.id)

        return await self._dispatch(
            operation,
            "list",
            board_list.id,
            apply,
            lambda: self._adapter.create_list(board_list.title, board_list.id),
        )

    async def remove_list(self, list_id: str) -> OperationOutcome:
        """Remove a list together with all of its cards."""
        operation = "remove_list"
        self._require(BoardCapability.REMOVE_LIST, operation)
        if list_id not in self._lists:
            return self._ignored(operation, "list", list_id)

        def apply() -> None:
            self._lists.pop(list_id, None)
            self._cards = {k: c for k, c in self._cards.items() if c.list_id != list_id}
            self._board_order = [x for x in self._board_order if x != list_id]
            self._card_previews.pop(list_id, None)

        return await self._dispatch(
            operation,
            "list",
            list_id,
            apply,
            lambda: self._adapter.delete_list(list_id),
        )

    async def set_board_order(self, order: Sequence[str]) -> OperationOutcome:
        """
        Persist a new list order.

        Unknown ids are dropped and known lists missing from `order`
        are appended, so the stored order always covers the whole board.
        """
        operation = "set_board_order"
        self._require(BoardCapability.REORDER_LISTS, operation)
        reconciled = reconcile_board_order(self._lists, order)

        def apply() -> None:
            self._board_order = list(reconciled)

        return await self._dispatch(
            operation,
            "board",
            None,
            apply,
            lambda: self._adapter.set_board_order(reconciled),
        )

    # -------------------------------------------------------------------------
    # Cards
    # -------------------------------------------------------------------------

    async def add_card(
        self,
        list_id: str,
        amount: Amount,
        occurred_at: Optional[datetime] = None,
        is_projection: bool = False,
    ) -> OperationOutcome:
        """
        Add a card to a list.

        Args:
            amount: Minor units, or amount text as typed ("1.234,56")
            occurred_at: Defaults to now

        Raises:
            AmountParseError / InvalidAmountError: amount is not a positive amount
        """
        operation = "add_card"
        self._require(BoardCapability.ADD_CARD, operation)
        with self._validating(operation):
            amount_minor_units = coerce_amount(amount)

        if list_id not in self._lists:
            return self._ignored(operation, "list", list_id)

        card = Card(
            id=self._id_factory("card"),
            list_id=list_id,
            amount_minor_units=amount_minor_units,
            occurred_at=ensure_utc(occurred_at) if occurred_at else self._clock(),
            is_projection=is_projection,
        )

        def apply() -> None:
            self._cards[card.id] = card

        return await self._dispatch(
            operation,
            "card",
            card.id,
            apply,
            lambda: self._adapter.create_card(card),
        )

    async def remove_card(self, card_id: str) -> OperationOutcome:
        operation = "remove_card"
        self._require(BoardCapability.REMOVE_CARD, operation)
        if card_id not in self._cards:
            return self._ignored(operation, "card", card_id)

        def apply() -> None:
            self._cards.pop(card_id, None)

        return await self._dispatch(
            operation,
            "card",
            card_id,
            apply,
            lambda: self._adapter.delete_card(card_id),
        )

    async def edit_card(
        self,
        card_id: str,
        amount: Optional[Amount] = None,
        occurred_at: Optional[datetime] = None,
    ) -> OperationOutcome:
        """
        Change a card's amount and/or timestamp.

        The new amount must be positive; removing a card is remove_card.
        """
        operation = "edit_card"
        self._require(BoardCapability.EDIT_CARD, operation)
        changes: dict = {}
        with self._validating(operation):
            if amount is not None:
                changes["amount_minor_units"] = coerce_amount(amount)
        if occurred_at is not None:
            changes["occurred_at"] = occurred_at

        if card_id not in self._cards or not changes:
            return self._ignored(operation, "card", card_id)
        return await self._update_card(operation, card_id, CardUpdate(**changes))

    async def toggle_projection(self, card_id: str) -> OperationOutcome:
        """Flip a card between projection and realized balance."""
        operation = "toggle_projection"
        self._require(BoardCapability.EDIT_CARD, operation)
        card = self._cards.get(card_id)
        if card is None:
            return self._ignored(operation, "card", card_id)
        return await self._update_card(
            operation,
            card_id,
            CardUpdate(is_projection=not card.is_projection),
        )

    async def move_card(
        self,
        card_id: str,
        target_list_id: str,
        occurred_at: Optional[datetime] = None,
    ) -> OperationOutcome:
        """
        Reassign a card to another list.

        The card gets a fresh timestamp (default now) so it shows first
        in its new list.
        """
        operation = "move_card"
        self._require(BoardCapability.MOVE_CARDS, operation)
        if card_id not in self._cards:
            return self._ignored(operation, "card", card_id)
        if target_list_id not in self._lists:
            return self._ignored(operation, "list", target_list_id)

        return await self._update_card(
            operation,
            card_id,
            CardUpdate(list_id=target_list_id, occurred_at=occurred_at or self._clock()),
        )

    async def _update_card(
        self,
        operation: str,
        card_id: str,
        update: CardUpdate,
    ) -> OperationOutcome:
        def apply() -> None:
            card = self._cards.get(card_id)
            if card is not None:
                self._cards[card_id] = update.apply_to(card)

        return await self._dispatch(
            operation,
            "card",
            card_id,
            apply,
            lambda: self._adapter.update_card(card_id, update.changes()),
        )

    # -------------------------------------------------------------------------
    # Money operations
    # -------------------------------------------------------------------------

    async def transfer(
        self,
        source_id: str,
        amount: Amount,
        target_list_id: str,
        occurred_at: Optional[datetime] = None,
    ) -> OperationOutcome:
        """
        Move part of a card's amount into a new realized card in another list.

        Source and new card change together, locally and in the store.
        A source left at zero is removed.

        Raises:
            InvalidAmountError: amount is not positive
            InsufficientFundsError: amount exceeds the source card
        """
        operation = "transfer"
        self._require(BoardCapability.TRANSFER, operation)
        with self._validating(operation):
            amount_minor_units = coerce_amount(amount)

        source = self._cards.get(source_id)
        if source is None:
            return self._ignored(operation, "card", source_id)
        if target_list_id not in self._lists:
            return self._ignored(operation, "list", target_list_id)

        with self._validating(operation):
            result = compute_transfer(
                source,
                amount_minor_units,
                target_list_id,
                occurred_at=occurred_at or self._clock(),
                id_factory=self._id_factory,
            )
        new_card = result.new_card

        def apply() -> None:
            if result.updated_source is None:
                self._cards.pop(source_id, None)
            else:
                self._cards[source_id] = result.updated_source
            self._cards[new_card.id] = new_card

        return await self._dispatch(
            operation,
            "card",
            new_card.id,
            apply,
            lambda: self._adapter.transfer_card(
                source_id,
                amount_minor_units,
                target_list_id,
                new_card.occurred_at,
                new_card.id,
            ),
            entity_ids=(source_id, new_card.id),
        )

    async def generate_installments(
        self,
        list_id: str,
        total: Amount,
        start_year: int,
        start_month: int,
        end_year: int,
        end_month: int,
        day_of_month: Optional[int] = None,
    ) -> OperationOutcome:
        """
        Spread a total over an inclusive month range as projection cards.

        All cards are created in one store call.

        Raises:
            InvalidMonthRangeError: the range is empty, reversed or not a real month
            InvalidAmountError: the total is not positive or too small to split
        """
        operation = "generate_installments"
        self._require(BoardCapability.INSTALLMENTS, operation)
        with self._validating(operation):
            total_minor_units = coerce_amount(total)
            if month_count(start_year, start_month, end_year, end_month) < 1:
                raise InvalidMonthRangeError(
                    f"End month {end_year}-{end_month:02d} is before "
                    f"start month {start_year}-{start_month:02d}"
                )
            try:
                plan = InstallmentPlan(
                    list_id=list_id,
                    total_minor_units=total_minor_units,
                    start_year=start_year,
                    start_month=start_month,
                    end_year=end_year,
                    end_month=end_month,
                    day_of_month=(
                        self._settings.installment_day_of_month
                        if day_of_month is None
                        else day_of_month
                    ),
                )
            except ValidationError as e:
                raise InvalidMonthRangeError(f"Invalid installment range: {e}") from e

            if list_id not in self._lists:
                return self._ignored(operation, "list", list_id)

            cards = plan_installments(
                plan,
                id_factory=self._id_factory,
                time_of_day=self._settings.installment_time,
            )

        def apply() -> None:
            for card in cards:
                self._cards[card.id] = card

        return await self._dispatch(
            operation,
            "card",
            None,
            apply,
            lambda: self._adapter.create_cards(cards),
            entity_ids=tuple(card.id for card in cards),
        )

    # -------------------------------------------------------------------------
    # Drag and drop
    # -------------------------------------------------------------------------

    def drag_start(self, kind: DragKind, active_id: str) -> bool:
        """
        Begin a drag gesture.

        Returns:
            True if a gesture is now in progress
        """
        capability = (
            BoardCapability.REORDER_LISTS if kind == DragKind.LIST else BoardCapability.MOVE_CARDS
        )
        self._require(capability, "drag_start")

        result = transition(
            self._drag_state,
            DragStart(kind=kind, active_id=active_id),
            self.snapshot(),
            self._clock(),
        )
        started = result.state.is_dragging and not self._drag_state.is_dragging
        self._drag_state = result.state
        if started:
            self._logger.log_drag_started(kind.value, active_id)
        return result.state.is_dragging

    async def drag_over(self, over_kind: DragKind, over_id: str) -> list[OperationOutcome]:
        """
        The dragged item is now over another list or card.

        Returns:
            Outcomes of any edits committed by this step (a card moved
            to another list)
        """
        result = transition(
            self._drag_state,
            DragOver(over_kind=over_kind, over_id=over_id),
            self.snapshot(),
            self._clock(),
        )
        self._drag_state = result.state
        return await self._apply_effects(result.effects)

    async def drag_end(
        self,
        over_kind: Optional[DragKind] = None,
        over_id: Optional[str] = None,
    ) -> list[OperationOutcome]:
        """Drop the dragged item. A list drag commits the final order."""
        previous = self._drag_state
        result = transition(
            previous,
            DragEnd(over_kind=over_kind, over_id=over_id),
            self.snapshot(),
            self._clock(),
        )
        self._drag_state = result.state
        outcomes = await self._apply_effects(result.effects)

        if previous.is_dragging:
            committed = any(isinstance(e, (CommitBoardOrder, ReassignCard)) for e in result.effects)
            self._logger.log_drag_ended(previous.kind.value, previous.active_id, committed)
        return outcomes

    def drag_cancel(self) -> None:
        """Abandon the gesture. Previews are dropped; moves already made stay."""
        previous = self._drag_state
        result = transition(previous, DragCancel(), self.snapshot(), self._clock())
        self._drag_state = result.state
        for effect in result.effects:
            if isinstance(effect, RestoreLastSnapshot):
                self._restore_last_snapshot()

        if previous.is_dragging:
            self._logger.log_drag_cancelled(previous.kind.value, previous.active_id)

    async def _apply_effects(self, effects: Sequence[DragEffect]) -> list[OperationOutcome]:
        outcomes = []
        for effect in effects:
            if isinstance(effect, PreviewBoardOrder):
                self._board_order_preview = effect.order
            elif isinstance(effect, PreviewCardOrder):
                self._card_previews[effect.list_id] = effect.card_ids
            elif isinstance(effect, ReassignCard):
                self._card_previews.clear()
                outcomes.append(await self.move_card(
                    effect.card_id,
                    effect.target_list_id,
                    occurred_at=effect.occurred_at,
                ))
            elif isinstance(effect, CommitBoardOrder):
                outcomes.append(await self.set_board_order(effect.order))
            elif isinstance(effect, ClearPreview):
                self._clear_previews()
            elif isinstance(effect, RestoreLastSnapshot):
                self._restore_last_snapshot()
        return outcomes

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    async def _dispatch(
        self,
        operation: str,
        entity_type: str,
        entity_id: Optional[str],
        apply: Callable[[], None],
        persist: Callable[[], Awaitable[object]],
        entity_ids: tuple[str, ...] = (),
    ) -> OperationOutcome:
        """
        Apply a mutation locally, then persist it unless in fallback mode.

        `apply` must be idempotent: it runs a second time after a store
        failure, against whatever state the board holds by then.
        """
        self._require_connected(operation)
        apply()

        if self._adapter.is_fallback:
            self._logger.log_operation(operation, entity_type, entity_id, persisted=False)
            return OperationOutcome(
                operation=operation,
                entity_id=entity_id,
                entity_ids=entity_ids,
            )

        try:
            await persist()
        except PersistenceFallbackError:
            apply()
            self._prune_orphan_cards()
            self._logger.log_operation(operation, entity_type, entity_id, persisted=False)
            return OperationOutcome(
                operation=operation,
                entity_id=entity_id,
                entity_ids=entity_ids,
                warning=self._take_warning(),
            )
        except (NotFoundError, BoardInputError) as e:
            # The store's view wins; drop the optimistic change
            self._logger.log_remote_rejected(operation, e)
            self._restore_last_snapshot()
            return OperationOutcome(
                operation=operation,
                applied=False,
                entity_id=entity_id,
                entity_ids=entity_ids,
            )

        self._logger.log_operation(operation, entity_type, entity_id, persisted=True)
        return OperationOutcome(
            operation=operation,
            persisted=True,
            entity_id=entity_id,
            entity_ids=entity_ids,
        )

    def _require_connected(self, operation: str) -> None:
        if self._closed:
            raise RuntimeError(f"Cannot {operation}: board has been torn down")
        if self._mode == BoardMode.DISCONNECTED:
            raise RuntimeError(f"Cannot {operation}: board is not connected")

    def _require(self, capability: BoardCapability, operation: str) -> None:
        if capability not in self._capabilities:
            error = CapabilityDeniedError(capability.value)
            self._logger.log_input_rejected(operation, error)
            raise error

    @contextmanager
    def _validating(self, operation: str) -> Iterator[None]:
        """Log rejected input, then let the error reach the caller."""
        try:
            yield
        except BoardInputError as e:
            self._logger.log_input_rejected(operation, e)
            raise

    def _ignored(self, operation: str, entity_type: str, entity_id: Optional[str]) -> OperationOutcome:
        self._logger.log_ignored(operation, entity_type, entity_id)
        return OperationOutcome(operation=operation, applied=False, entity_id=entity_id)

    # -------------------------------------------------------------------------
    # Store pushes and fallback
    # -------------------------------------------------------------------------

    def _on_snapshot(self, snapshot: BoardSnapshot) -> None:
        """A pushed snapshot replaces local state; a list drag preview survives it."""
        self._last_pushed = snapshot
        self._replace_state(snapshot)
        self._logger.log_snapshot_received(len(snapshot.lists), len(snapshot.cards))

    def _on_fallback(self, trigger: str, error: Optional[BaseException]) -> None:
        self._mode = BoardMode.FALLBACK
        self._seed_default_lists()
        self._prune_orphan_cards()
        self._warnings.append(FALLBACK_WARNING)

    def _take_warning(self) -> Optional[str]:
        return self._warnings.pop(0) if self._warnings else None

    def _replace_state(self, snapshot: BoardSnapshot) -> None:
        self._lists = {board_list.id: board_list for board_list in snapshot.lists}
        self._board_order = list(snapshot.board_order)
        self._cards = {card.id: card for card in snapshot.cards}

    def _restore_last_snapshot(self) -> None:
        self._clear_previews()
        if self._mode == BoardMode.REMOTE and self._last_pushed is not None:
            self._replace_state(self._last_pushed)

    def _clear_previews(self) -> None:
        self._board_order_preview = None
        self._card_previews = {}

    def _seed_default_lists(self) -> None:
        if self._lists:
            return
        for list_id, title in self._settings.default_lists:
            self._lists[list_id] = BoardList(id=list_id, title=title)
        self._board_order = reconcile_board_order(self._lists, self._board_order)
        self._logger.log_defaults_seeded(list(self._lists))

    def _prune_orphan_cards(self) -> None:
        # Local state is authoritative now; every card must have a list
        self._cards = {k: c for k, c in self._cards.items() if c.list_id in self._lists}


def create_board_manager(
    use_remote: bool = True,
    capabilities: Iterable[BoardCapability] = ALL_CAPABILITIES,
    board_name: Optional[str] = None,
) -> BoardStateManager:
    """
    Factory function to create a board manager.

    Args:
        use_remote: Whether to back the board with Google Sheets.
                    Set to False to run the board locally.
        capabilities: Operations the board accepts.
        board_name: Name bound to every log line of this board.

    Returns:
        An unconnected manager; call connect() or use it as an async
        context manager.
    """
    board_logger = BoardLogger(board_name)
    store = None

    if use_remote:
        try:
            store = GoogleSheetsBoardStore(GoogleSheetsClient())
        except Exception as e:
            # Remote store not configured - the board starts in fallback mode
            structlog.get_logger("finboard").warning(
                "remote_store_not_configured",
                board=board_name or "default",
                error=str(e),
            )
            store = None

    return BoardStateManager(
        store=store,
        capabilities=capabilities,
        board_logger=board_logger,
    )

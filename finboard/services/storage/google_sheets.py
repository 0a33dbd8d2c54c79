"""
Google Sheets Board Store

DESIGN DECISION: Google Sheets is used as the remote, shared store because:
1. Several devices (or people) can open the same board
2. No database setup required
3. Non-technical users can inspect their board directly in Sheets
4. Built-in backup (Google's infrastructure)

TRADEOFFS:
- No push notifications: subscriptions poll the spreadsheet
- No transactions: every write re-reads the board, applies the change in
  Python and writes all three sheets back in ONE values_batch_update
  request, so a transfer can never be half applied
- Last write wins between clients

The implementation follows the abstract interface, so it can be swapped
without changing the board manager.
"""

import asyncio
from datetime import datetime
from typing import Callable, Optional, Sequence, TypeVar

import gspread
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finboard.config import GoogleSheetsSettings, get_settings
from finboard.errors import BoardInputError
from finboard.models.board import BoardList, Card, ensure_utc, new_identifier
from finboard.money.transfer import compute_transfer
from finboard.services.storage.interface import (
    BoardStoreInterface,
    ChangeCallback,
    ConnectionError,
    ErrorCallback,
    NotFoundError,
    StorageError,
    SubscriptionError,
    Unsubscribe,
)


T = TypeVar("T")

# Column mappings for each sheet
LIST_COLUMNS = ["id", "title"]
ORDER_COLUMNS = ["list_id"]
CARD_COLUMNS = [
    "id",
    "list_id",
    "amount_minor_units",
    "occurred_at",
    "is_projection",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and whole-board reads and writes.
    Each read is one values_batch_get request and each write is one
    values_batch_update request.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets
        self._worksheets_ready = False

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @property
    def sheet_columns(self) -> dict[str, list[str]]:
        """Sheet name -> header row, in read/write order."""
        return {
            self._settings.lists_sheet_name: LIST_COLUMNS,
            self._settings.order_sheet_name: ORDER_COLUMNS,
            self._settings.cards_sheet_name: CARD_COLUMNS,
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError as e:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                ) from e
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}") from e

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound as e:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                ) from e
        return self._spreadsheet

    def ensure_worksheets(self) -> None:
        """Create any missing board sheet, with its header row."""
        if self._worksheets_ready:
            return
        spreadsheet = self.get_spreadsheet()
        for name, columns in self.sheet_columns.items():
            try:
                spreadsheet.worksheet(name)
            except gspread.WorksheetNotFound:
                sheet = spreadsheet.add_worksheet(
                    title=name,
                    rows=1000,
                    cols=len(columns),
                )
                sheet.append_row(columns)
        self._worksheets_ready = True

    def read_tables(self) -> dict[str, list[list[str]]]:
        """Read every board sheet in one request. Header rows are dropped."""
        self.ensure_worksheets()
        names = list(self.sheet_columns)
        response = self.get_spreadsheet().values_batch_get(
            [f"'{name}'!A:E" for name in names]
        )
        value_ranges = response.get("valueRanges", [])

        tables = {}
        for index, name in enumerate(names):
            rows = value_ranges[index].get("values", []) if index < len(value_ranges) else []
            tables[name] = rows[1:]
        return tables

    def write_tables(self, tables: dict[str, tuple[list[list[str]], int]]) -> None:
        """
        Overwrite every board sheet in one request.

        Args:
            tables: sheet name -> (rows without header, row count before the write).
                    Rows that existed before but not now are blanked.
        """
        data = []
        for name, (rows, previous_count) in tables.items():
            columns = self.sheet_columns[name]
            blank = [""] * len(columns)
            padding = [blank] * max(0, previous_count - len(rows))
            data.append({
                "range": f"'{name}'!A1",
                "values": [columns] + rows + padding,
            })

        self.get_spreadsheet().values_batch_update({
            "valueInputOption": "RAW",
            "data": data,
        })


class _BoardTables:
    """The whole board as read from (and written back to) the spreadsheet."""

    def __init__(
        self,
        lists: dict[str, BoardList],
        board_order: Optional[list[str]],
        cards: dict[str, Card],
        row_counts: dict[str, int],
        skipped_rows: Optional[dict[str, list[list[str]]]] = None,
    ):
        self.lists = lists
        self.board_order = board_order
        self.cards = cards
        self.row_counts = row_counts
        # Rows that could not be parsed, written back untouched
        self.skipped_rows = skipped_rows or {}

    @classmethod
    def from_rows(
        cls,
        raw: dict[str, list[list[str]]],
        settings: GoogleSheetsSettings,
    ) -> "_BoardTables":
        list_rows = raw.get(settings.lists_sheet_name, [])
        order_rows = raw.get(settings.order_sheet_name, [])
        card_rows = raw.get(settings.cards_sheet_name, [])

        skipped_lists = []
        lists = {}
        for row in list_rows:
            if not any(row):
                continue  # Skip blank rows
            try:
                board_list = BoardList(id=row[0], title=row[1])
            except (IndexError, ValidationError):
                skipped_lists.append(row)
                continue
            lists[board_list.id] = board_list

        order = [row[0] for row in order_rows if row and row[0]]

        skipped_cards = []
        cards = {}
        for row in card_rows:
            if not any(row):
                continue
            try:
                card = _row_to_card(row)
            except (ValueError, IndexError, ValidationError):
                skipped_cards.append(row)
                continue
            cards[card.id] = card

        return cls(
            lists=lists,
            board_order=order or None,
            cards=cards,
            row_counts={
                settings.lists_sheet_name: len(list_rows),
                settings.order_sheet_name: len(order_rows),
                settings.cards_sheet_name: len(card_rows),
            },
            skipped_rows={
                settings.lists_sheet_name: skipped_lists,
                settings.cards_sheet_name: skipped_cards,
            },
        )

    def to_rows(self, settings: GoogleSheetsSettings) -> dict[str, tuple[list[list[str]], int]]:
        return {
            settings.lists_sheet_name: (
                [[l.id, l.title] for l in self.lists.values()]
                + self._kept(settings.lists_sheet_name, len(LIST_COLUMNS)),
                self.row_counts.get(settings.lists_sheet_name, 0),
            ),
            settings.order_sheet_name: (
                [[list_id] for list_id in self.board_order or []],
                self.row_counts.get(settings.order_sheet_name, 0),
            ),
            settings.cards_sheet_name: (
                [_card_to_row(c) for c in self.cards.values()]
                + self._kept(settings.cards_sheet_name, len(CARD_COLUMNS)),
                self.row_counts.get(settings.cards_sheet_name, 0),
            ),
        }

    def _kept(self, sheet_name: str, width: int) -> list[list[str]]:
        """Unparsed rows, padded so they fully overwrite whatever row they land on."""
        return [
            list(row) + [""] * (width - len(row))
            for row in self.skipped_rows.get(sheet_name, [])
        ]

    def parts(self) -> tuple[list[BoardList], Optional[list[str]], list[Card]]:
        order = list(self.board_order) if self.board_order is not None else None
        return list(self.lists.values()), order, list(self.cards.values())

    def fingerprint(self) -> tuple:
        return (
            tuple(self.lists.values()),
            tuple(self.board_order or ()),
            tuple(self.cards.values()),
        )


def _card_to_row(card: Card) -> list[str]:
    """Convert a Card to a spreadsheet row."""
    return [
        card.id,
        card.list_id,
        str(card.amount_minor_units),
        card.occurred_at.isoformat(),
        "TRUE" if card.is_projection else "FALSE",
    ]


def _row_to_card(row: list[str]) -> Card:
    """Convert a spreadsheet row to a Card."""
    return Card(
        id=row[0],
        list_id=row[1],
        amount_minor_units=int(row[2]),
        occurred_at=datetime.fromisoformat(row[3]),
        is_projection=len(row) > 4 and row[4].strip().lower() == "true",
    )


class GoogleSheetsBoardStore(BoardStoreInterface):
    """
    Google Sheets implementation of the board store.

    Lists, board order and cards live in three sheets of one spreadsheet.
    Writes are serialized within this process; each one is a single
    read-modify-write of the whole board, retried on transient failure.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        id_factory: Callable[[str], str] = new_identifier,
    ):
        self._client = client or GoogleSheetsClient()
        self._settings = self._client.settings
        self._id_factory = id_factory
        self._subscribers: list[ChangeCallback] = []
        self._fingerprint: Optional[tuple] = None
        self._write_lock = asyncio.Lock()

    async def _load(self) -> _BoardTables:
        try:
            raw = await asyncio.to_thread(self._client.read_tables)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read board: {e}") from e
        return _BoardTables.from_rows(raw, self._settings)

    async def _write(self, tables: _BoardTables) -> None:
        try:
            await asyncio.to_thread(self._client.write_tables, tables.to_rows(self._settings))
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write board: {e}") from e

    async def _commit(self, mutate: Callable[[_BoardTables], T]) -> T:
        """
        Read the board, apply `mutate`, write the board back in one request.

        Transient storage failures are retried. Stale-reference and
        input errors raised by `mutate` are not.
        """
        async with self._write_lock:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._settings.retry_attempts),
                wait=wait_exponential(multiplier=1, min=2, max=10),
                retry=retry_if_not_exception_type((NotFoundError, BoardInputError)),
                reraise=True,
            ):
                with attempt:
                    tables = await self._load()
                    result = mutate(tables)
                    await self._write(tables)
            self._notify(tables)
            return result

    def _notify(self, tables: _BoardTables) -> None:
        self._fingerprint = tables.fingerprint()
        for subscriber in list(self._subscribers):
            subscriber(*tables.parts())

    # -------------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------------

    async def subscribe_all(
        self,
        on_change: ChangeCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        """Push the current board, then poll for changes made elsewhere."""
        try:
            tables = await self._load()
        except StorageError as e:
            raise SubscriptionError(f"Failed to subscribe to board: {e}") from e

        self._subscribers.append(on_change)
        self._fingerprint = tables.fingerprint()
        on_change(*tables.parts())

        task = asyncio.create_task(self._poll(on_change, on_error))

        def unsubscribe() -> None:
            if on_change in self._subscribers:
                self._subscribers.remove(on_change)
            task.cancel()

        return unsubscribe

    async def _poll(self, on_change: ChangeCallback, on_error: Optional[ErrorCallback]) -> None:
        while True:
            await asyncio.sleep(self._settings.poll_interval_seconds)
            try:
                tables = await self._load()
                if tables.fingerprint() != self._fingerprint:
                    self._notify(tables)
            except StorageError as e:
                self._end_subscription(on_change, on_error, e)
                return
            except Exception as e:
                error = SubscriptionError(f"Board change could not be delivered: {e}")
                error.__cause__ = e
                self._end_subscription(on_change, on_error, error)
                return

    def _end_subscription(
        self,
        on_change: ChangeCallback,
        on_error: Optional[ErrorCallback],
        error: Exception,
    ) -> None:
        if on_change in self._subscribers:
            self._subscribers.remove(on_change)
        if on_error:
            on_error(error)

    # -------------------------------------------------------------------------
    # Lists and order
    # -------------------------------------------------------------------------

    async def create_list(self, title: str, list_id: Optional[str] = None) -> str:
        list_id = list_id or self._id_factory("list")

        def mutate(tables: _BoardTables) -> str:
            tables.lists[list_id] = BoardList(id=list_id, title=title)
            order = tables.board_order or []
            if list_id not in order:
                order.append(list_id)
            tables.board_order = order
            return list_id

        return await self._commit(mutate)

    async def delete_list(self, list_id: str) -> None:
        def mutate(tables: _BoardTables) -> None:
            tables.lists.pop(list_id, None)
            tables.cards = {k: c for k, c in tables.cards.items() if c.list_id != list_id}
            tables.board_order = [x for x in tables.board_order or [] if x != list_id]

        await self._commit(mutate)

    async def set_board_order(self, order: Sequence[str]) -> None:
        def mutate(tables: _BoardTables) -> None:
            tables.board_order = list(order)

        await self._commit(mutate)

    # -------------------------------------------------------------------------
    # Cards
    # -------------------------------------------------------------------------

    async def create_card(
        self,
        list_id: str,
        amount_minor_units: int,
        occurred_at: datetime,
        is_projection: bool,
        card_id: Optional[str] = None,
    ) -> str:
        card = Card(
            id=card_id or self._id_factory("card"),
            list_id=list_id,
            amount_minor_units=amount_minor_units,
            occurred_at=occurred_at,
            is_projection=is_projection,
        )

        def mutate(tables: _BoardTables) -> str:
            tables.cards[card.id] = card
            return card.id

        return await self._commit(mutate)

    async def create_cards(self, cards: Sequence[Card]) -> list[str]:
        def mutate(tables: _BoardTables) -> list[str]:
            for card in cards:
                tables.cards[card.id] = card
            return [card.id for card in cards]

        return await self._commit(mutate)

    async def delete_card(self, card_id: str) -> None:
        def mutate(tables: _BoardTables) -> None:
            tables.cards.pop(card_id, None)

        await self._commit(mutate)

    async def update_card(self, card_id: str, fields: dict) -> None:
        updates = dict(fields)
        if "occurred_at" in updates:
            updates["occurred_at"] = ensure_utc(updates["occurred_at"])

        def mutate(tables: _BoardTables) -> None:
            card = tables.cards.get(card_id)
            if card is not None:
                tables.cards[card_id] = card.model_copy(update=updates)

        await self._commit(mutate)

    async def transfer_card(
        self,
        source_id: str,
        amount_minor_units: int,
        target_list_id: str,
        occurred_at: datetime,
        new_card_id: Optional[str] = None,
    ) -> str:
        new_card_id = new_card_id or self._id_factory("card")

        def mutate(tables: _BoardTables) -> str:
            source = tables.cards.get(source_id)
            if source is None:
                raise NotFoundError(f"Source card not found: {source_id}")

            result = compute_transfer(
                source,
                amount_minor_units,
                target_list_id,
                occurred_at=occurred_at,
                new_card_id=new_card_id,
            )
            if result.updated_source is None:
                del tables.cards[source_id]
            else:
                tables.cards[source_id] = result.updated_source
            tables.cards[result.new_card.id] = result.new_card
            return result.new_card.id

        return await self._commit(mutate)

"""
Application service: merges the live price stream into per-symbol state and a
bounded history log, and keeps the live-update channel connected.

Depends only on Domain ports and entities; no infrastructure imports.

Connection lifecycle is an explicit state machine:

    IDLE -> CONNECTING -> OPEN -> RECONNECTING -> CONNECTING -> ...
    any state -> CLOSED  (close(); terminal)

Every close or error of the channel ends in the same recovery path: one
reconnection timer, a flat delay later, with unbounded retries.
"""

import asyncio
import contextlib
import json
import logging
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional

from src.domain.entities.price_state import (
    DEFAULT_HISTORY_LIMIT,
    ConnectionState,
    HistorySnapshot,
    PriceHistory,
    SymbolPriceState,
    coerce_price_map,
)
from src.domain.errors import MalformedUpdateError
from src.domain.ports.live_channel_port import ILiveUpdateChannel, RawMessage
from src.domain.ports.price_source_port import IPriceSnapshotSource

LOG = logging.getLogger(__name__)

StocksView = dict[str, SymbolPriceState]
HistoryView = tuple[HistorySnapshot, ...]
Subscriber = Callable[[StocksView, HistoryView], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_update(raw: RawMessage) -> dict[str, float]:
    """Decode one inbound channel message into a partial symbol -> price map.

    Raises:
        MalformedUpdateError: if *raw* is not a JSON object of symbol -> number.
    """
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedUpdateError(f"invalid JSON: {exc}") from exc
    try:
        return coerce_price_map(payload)
    except ValueError as exc:
        raise MalformedUpdateError(str(exc)) from exc


class PriceStreamAggregator:
    """Owns the SymbolPriceState mapping and the bounded HistorySnapshot log.

    Readers only ever receive copies (``stocks``) or immutable tuples
    (``history``). All mutation happens in ``seed`` and ``apply_update``, and
    ``apply_update`` never awaits, so each batch is merged against one
    consistent pre-batch read.
    """

    RECONNECT_DELAY_SECONDS: float = 2.0

    def __init__(
        self,
        snapshot_source: IPriceSnapshotSource,
        channel: ILiveUpdateChannel,
        reconnect_delay: float = RECONNECT_DELAY_SECONDS,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Args:
            snapshot_source: IPriceSnapshotSource used once by seed().
            channel:         ILiveUpdateChannel delivering partial updates.
            reconnect_delay: Seconds to wait after any close/error before reconnecting.
            history_limit:   Maximum number of HistorySnapshot entries retained.
            clock:           Returns the aware processing time for history entries.
        """
        self._snapshot_source = snapshot_source
        self._channel = channel
        self._reconnect_delay = reconnect_delay
        self._clock = clock
        self._stocks: StocksView = {}
        self._history = PriceHistory(history_limit)
        self._subscribers: list[Subscriber] = []
        self._state = ConnectionState.IDLE
        self._connection_task: Optional[asyncio.Task] = None
        self._reconnect_handle: Optional[asyncio.TimerHandle] = None
        self._started = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def stocks(self) -> StocksView:
        return dict(self._stocks)

    @property
    def history(self) -> HistoryView:
        return self._history.snapshot()

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register *callback* for every state change; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ------------------------------------------------------------------
    # State mutation
    # ------------------------------------------------------------------

    async def seed(self) -> None:
        """Seed per-symbol state from the one-shot price snapshot.

        Never raises: a failed snapshot is logged and leaves the state as it
        was, so the dashboard stays usable with an empty sidebar and chart.
        """
        try:
            prices = coerce_price_map(await self._snapshot_source.fetch_prices())
        except Exception as exc:
            LOG.error("Initial price snapshot failed, starting empty: %s", exc)
            return

        if self._state is ConnectionState.CLOSED:
            return

        seeded = dict(self._stocks)
        added = 0
        for symbol, price in prices.items():
            if symbol in seeded:
                # already observed on the live channel; open is immutable
                LOG.debug("Snapshot price for %s ignored, symbol already live", symbol)
                continue
            seeded[symbol] = SymbolPriceState.first_seen(price)
            added += 1
        self._stocks = seeded
        LOG.info("Seeded %d symbol(s) from price snapshot", added)
        if added:
            self._publish()

    def apply_update(self, partial: Mapping[str, float]) -> None:
        """Merge one partial update batch, append a dense history entry, publish."""
        if self._state is ConnectionState.CLOSED:
            LOG.debug("Dropping update for closed aggregator: %s", sorted(partial))
            return
        if not partial:
            return

        before = self._stocks
        merged = dict(before)
        for symbol, new_price in partial.items():
            prior = before.get(symbol)
            if prior is None:
                merged[symbol] = SymbolPriceState.first_seen(new_price)
            else:
                merged[symbol] = prior.advance(new_price)
        self._stocks = merged

        dense = {symbol: state.current for symbol, state in merged.items()}
        self._history.append(HistorySnapshot.capture(dense, self._clock()))
        self._publish()

    def handle_message(self, raw: RawMessage) -> None:
        """Process one raw channel message. Never raises."""
        try:
            partial = parse_update(raw)
        except MalformedUpdateError as exc:
            LOG.warning("Skipping malformed price update: %s", exc)
            return
        try:
            self.apply_update(partial)
        except Exception:
            LOG.exception("Failed to apply price update %r", partial)

    def _publish(self) -> None:
        history = self._history.snapshot()
        for callback in list(self._subscribers):
            try:
                callback(dict(self._stocks), history)
            except Exception:
                LOG.exception("Price subscriber %r failed", callback)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Seed from the snapshot, then open the live channel."""
        if self._state is ConnectionState.CLOSED:
            raise RuntimeError("PriceStreamAggregator is closed and cannot be restarted")
        if self._started:
            LOG.warning("PriceStreamAggregator.start() called twice; ignoring")
            return
        self._started = True
        await self.seed()
        if self._state is ConnectionState.CLOSED:
            return
        self._open_connection()

    async def close(self) -> None:
        """Tear down for good: cancel any pending reconnect and the live connection.

        Idempotent; safe to call in any state.
        """
        if self._state is ConnectionState.CLOSED:
            return
        self._state = ConnectionState.CLOSED

        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

        task, self._connection_task = self._connection_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        LOG.info("PriceStreamAggregator closed")

    def _open_connection(self) -> None:
        self._reconnect_handle = None
        if self._state is ConnectionState.CLOSED:
            return
        self._state = ConnectionState.CONNECTING
        self._connection_task = asyncio.get_running_loop().create_task(
            self._run_connection(), name="price-stream-connection"
        )

    async def _run_connection(self) -> None:
        try:
            async with self._channel.connect() as messages:
                self._state = ConnectionState.OPEN
                LOG.info("Live price channel connected")
                async for raw in messages:
                    self.handle_message(raw)
            LOG.warning("Live price channel closed by remote end")
        except Exception as exc:
            # leaving the context above has already closed the connection
            LOG.error("Live price channel error: %s", exc)
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._state is ConnectionState.CLOSED or self._reconnect_handle is not None:
            return
        self._state = ConnectionState.RECONNECTING
        LOG.warning("Reconnecting to live price channel in %.1fs", self._reconnect_delay)
        self._reconnect_handle = asyncio.get_running_loop().call_later(
            self._reconnect_delay, self._open_connection
        )

import asyncio
import time
from typing import Callable

import structlog
from sqlalchemy.exc import SQLAlchemyError

from lp_analytics.algo.aggregator import PairReturnsContext, PairReturnsRunner
from lp_analytics.algo.buckets import Timeframe, bucket_start, day_timestamps, window_start
from lp_analytics.algo.liquidity import liquidity_chart, liquidity_history
from lp_analytics.algo.models import BucketResult, LiquidityPoint, PairState, ReturnSummary
from lp_analytics.algo.summary import PairHistory, weighted_return_summary
from lp_analytics.data import SnapshotArchive
from lp_analytics.sources.base import DataSource, DataSourceError
from lp_analytics.store import AccountCache, SnapshotStore

log = structlog.get_logger(__name__)


def _timeframe_key(timeframe: Timeframe | None) -> str:
    return timeframe.value if timeframe else Timeframe.YEAR.value


class AccountAnalytics:
    """
    Entry points for the dashboard. Every computation reads the account's
    cached snapshots, fetches what else it needs from the data source and
    commits its result to the cache only if the snapshots were not replaced
    in the meantime.

    Fetch failures are logged and reported as ``None``; nothing is cached,
    so the next call simply tries again.
    """

    def __init__(
        self,
        source: DataSource,
        store: SnapshotStore | None = None,
        archive: SnapshotArchive | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.store = store or SnapshotStore()
        self.archive = archive
        self.clock = clock

    def _now(self) -> int:
        return int(self.clock())

    def _commit(self, cache: AccountCache, kind: str) -> bool:
        if self.store.is_current(cache):
            return True
        log.info("stale_result_discarded", account=cache.account, kind=kind)
        return False

    async def refresh_snapshots(self, account: str) -> AccountCache | None:
        try:
            snapshots = await self.source.fetch_user_snapshots(account)
        except DataSourceError as exc:
            log.warning("snapshot_fetch_failed", account=account, error=str(exc))
            return None

        cache = self.store.replace(account, snapshots)
        if self.archive is not None:
            try:
                self.archive.save(account, cache.snapshots)
            except SQLAlchemyError as exc:
                log.warning("snapshot_archive_failed", account=cache.account, error=str(exc))
        log.info("snapshots_refreshed", account=cache.account, count=len(cache.snapshots))
        return cache

    async def load_snapshots(self, account: str) -> AccountCache | None:
        cache = self.store.get(account)
        if cache is not None:
            return cache
        return await self.refresh_snapshots(account)

    def restore_snapshots(self, account: str) -> AccountCache | None:
        """Seed the cache from the archive without touching the network."""
        if self.archive is None:
            return None
        try:
            snapshots = self.archive.load(account)
        except SQLAlchemyError as exc:
            log.warning("snapshot_restore_failed", account=account, error=str(exc))
            return None
        if not snapshots:
            return None
        return self.store.replace(account, snapshots)

    async def _current_pair_states(self, pair_ids: list[str]) -> dict[str, PairState] | None:
        eth_price = await self.source.fetch_current_eth_price()
        if not eth_price:
            return None
        states = await asyncio.gather(
            *(self.source.fetch_current_pair_state(pair_id) for pair_id in pair_ids),
            return_exceptions=True,
        )
        for state in states:
            if isinstance(state, BaseException):
                raise state
        return {
            pair_id: state.with_eth_price(eth_price)
            for pair_id, state in zip(pair_ids, states)
        }

    async def pair_returns(
        self, account: str, pair_id: str, timeframe: Timeframe | None = None
    ) -> list[BucketResult] | None:
        cache = self.store.get(account)
        if cache is None:
            return None

        key = f"{pair_id}:{_timeframe_key(timeframe)}"
        if key in cache.pair_returns:
            return cache.pair_returns[key]

        snapshots = cache.pair_snapshots(pair_id)
        if not snapshots:
            return []

        now = self._now()
        start = bucket_start(window_start(timeframe, now), snapshots[0].timestamp)
        days = day_timestamps(start, now)

        try:
            current = await self._current_pair_states([pair_id])
            if current is None:
                return None
            blocks = await self.source.fetch_blocks_for_timestamps(days[:-1])
            market_states = await self.source.fetch_pair_states_at_blocks(pair_id, blocks)
        except DataSourceError as exc:
            log.warning("pair_returns_fetch_failed", account=account, pair=pair_id, error=str(exc))
            return None

        result = PairReturnsRunner(
            PairReturnsContext(
                pair_id=pair_id,
                snapshots=snapshots,
                day_timestamps=days,
                market_states=market_states,
                current_state=current[pair_id],
            )
        ).run()
        log.debug(
            "pair_returns_computed",
            account=cache.account,
            pair=pair_id,
            buckets=len(result.buckets),
            events=len(result.event_dates),
        )
        buckets = result.buckets
        if not self._commit(cache, "pair_returns"):
            return None
        cache.pair_returns[key] = buckets
        return buckets

    async def liquidity_history(
        self, account: str, timeframe: Timeframe | None = None
    ) -> list[LiquidityPoint] | None:
        cache = self.store.get(account)
        if cache is None:
            return None
        key = _timeframe_key(timeframe)
        if key in cache.liquidity_history:
            return cache.liquidity_history[key]
        if not cache.snapshots:
            return []

        now = self._now()
        start = bucket_start(window_start(timeframe, now), cache.snapshots[0].timestamp)
        days = day_timestamps(start, now, include_current=False)

        try:
            day_datas = await self.source.fetch_bulk_pair_day_data(cache.pair_ids, start)
        except DataSourceError as exc:
            log.warning("day_data_fetch_failed", account=account, error=str(exc))
            return None

        points = liquidity_history(days, cache.snapshots, day_datas)
        if not self._commit(cache, "liquidity_history"):
            return None
        cache.liquidity_history[key] = points
        return points

    async def liquidity_chart(
        self, account: str, timeframe: Timeframe | None = None
    ) -> list[LiquidityPoint] | None:
        cache = self.store.get(account)
        if cache is None:
            return None
        key = _timeframe_key(timeframe)
        if key in cache.liquidity_chart:
            return cache.liquidity_chart[key]
        if not cache.snapshots:
            return []

        now = self._now()
        start = bucket_start(window_start(timeframe, now), cache.snapshots[0].timestamp)
        days = day_timestamps(start, now, include_current=False)

        try:
            blocks = await self.source.fetch_blocks_for_timestamps(days)
            positions = await self.source.fetch_positions_at_blocks(account, blocks)
        except DataSourceError as exc:
            log.warning("liquidity_chart_fetch_failed", account=account, error=str(exc))
            return None

        points = liquidity_chart(days, positions)
        if not self._commit(cache, "liquidity_chart"):
            return None
        cache.liquidity_chart[key] = points
        return points

    async def _pair_histories(self, cache: AccountCache) -> list[PairHistory] | None:
        current = await self._current_pair_states(cache.pair_ids)
        if current is None:
            return None
        return [
            PairHistory(
                pair_id=pair_id,
                snapshots=cache.pair_snapshots(pair_id),
                current_state=current[pair_id],
            )
            for pair_id in cache.pair_ids
        ]

    async def position_summaries(self, account: str) -> dict[str, ReturnSummary] | None:
        cache = self.store.get(account)
        if cache is None:
            return None
        if cache.summaries:
            return cache.summaries
        if not cache.snapshots:
            return {}

        try:
            histories = await self._pair_histories(cache)
        except DataSourceError as exc:
            log.warning("position_summary_fetch_failed", account=account, error=str(exc))
            return None
        if histories is None:
            return None

        summaries = {}
        for history in histories:
            summary = weighted_return_summary([history])
            if summary is not None:
                summaries[history.pair_id] = summary
        if not self._commit(cache, "summaries"):
            return None
        cache.summaries = summaries
        return summaries

    async def account_summary(self, account: str) -> ReturnSummary | None:
        cache = self.store.get(account)
        if cache is None or not cache.snapshots:
            return None

        try:
            histories = await self._pair_histories(cache)
        except DataSourceError as exc:
            log.warning("account_summary_fetch_failed", account=account, error=str(exc))
            return None
        if histories is None:
            return None

        summary = weighted_return_summary(histories)
        if not self._commit(cache, "account_summary"):
            return None
        return summary

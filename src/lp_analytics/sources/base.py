from typing import Protocol

from lp_analytics.algo.models import (
    BlockRef,
    PairDayData,
    PairState,
    PositionAtBlock,
    Snapshot,
)


class DataSourceError(Exception):
    """A fetch from the indexing service failed or returned unusable data."""


class DataSource(Protocol):
    async def fetch_user_snapshots(
        self, account: str, page_size: int = 1000
    ) -> list[Snapshot]: ...

    async def fetch_current_pair_state(self, pair_id: str) -> PairState: ...

    async def fetch_current_eth_price(self) -> float: ...

    async def fetch_bulk_pair_day_data(
        self, pair_ids: list[str], since: int
    ) -> list[PairDayData]: ...

    async def fetch_blocks_for_timestamps(self, timestamps: list[int]) -> list[BlockRef]: ...

    async def fetch_positions_at_blocks(
        self, account: str, blocks: list[BlockRef]
    ) -> dict[int, list[PositionAtBlock]]: ...

    async def fetch_pair_states_at_blocks(
        self, pair_id: str, blocks: list[BlockRef]
    ) -> dict[int, PairState]: ...

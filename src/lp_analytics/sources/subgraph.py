import time
from typing import Any

import httpx
import structlog

from lp_analytics.algo.models import (
    BlockRef,
    PairDayData,
    PairState,
    PositionAtBlock,
    Snapshot,
)
from lp_analytics.config import settings
from lp_analytics.sources import queries
from lp_analytics.sources.base import DataSourceError

log = structlog.get_logger(__name__)


def _chunks(items: list, size: int) -> list[list]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def parse_snapshot(row: dict[str, Any]) -> Snapshot:
    pair = row["pair"]
    return Snapshot(
        timestamp=int(row["timestamp"]),
        pair_id=pair["id"],
        liquidity_token_balance=float(row["liquidityTokenBalance"]),
        liquidity_token_total_supply=float(row["liquidityTokenTotalSupply"]),
        reserve0=float(row["reserve0"]),
        reserve1=float(row["reserve1"]),
        reserve_usd=float(row["reserveUSD"]),
        token0_price_usd=float(row["token0PriceUSD"]),
        token1_price_usd=float(row["token1PriceUSD"]),
        token0_id=pair.get("token0", {}).get("id"),
        token1_id=pair.get("token1", {}).get("id"),
    )


def parse_pair_state(pair_id: str, timestamp: int, row: dict[str, Any]) -> PairState:
    return PairState(
        pair_id=pair_id,
        timestamp=timestamp,
        total_supply=float(row["totalSupply"]),
        reserve0=float(row["reserve0"]),
        reserve1=float(row["reserve1"]),
        reserve_usd=float(row["reserveUSD"]),
        token0_id=row["token0"].get("id"),
        token1_id=row["token1"].get("id"),
        token0_derived_eth=float(row["token0"]["derivedETH"]),
        token1_derived_eth=float(row["token1"]["derivedETH"]),
    )


class SubgraphDataSource:
    """Reads LP snapshots and pair state from the liquidity subgraph."""

    def __init__(
        self,
        subgraph_url: str | None = None,
        blocks_subgraph_url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.subgraph_url = subgraph_url or settings.subgraph_url
        self.blocks_subgraph_url = blocks_subgraph_url or settings.blocks_subgraph_url
        self.client = client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)

    async def close(self) -> None:
        await self.client.aclose()

    async def _query(
        self, url: str, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables
        try:
            response = await self.client.post(url, json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise DataSourceError(f"subgraph request to {url} failed: {exc}") from exc

        if body.get("errors"):
            raise DataSourceError(f"subgraph returned errors: {body['errors']}")
        data = body.get("data")
        if data is None:
            raise DataSourceError("subgraph response has no data")
        return data

    async def fetch_user_snapshots(
        self, account: str, page_size: int | None = None
    ) -> list[Snapshot]:
        page_size = page_size or settings.snapshot_page_size
        snapshots: list[Snapshot] = []
        skip = 0
        while True:
            data = await self._query(
                self.subgraph_url,
                queries.USER_SNAPSHOTS,
                {"user": account.lower(), "skip": skip, "first": page_size},
            )
            try:
                page = [parse_snapshot(row) for row in data["liquidityPositionSnapshots"]]
            except (KeyError, TypeError, ValueError) as exc:
                raise DataSourceError(f"malformed snapshot page: {exc}") from exc
            snapshots.extend(page)
            if len(page) < page_size:
                break
            skip += page_size

        log.debug("snapshots_fetched", account=account, count=len(snapshots))
        return snapshots

    async def fetch_current_pair_state(self, pair_id: str) -> PairState:
        data = await self._query(self.subgraph_url, queries.PAIR_STATE, {"pair": pair_id})
        row = data.get("pair")
        if row is None:
            raise DataSourceError(f"pair {pair_id} not found")
        try:
            return parse_pair_state(pair_id, int(time.time()), row)
        except (KeyError, TypeError, ValueError) as exc:
            raise DataSourceError(f"malformed pair {pair_id}: {exc}") from exc

    async def fetch_current_eth_price(self) -> float:
        data = await self._query(self.subgraph_url, queries.ETH_PRICE)
        try:
            return float(data["bundle"]["ethPrice"])
        except (KeyError, TypeError, ValueError) as exc:
            raise DataSourceError(f"malformed eth price: {exc}") from exc

    async def fetch_bulk_pair_day_data(
        self, pair_ids: list[str], since: int
    ) -> list[PairDayData]:
        rows: list[PairDayData] = []
        skip = 0
        while True:
            data = await self._query(
                self.subgraph_url,
                queries.PAIR_DAY_DATA_BULK,
                {"pairs": sorted(set(pair_ids)), "since": since, "skip": skip},
            )
            try:
                page = [
                    PairDayData(
                        pair_id=row["pairAddress"],
                        date=int(row["date"]),
                        total_supply=float(row["totalSupply"]),
                        reserve_usd=float(row["reserveUSD"]),
                    )
                    for row in data["pairDayDatas"]
                ]
            except (KeyError, TypeError, ValueError) as exc:
                raise DataSourceError(f"malformed pair day data: {exc}") from exc
            rows.extend(page)
            if len(page) < 1000:
                break
            skip += 1000
        return rows

    async def fetch_blocks_for_timestamps(self, timestamps: list[int]) -> list[BlockRef]:
        blocks = []
        for batch in _chunks(timestamps, settings.block_batch_size):
            data = await self._query(self.blocks_subgraph_url, queries.blocks_query(batch))
            for ts in batch:
                found = data.get(f"t{ts}") or []
                if not found:
                    log.warning("block_not_found", timestamp=ts)
                    continue
                blocks.append(BlockRef(timestamp=ts, number=int(found[0]["number"])))
        return blocks

    async def fetch_positions_at_blocks(
        self, account: str, blocks: list[BlockRef]
    ) -> dict[int, list[PositionAtBlock]]:
        positions: dict[int, list[PositionAtBlock]] = {}
        for batch in _chunks(blocks, settings.block_batch_size):
            query = queries.positions_by_block_query(
                account.lower(), [(b.timestamp, b.number) for b in batch]
            )
            data = await self._query(self.subgraph_url, query)
            try:
                for block in batch:
                    positions[block.timestamp] = [
                        PositionAtBlock(
                            pair_id=row["pair"]["id"],
                            liquidity_token_balance=float(row["liquidityTokenBalance"]),
                            total_supply=float(row["pair"]["totalSupply"]),
                            reserve_usd=float(row["pair"]["reserveUSD"]),
                        )
                        for row in data.get(f"t{block.timestamp}") or []
                    ]
            except (KeyError, TypeError, ValueError) as exc:
                raise DataSourceError(f"malformed positions: {exc}") from exc
        return positions

    async def fetch_pair_states_at_blocks(
        self, pair_id: str, blocks: list[BlockRef]
    ) -> dict[int, PairState]:
        states: dict[int, PairState] = {}
        for batch in _chunks(blocks, settings.block_batch_size):
            query = queries.pair_states_by_block_query(
                pair_id, [(b.timestamp, b.number) for b in batch]
            )
            data = await self._query(self.subgraph_url, query)
            for block in batch:
                row = data.get(f"t{block.timestamp}")
                bundle = data.get(f"b{block.timestamp}")
                if row is None or bundle is None:
                    continue
                try:
                    state = parse_pair_state(pair_id, block.timestamp, row)
                    states[block.timestamp] = state.with_eth_price(float(bundle["ethPrice"]))
                except (KeyError, TypeError, ValueError) as exc:
                    raise DataSourceError(f"malformed pair state: {exc}") from exc
        return states

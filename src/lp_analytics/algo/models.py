from pydantic import BaseModel, ConfigDict, Field

from lp_analytics.algo.math import safe_divide


DAY_SECONDS = 86400


class Snapshot(BaseModel):
    """State of an LP position at the moment it was created or changed."""

    model_config = ConfigDict(frozen=True)

    timestamp: int
    pair_id: str
    liquidity_token_balance: float
    liquidity_token_total_supply: float
    reserve0: float
    reserve1: float
    reserve_usd: float
    token0_price_usd: float
    token1_price_usd: float
    token0_id: str | None = None
    token1_id: str | None = None

    def to_position_state(self) -> "PositionState":
        return PositionState(
            pair_id=self.pair_id,
            timestamp=self.timestamp,
            liquidity_token_balance=self.liquidity_token_balance,
            total_supply=self.liquidity_token_total_supply,
            reserve0=self.reserve0,
            reserve1=self.reserve1,
            reserve_usd=self.reserve_usd,
            token0_price_usd=self.token0_price_usd,
            token1_price_usd=self.token1_price_usd,
            token0_id=self.token0_id,
            token1_id=self.token1_id,
        )


class PairState(BaseModel):
    model_config = ConfigDict(frozen=True)

    pair_id: str
    timestamp: int
    total_supply: float
    reserve0: float
    reserve1: float
    reserve_usd: float
    token0_price_usd: float = 0.0
    token1_price_usd: float = 0.0
    token0_id: str | None = None
    token1_id: str | None = None
    token0_derived_eth: float | None = None
    token1_derived_eth: float | None = None

    @property
    def share_price_usd(self) -> float:
        return safe_divide(self.reserve_usd, self.total_supply)

    def with_eth_price(self, eth_price: float) -> "PairState":
        """Derive USD token prices from the ETH-denominated ones."""
        update = {}
        if self.token0_derived_eth is not None:
            update["token0_price_usd"] = eth_price * self.token0_derived_eth
        if self.token1_derived_eth is not None:
            update["token1_price_usd"] = eth_price * self.token1_derived_eth
        return self.model_copy(update=update)


class PositionState(PairState):
    liquidity_token_balance: float = 0.0


class DayBucket(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_timestamp: int

    @property
    def end_timestamp(self) -> int:
        return self.start_timestamp + DAY_SECONDS

    def contains(self, timestamp: int) -> bool:
        # open interval, boundary timestamps belong to no bucket
        return self.start_timestamp < timestamp < self.end_timestamp


class CumulativeReturns(BaseModel):
    last_updated: int
    liquidity_token_balance: float
    total_supply: float
    reserve0: float
    reserve1: float
    reserve_usd: float
    token0_price_usd: float
    token1_price_usd: float
    asset_return: float = 0.0
    net_return: float = 0.0
    pool_return: float = 0.0
    asset_change: float = 0.0
    net_change: float = 0.0
    pool_change: float = 0.0

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "CumulativeReturns":
        return cls(
            last_updated=snapshot.timestamp,
            liquidity_token_balance=snapshot.liquidity_token_balance,
            total_supply=snapshot.liquidity_token_total_supply,
            reserve0=snapshot.reserve0,
            reserve1=snapshot.reserve1,
            reserve_usd=snapshot.reserve_usd,
            token0_price_usd=snapshot.token0_price_usd,
            token1_price_usd=snapshot.token1_price_usd,
        )

    def to_position_state(self, pair_id: str) -> PositionState:
        return PositionState(
            pair_id=pair_id,
            timestamp=self.last_updated,
            liquidity_token_balance=self.liquidity_token_balance,
            total_supply=self.total_supply,
            reserve0=self.reserve0,
            reserve1=self.reserve1,
            reserve_usd=self.reserve_usd,
            token0_price_usd=self.token0_price_usd,
            token1_price_usd=self.token1_price_usd,
        )

    def totals(self) -> tuple[float, float, float, float, float, float]:
        return (
            self.asset_return,
            self.net_return,
            self.pool_return,
            self.asset_change,
            self.net_change,
            self.pool_change,
        )


class BucketResult(BaseModel):
    date: int
    usd_value: float
    net_return: float
    asset_return: float
    pool_return: float
    net_change: float
    asset_change: float
    pool_change: float


class ReturnFigure(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    usd: float = Field(default=0.0, serialization_alias="return")
    percent: float = 0.0


class IntervalReturn(BaseModel):
    pair_id: str
    start_timestamp: int
    end_timestamp: int | None
    weight: float
    asset_return: float
    net_return: float
    weighted_asset_change: float
    weighted_net_change: float


class ReturnSummary(BaseModel):
    asset: ReturnFigure
    net: ReturnFigure
    pool: ReturnFigure
    intervals: list[IntervalReturn] = Field(default_factory=list, exclude=True)


class PairDayData(BaseModel):
    model_config = ConfigDict(frozen=True)

    pair_id: str
    date: int
    total_supply: float
    reserve_usd: float


class BlockRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: int
    number: int


class PositionAtBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    pair_id: str
    liquidity_token_balance: float
    total_supply: float
    reserve_usd: float


class LiquidityPoint(BaseModel):
    date: int
    value_usd: float
    per_pair: dict[str, float] = Field(default_factory=dict)

from pydantic import BaseModel

from lp_analytics.algo.math import (
    compute_no_fee_amounts,
    compute_ownership,
    compute_token_amounts,
    percent_change,
    value_usd,
)
from lp_analytics.algo.models import (
    BucketResult,
    CumulativeReturns,
    PairState,
    PositionState,
)


class Decomposition(BaseModel):
    t0_ownership: float
    t1_ownership: float
    token0_amount_t0: float
    token1_amount_t0: float
    token0_amount_t1: float
    token1_amount_t1: float
    token0_amount_no_fees: float
    token1_amount_no_fees: float
    no_fees_usd: float
    fee_usd: float
    asset_value_t0: float
    asset_value_t1: float
    imp_loss_usd: float
    net_value_t0: float
    net_value_t1: float

    @property
    def asset_return(self) -> float:
        return self.asset_value_t1 - self.asset_value_t0

    @property
    def net_return(self) -> float:
        return self.net_value_t1 - self.net_value_t0

    @property
    def pool_return(self) -> float:
        return self.fee_usd + self.imp_loss_usd

    @property
    def asset_change(self) -> float:
        return percent_change(self.asset_return, self.asset_value_t0)

    @property
    def net_change(self) -> float:
        return percent_change(self.net_return, self.net_value_t0)


def decompose(position_t0: PositionState, position_t1: PairState) -> Decomposition:
    """
    Split the change in value of a position between two states into asset
    price drift, fee income and impermanent loss.

    Ownership at the end of the window is measured with the starting LP
    token balance against the new total supply, so supply-driven dilution is
    separated from the holder's own deposits and withdrawals.
    """
    t0_ownership = compute_ownership(
        position_t0.liquidity_token_balance, position_t0.total_supply
    )
    t1_ownership = compute_ownership(
        position_t0.liquidity_token_balance, position_t1.total_supply
    )

    token0_t0, token1_t0 = compute_token_amounts(
        t0_ownership, position_t0.reserve0, position_t0.reserve1
    )
    token0_t1, token1_t1 = compute_token_amounts(
        t1_ownership, position_t1.reserve0, position_t1.reserve1
    )

    token0_no_fees, token1_no_fees = compute_no_fee_amounts(
        token0_t0, token1_t0, position_t1.token1_price_usd
    )
    no_fees_usd = value_usd(
        token0_no_fees,
        token1_no_fees,
        position_t1.token0_price_usd,
        position_t1.token1_price_usd,
    )
    fee_usd = value_usd(
        token0_t1 - token0_no_fees,
        token1_t1 - token1_no_fees,
        position_t1.token0_price_usd,
        position_t1.token1_price_usd,
    )

    # same starting amounts at both price points
    asset_value_t0 = value_usd(
        token0_t0, token1_t0, position_t0.token0_price_usd, position_t0.token1_price_usd
    )
    asset_value_t1 = value_usd(
        token0_t0, token1_t0, position_t1.token0_price_usd, position_t1.token1_price_usd
    )

    return Decomposition(
        t0_ownership=t0_ownership,
        t1_ownership=t1_ownership,
        token0_amount_t0=token0_t0,
        token1_amount_t0=token1_t0,
        token0_amount_t1=token0_t1,
        token1_amount_t1=token1_t1,
        token0_amount_no_fees=token0_no_fees,
        token1_amount_no_fees=token1_no_fees,
        no_fees_usd=no_fees_usd,
        fee_usd=fee_usd,
        asset_value_t0=asset_value_t0,
        asset_value_t1=asset_value_t1,
        imp_loss_usd=no_fees_usd - asset_value_t1,
        net_value_t0=t0_ownership * position_t0.reserve_usd,
        net_value_t1=t1_ownership * position_t1.reserve_usd,
    )


class ReturnDecomposer:
    """
    Carries the cumulative returns of one pair across day buckets.

    The cumulative totals only move when the position itself changed inside
    a bucket. Every bucket still reports totals plus the drift since the
    last change.
    """

    def __init__(self, pair_id: str, cumulative: CumulativeReturns):
        self.pair_id = pair_id
        self.cumulative = cumulative

    @property
    def position_t0(self) -> PositionState:
        return self.cumulative.to_position_state(self.pair_id)

    def step(
        self, date: int, position_t1: PairState, ownership_changed: bool
    ) -> BucketResult:
        position_t0 = self.position_t0
        result = decompose(position_t0, position_t1)

        asset_return, net_return, pool_return, asset_change, net_change, _ = (
            self.cumulative.totals()
        )
        local_asset_change = asset_change + result.asset_change
        local_net_change = net_change + result.net_change

        bucket = BucketResult(
            date=date,
            usd_value=position_t0.liquidity_token_balance * position_t1.share_price_usd,
            net_return=net_return + result.net_return,
            asset_return=asset_return + result.asset_return,
            pool_return=pool_return + result.pool_return,
            net_change=local_net_change,
            asset_change=local_asset_change,
            pool_change=local_net_change - local_asset_change,
        )

        if ownership_changed:
            self._advance(result, position_t1)

        return bucket

    def _advance(self, result: Decomposition, position_t1: PairState) -> None:
        c = self.cumulative
        c.net_return += result.net_return
        c.asset_return += result.asset_return
        c.pool_return += result.pool_return
        c.net_change += result.net_change
        c.asset_change += result.asset_change
        c.pool_change = c.net_change - c.asset_change

        c.last_updated = position_t1.timestamp
        if isinstance(position_t1, PositionState):
            c.liquidity_token_balance = position_t1.liquidity_token_balance
        c.total_supply = position_t1.total_supply
        c.reserve0 = position_t1.reserve0
        c.reserve1 = position_t1.reserve1
        c.reserve_usd = position_t1.reserve_usd
        c.token0_price_usd = position_t1.token0_price_usd
        c.token1_price_usd = position_t1.token1_price_usd

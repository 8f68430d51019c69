from pydantic import BaseModel

from lp_analytics.algo.decomposer import decompose
from lp_analytics.algo.math import compute_ownership, percent_change, safe_divide
from lp_analytics.algo.models import (
    IntervalReturn,
    PairState,
    PositionState,
    ReturnFigure,
    ReturnSummary,
    Snapshot,
)
from lp_analytics.algo.ownership import sort_snapshots

# Prices recorded before this moment predate reliable on-chain oracles.
PRICE_OVERRIDE_CUTOFF = 1597093302

STABLECOIN_OVERRIDES = (
    "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",  # USDC
    "0x6b175474e89094c44da98b954eedeac495271d0f",  # DAI
)
WETH_ADDRESS = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
LEGACY_ETH_PRICE_USD = 395.84


def _override_price(token_id: str | None, price: float) -> float:
    if token_id is None:
        return price
    token_id = token_id.lower()
    if token_id in STABLECOIN_OVERRIDES:
        return 1.0
    if token_id == WETH_ADDRESS:
        return LEGACY_ETH_PRICE_USD
    return price


def apply_price_overrides(state: PositionState) -> PositionState:
    """Replace early stablecoin and WETH prices with fixed reference prices."""
    if state.timestamp >= PRICE_OVERRIDE_CUTOFF:
        return state
    return state.model_copy(
        update={
            "token0_price_usd": _override_price(state.token0_id, state.token0_price_usd),
            "token1_price_usd": _override_price(state.token1_id, state.token1_price_usd),
        }
    )


class PairHistory(BaseModel):
    pair_id: str
    snapshots: list[Snapshot]
    current_state: PairState

    def current_position(self) -> PositionState:
        last = sort_snapshots(self.snapshots)[-1]
        return PositionState(
            **self.current_state.model_dump(exclude={"liquidity_token_balance"}),
            liquidity_token_balance=last.liquidity_token_balance,
        )

    def intervals(self) -> list[tuple[PositionState, PositionState, int | None]]:
        """Consecutive snapshot pairs, the last one closed by the live state."""
        states = [s.to_position_state() for s in sort_snapshots(self.snapshots)]
        if not states:
            return []
        windows = []
        for i, position_t0 in enumerate(states[:-1]):
            position_t1 = states[i + 1]
            windows.append((position_t0, position_t1, position_t1.timestamp))
        windows.append((states[-1], self.current_position(), None))
        return windows


def total_usd_provided(histories: list[PairHistory]) -> float:
    total = 0.0
    for history in histories:
        for snapshot in history.snapshots:
            ownership = compute_ownership(
                snapshot.liquidity_token_balance, snapshot.liquidity_token_total_supply
            )
            total += ownership * snapshot.reserve_usd
    return total


def weighted_return_summary(histories: list[PairHistory]) -> ReturnSummary | None:
    """
    Aggregate asset and net returns over every interval of the given
    positions. Percent changes are weighted by the USD value each interval
    started with relative to everything ever provided; absolute returns are
    summed as-is. Pool returns are the remainder of net over asset.
    """
    histories = [h for h in histories if h.snapshots]
    if not histories:
        return None

    total_provided = total_usd_provided(histories)

    intervals = []
    for history in histories:
        for position_t0, position_t1, end in history.intervals():
            position_t0 = apply_price_overrides(position_t0)
            position_t1 = apply_price_overrides(position_t1)
            result = decompose(position_t0, position_t1)

            weight = safe_divide(
                result.t0_ownership * position_t0.reserve_usd, total_provided
            )
            intervals.append(
                IntervalReturn(
                    pair_id=history.pair_id,
                    start_timestamp=position_t0.timestamp,
                    end_timestamp=end,
                    weight=weight,
                    asset_return=result.asset_return,
                    net_return=result.net_return,
                    weighted_asset_change=percent_change(
                        weight * result.asset_return, result.asset_value_t0
                    ),
                    weighted_net_change=percent_change(
                        weight * result.net_return, result.net_value_t0
                    ),
                )
            )

    asset_return = sum(i.asset_return for i in intervals)
    net_return = sum(i.net_return for i in intervals)
    asset_percent = sum(i.weighted_asset_change for i in intervals)
    net_percent = sum(i.weighted_net_change for i in intervals)

    return ReturnSummary(
        asset=ReturnFigure(usd=asset_return, percent=asset_percent),
        net=ReturnFigure(usd=net_return, percent=net_percent),
        pool=ReturnFigure(
            usd=net_return - asset_return, percent=net_percent - asset_percent
        ),
        intervals=intervals,
    )


def pair_return_summary(history: PairHistory) -> ReturnSummary | None:
    return weighted_return_summary([history])

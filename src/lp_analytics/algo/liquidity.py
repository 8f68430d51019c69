from collections import defaultdict

from lp_analytics.algo.math import safe_divide
from lp_analytics.algo.models import (
    DayBucket,
    LiquidityPoint,
    PairDayData,
    PositionAtBlock,
    Snapshot,
)
from lp_analytics.algo.ownership import BalanceTracker, sort_snapshots


def position_value_usd(balance: float, total_supply: float, reserve_usd: float) -> float:
    return safe_divide(balance, total_supply) * reserve_usd


def liquidity_chart(
    day_timestamps: list[int], positions_by_day: dict[int, list[PositionAtBlock]]
) -> list[LiquidityPoint]:
    """USD value of every position held on each day, read at that day's block."""
    points = []
    for day in day_timestamps:
        per_pair: dict[str, float] = {}
        for position in positions_by_day.get(day, []):
            per_pair[position.pair_id] = position_value_usd(
                position.liquidity_token_balance,
                position.total_supply,
                position.reserve_usd,
            )
        points.append(
            LiquidityPoint(date=day, value_usd=sum(per_pair.values()), per_pair=per_pair)
        )
    return points


def latest_day_data(rows: list[PairDayData], before: int) -> PairDayData | None:
    """Most recent row dated before the timestamp, else the pair's first row."""
    if not rows:
        return None
    most_recent = rows[0]
    for row in rows:
        if most_recent.date < row.date < before:
            most_recent = row
    return most_recent


def liquidity_history(
    day_timestamps: list[int],
    snapshots: list[Snapshot],
    day_datas: list[PairDayData],
) -> list[LiquidityPoint]:
    """
    Daily USD liquidity of an account valued with pair day data.

    Balances are carried forward per pair from the snapshots seen so far;
    a pair with no day data contributes nothing.
    """
    rows_by_pair: dict[str, list[PairDayData]] = defaultdict(list)
    for row in sorted(day_datas, key=lambda r: r.date):
        rows_by_pair[row.pair_id].append(row)

    ordered = sort_snapshots(snapshots)
    tracker = BalanceTracker()

    points = []
    for day in day_timestamps:
        tracker.track(ordered, DayBucket(start_timestamp=day))

        per_pair: dict[str, float] = {}
        for pair_id in tracker.pair_ids:
            row = latest_day_data(rows_by_pair.get(pair_id, []), day)
            if row is None:
                continue
            per_pair[pair_id] = position_value_usd(
                tracker.balances[pair_id], row.total_supply, row.reserve_usd
            )

        points.append(
            LiquidityPoint(date=day, value_usd=sum(per_pair.values()), per_pair=per_pair)
        )
    return points

import pytest

from lp_analytics.algo.summary import (
    LEGACY_ETH_PRICE_USD,
    PRICE_OVERRIDE_CUTOFF,
    WETH_ADDRESS,
    PairHistory,
    apply_price_overrides,
    pair_return_summary,
    total_usd_provided,
    weighted_return_summary,
)
from lp_analytics.tests.factories import DAY, PAIR, make_pair_state, make_snapshot

USDC = "0xA0b86991c6218b36c1d19d4a2e9eB0cE3606eB48"


def test_early_prices_are_overridden():
    snapshot = make_snapshot(PRICE_OVERRIDE_CUTOFF - 1, price0=0.97, price1=380.0)
    state = snapshot.model_copy(
        update={"token0_id": USDC, "token1_id": WETH_ADDRESS}
    ).to_position_state()

    patched = apply_price_overrides(state)
    assert patched.token0_price_usd == 1.0
    assert patched.token1_price_usd == LEGACY_ETH_PRICE_USD
    assert state.token0_price_usd == 0.97


def test_later_prices_are_kept():
    snapshot = make_snapshot(PRICE_OVERRIDE_CUTOFF, price0=0.97)
    state = snapshot.model_copy(update={"token0_id": USDC}).to_position_state()
    assert apply_price_overrides(state).token0_price_usd == 0.97


def test_single_interval_against_live_state():
    history = PairHistory(
        pair_id=PAIR,
        snapshots=[make_snapshot(PRICE_OVERRIDE_CUTOFF + 10)],
        current_state=make_pair_state(PRICE_OVERRIDE_CUTOFF + DAY, price0=2.0, reserve_usd=3000.0),
    )
    summary = pair_return_summary(history)

    assert len(summary.intervals) == 1
    assert summary.intervals[0].weight == pytest.approx(1.0)
    assert summary.asset.usd == pytest.approx(100)
    assert summary.asset.percent == pytest.approx(50)
    assert summary.net.usd == pytest.approx(100)
    assert summary.pool.usd == pytest.approx(summary.net.usd - summary.asset.usd)
    assert summary.pool.percent == pytest.approx(summary.net.percent - summary.asset.percent)


def test_weights_sum_to_one():
    start = PRICE_OVERRIDE_CUTOFF + 10
    histories = [
        PairHistory(
            pair_id=PAIR,
            snapshots=[
                make_snapshot(start),
                make_snapshot(start + DAY, balance=250.0, reserve_usd=2400.0),
                make_snapshot(start + 2 * DAY, balance=40.0, total_supply=900.0),
            ],
            current_state=make_pair_state(start + 3 * DAY, price0=1.3),
        ),
        PairHistory(
            pair_id="0xother",
            snapshots=[make_snapshot(start + 5, balance=10.0, reserve_usd=9000.0, pair_id="0xother")],
            current_state=make_pair_state(start + 3 * DAY, pair_id="0xother"),
        ),
    ]
    summary = weighted_return_summary(histories)

    assert len(summary.intervals) == 4
    assert sum(i.weight for i in summary.intervals) == pytest.approx(1.0, abs=1e-9)
    assert total_usd_provided(histories) == pytest.approx(200 + 600 + 40 / 900 * 2000 + 90)


def test_returns_are_summed_unweighted():
    start = PRICE_OVERRIDE_CUTOFF + 10
    history = PairHistory(
        pair_id=PAIR,
        snapshots=[
            make_snapshot(start),
            make_snapshot(start + DAY, price0=2.0),
        ],
        current_state=make_pair_state(start + 2 * DAY, price0=3.0),
    )
    summary = pair_return_summary(history)

    assert [i.asset_return for i in summary.intervals] == pytest.approx([100, 100])
    assert summary.asset.usd == pytest.approx(200)


def test_summary_serializes_with_return_keys():
    history = PairHistory(
        pair_id=PAIR,
        snapshots=[make_snapshot(PRICE_OVERRIDE_CUTOFF + 10)],
        current_state=make_pair_state(PRICE_OVERRIDE_CUTOFF + DAY),
    )
    dumped = pair_return_summary(history).model_dump(by_alias=True)
    assert set(dumped) == {"asset", "net", "pool"}
    assert set(dumped["asset"]) == {"return", "percent"}


def test_no_snapshots_no_summary():
    history = PairHistory(pair_id=PAIR, snapshots=[], current_state=make_pair_state(0))
    assert weighted_return_summary([history]) is None
    assert weighted_return_summary([]) is None

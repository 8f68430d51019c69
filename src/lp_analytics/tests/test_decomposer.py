import math

import pytest

from lp_analytics.algo.decomposer import ReturnDecomposer, decompose
from lp_analytics.algo.math import safe_divide
from lp_analytics.algo.models import CumulativeReturns
from lp_analytics.tests.factories import DAY, PAIR, make_pair_state


def test_no_price_movement_has_no_returns(base_snapshot, flat_state):
    result = decompose(base_snapshot.to_position_state(), flat_state)

    assert result.t0_ownership == pytest.approx(0.1)
    assert result.asset_return == 0
    assert result.net_value_t1 - result.net_value_t0 == 0
    assert result.pool_return == pytest.approx(0, abs=1e-9)
    assert result.fee_usd == pytest.approx(0, abs=1e-9)
    assert result.imp_loss_usd == pytest.approx(0, abs=1e-9)


def test_token0_appreciation_is_asset_return(base_snapshot):
    state = make_pair_state(DAY, price0=2.0)
    result = decompose(base_snapshot.to_position_state(), state)

    assert result.token0_amount_t0 == pytest.approx(100)
    assert result.token1_amount_t0 == pytest.approx(100)
    assert result.asset_value_t0 == pytest.approx(200)
    assert result.asset_value_t1 == pytest.approx(300)
    assert result.asset_return == pytest.approx(100)
    assert result.asset_change == pytest.approx(50)


def test_end_ownership_uses_starting_balance(base_snapshot):
    # total supply doubled by someone else's deposit
    state = make_pair_state(DAY, total_supply=2000.0, reserve0=2000, reserve1=2000, reserve_usd=4000)
    result = decompose(base_snapshot.to_position_state(), state)

    assert result.t1_ownership == pytest.approx(0.05)
    assert result.token0_amount_t1 == pytest.approx(100)
    assert result.net_value_t1 == pytest.approx(200)


def test_no_fee_counterfactual_keeps_constant_product(base_snapshot):
    state = make_pair_state(DAY, price1=4.0)
    result = decompose(base_snapshot.to_position_state(), state)

    assert result.token0_amount_no_fees == pytest.approx(200)
    assert result.token1_amount_no_fees == pytest.approx(50)
    assert result.token0_amount_no_fees * result.token1_amount_no_fees == pytest.approx(
        result.token0_amount_t0 * result.token1_amount_t0
    )
    assert result.no_fees_usd == pytest.approx(200 * 1 + 50 * 4)
    assert result.imp_loss_usd == pytest.approx(result.no_fees_usd - result.asset_value_t1)


def test_zero_total_supply_is_not_fatal(base_snapshot):
    state = make_pair_state(DAY, total_supply=0.0)
    result = decompose(base_snapshot.to_position_state(), state)
    assert math.isinf(result.t1_ownership)
    assert not math.isfinite(result.net_value_t1)


def test_safe_divide_follows_float_semantics():
    assert safe_divide(1.0, 0.0) == math.inf
    assert safe_divide(-1.0, 0.0) == -math.inf
    assert math.isnan(safe_divide(0.0, 0.0))
    assert safe_divide(3.0, 2.0) == 1.5


def test_step_without_event_leaves_totals_untouched(base_snapshot):
    decomposer = ReturnDecomposer(PAIR, CumulativeReturns.from_snapshot(base_snapshot))
    before = decomposer.cumulative.model_dump()

    bucket = decomposer.step(0, make_pair_state(DAY, price0=2.0), ownership_changed=False)

    assert decomposer.cumulative.model_dump() == before
    assert bucket.asset_return == pytest.approx(100)
    assert bucket.pool_change == bucket.net_change - bucket.asset_change


def test_step_with_event_advances_state(base_snapshot):
    decomposer = ReturnDecomposer(PAIR, CumulativeReturns.from_snapshot(base_snapshot))
    event = base_snapshot.model_copy(
        update={"timestamp": DAY + 10, "liquidity_token_balance": 300.0, "token0_price_usd": 2.0}
    ).to_position_state()

    bucket = decomposer.step(DAY, event, ownership_changed=True)

    cumulative = decomposer.cumulative
    assert cumulative.asset_return == pytest.approx(100)
    assert bucket.asset_return == pytest.approx(cumulative.asset_return)
    assert cumulative.liquidity_token_balance == 300.0
    assert cumulative.token0_price_usd == 2.0
    assert cumulative.last_updated == DAY + 10


def test_usd_value_uses_share_price(base_snapshot):
    decomposer = ReturnDecomposer(PAIR, CumulativeReturns.from_snapshot(base_snapshot))
    bucket = decomposer.step(0, make_pair_state(DAY, reserve_usd=3000.0), ownership_changed=False)
    assert bucket.usd_value == pytest.approx(100 * 3.0)

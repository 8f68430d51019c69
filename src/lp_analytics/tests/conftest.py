import pytest

from lp_analytics.algo.models import PairState, Snapshot
from lp_analytics.tests.factories import DAY, make_pair_state, make_snapshot


@pytest.fixture
def base_snapshot() -> Snapshot:
    return make_snapshot(timestamp=0)


@pytest.fixture
def flat_state() -> PairState:
    return make_pair_state(timestamp=DAY)

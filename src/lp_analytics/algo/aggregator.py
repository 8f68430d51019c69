from pydantic import BaseModel

from lp_analytics.algo.decomposer import ReturnDecomposer
from lp_analytics.algo.models import (
    BucketResult,
    CumulativeReturns,
    DayBucket,
    PairState,
    Snapshot,
)
from lp_analytics.algo.ownership import OwnershipTracker


class PairReturnsContext(BaseModel):
    pair_id: str
    snapshots: list[Snapshot]
    day_timestamps: list[int]
    market_states: dict[int, PairState]
    current_state: PairState


class PairReturnsResult(BaseModel):
    pair_id: str
    buckets: list[BucketResult]
    cumulative: CumulativeReturns | None
    event_dates: list[int]


class PairReturnsRunner:
    """Runs the return decomposition over every day bucket of one pair."""

    def __init__(self, context: PairReturnsContext):
        self.context = context

    def run(self) -> PairReturnsResult:
        context = self.context
        snapshots = [s for s in context.snapshots if s.pair_id == context.pair_id]
        if not snapshots or not context.day_timestamps:
            return PairReturnsResult(
                pair_id=context.pair_id, buckets=[], cumulative=None, event_dates=[]
            )

        tracker = OwnershipTracker.for_pair(snapshots)
        decomposer = ReturnDecomposer(
            context.pair_id, CumulativeReturns.from_snapshot(tracker.snapshots[0])
        )

        buckets = []
        event_dates = []
        last_index = len(context.day_timestamps) - 1
        for i, day in enumerate(context.day_timestamps):
            position_t1 = self._market_state(i == last_index, day, decomposer)

            change = tracker.track(DayBucket(start_timestamp=day))
            if change is not None:
                position_t1 = change.to_position_state()
                event_dates.append(day)

            buckets.append(decomposer.step(day, position_t1, change is not None))

        return PairReturnsResult(
            pair_id=context.pair_id,
            buckets=buckets,
            cumulative=decomposer.cumulative,
            event_dates=event_dates,
        )

    def _market_state(
        self, is_today: bool, day: int, decomposer: ReturnDecomposer
    ) -> PairState:
        if is_today:
            return self.context.current_state
        state = self.context.market_states.get(day)
        if state is None:
            # no market data for the day: no drift against the last known state
            return decomposer.position_t0
        return state


def run_pair_returns(
    pair_id: str,
    snapshots: list[Snapshot],
    day_timestamps: list[int],
    market_states: dict[int, PairState],
    current_state: PairState,
) -> list[BucketResult]:
    context = PairReturnsContext(
        pair_id=pair_id,
        snapshots=snapshots,
        day_timestamps=day_timestamps,
        market_states=market_states,
        current_state=current_state,
    )
    return PairReturnsRunner(context).run().buckets

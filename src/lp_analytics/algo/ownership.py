from pydantic import BaseModel

from lp_analytics.algo.models import DayBucket, Snapshot


def sort_snapshots(snapshots: list[Snapshot]) -> list[Snapshot]:
    return sorted(snapshots, key=lambda s: s.timestamp)


def snapshots_in_bucket(snapshots: list[Snapshot], bucket: DayBucket) -> list[Snapshot]:
    return [s for s in snapshots if bucket.contains(s.timestamp)]


def latest_in_bucket(snapshots: list[Snapshot], bucket: DayBucket) -> Snapshot | None:
    """Most recent snapshot strictly inside the bucket, or None."""
    latest = None
    for snapshot in snapshots_in_bucket(snapshots, bucket):
        if latest is None or snapshot.timestamp > latest.timestamp:
            latest = snapshot
    return latest


class OwnershipTracker(BaseModel):
    """Ownership changes of a single pair, walked bucket by bucket."""

    snapshots: list[Snapshot]
    last_updated: int

    @classmethod
    def for_pair(cls, snapshots: list[Snapshot]) -> "OwnershipTracker":
        ordered = sort_snapshots(snapshots)
        return cls(snapshots=ordered, last_updated=ordered[0].timestamp)

    def change_in(self, bucket: DayBucket) -> Snapshot | None:
        candidate = latest_in_bucket(self.snapshots, bucket)
        if candidate is None or candidate.timestamp <= self.last_updated:
            return None
        return candidate

    def track(self, bucket: DayBucket) -> Snapshot | None:
        change = self.change_in(bucket)
        if change is not None:
            self.last_updated = change.timestamp
        return change


class BalanceTracker(BaseModel):
    """Latest LP token balance per pair across all of an account's positions."""

    balances: dict[str, float] = {}
    timestamps: dict[str, int] = {}

    def track(self, snapshots: list[Snapshot], bucket: DayBucket) -> None:
        for snapshot in snapshots_in_bucket(snapshots, bucket):
            seen = self.timestamps.get(snapshot.pair_id)
            if seen is None or seen < snapshot.timestamp:
                self.balances[snapshot.pair_id] = snapshot.liquidity_token_balance
                self.timestamps[snapshot.pair_id] = snapshot.timestamp

    @property
    def pair_ids(self) -> list[str]:
        return list(self.balances)

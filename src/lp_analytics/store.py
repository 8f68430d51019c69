from pydantic import BaseModel, Field

from lp_analytics.algo.models import BucketResult, LiquidityPoint, ReturnSummary, Snapshot
from lp_analytics.algo.ownership import sort_snapshots


class AccountCache(BaseModel):
    account: str
    generation: int
    snapshots: list[Snapshot]
    liquidity_history: dict[str, list[LiquidityPoint]] = Field(default_factory=dict)
    liquidity_chart: dict[str, list[LiquidityPoint]] = Field(default_factory=dict)
    pair_returns: dict[str, list[BucketResult]] = Field(default_factory=dict)
    summaries: dict[str, ReturnSummary] = Field(default_factory=dict)

    @property
    def pair_ids(self) -> list[str]:
        seen: dict[str, None] = {}
        for snapshot in self.snapshots:
            seen.setdefault(snapshot.pair_id, None)
        return list(seen)

    def pair_snapshots(self, pair_id: str) -> list[Snapshot]:
        return [s for s in self.snapshots if s.pair_id == pair_id]


class SnapshotStore:
    """
    Per-account cache of snapshots and everything derived from them.

    An account's entry is only ever replaced as a whole. Each replacement
    bumps the generation so results computed against an older entry can be
    recognised and dropped.
    """

    def __init__(self):
        self._accounts: dict[str, AccountCache] = {}
        self._generation = 0

    def get(self, account: str) -> AccountCache | None:
        return self._accounts.get(account.lower())

    def snapshots(self, account: str) -> list[Snapshot] | None:
        cache = self.get(account)
        return cache.snapshots if cache else None

    def replace(self, account: str, snapshots: list[Snapshot]) -> AccountCache:
        self._generation += 1
        cache = AccountCache(
            account=account.lower(),
            generation=self._generation,
            snapshots=sort_snapshots(snapshots),
        )
        self._accounts[cache.account] = cache
        return cache

    def invalidate(self, account: str) -> None:
        self._accounts.pop(account.lower(), None)

    def is_current(self, cache: AccountCache) -> bool:
        current = self._accounts.get(cache.account)
        return current is not None and current.generation == cache.generation

from sqlalchemy.orm import sessionmaker

from lp_analytics.algo.models import Snapshot
from lp_analytics.db.db import get_session_factory
from lp_analytics.db.db_models import Base, LiquidityPositionSnapshot

SNAPSHOT_COLUMNS = (
    "pair_id",
    "timestamp",
    "liquidity_token_balance",
    "liquidity_token_total_supply",
    "reserve0",
    "reserve1",
    "reserve_usd",
    "token0_price_usd",
    "token1_price_usd",
    "token0_id",
    "token1_id",
)


class SnapshotArchive:
    """Keeps the last fetched snapshots of each account in a SQL database."""

    def __init__(self, session_factory: sessionmaker | None = None):
        self.session_factory = session_factory or get_session_factory()
        Base.metadata.create_all(self.session_factory.kw["bind"])

    def save(self, account: str, snapshots: list[Snapshot]) -> None:
        account = account.lower()
        session = self.session_factory()
        try:
            session.query(LiquidityPositionSnapshot).filter(
                LiquidityPositionSnapshot.account == account
            ).delete()
            session.add_all(
                LiquidityPositionSnapshot(
                    account=account, **s.model_dump(include=set(SNAPSHOT_COLUMNS))
                )
                for s in snapshots
            )
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def load(self, account: str) -> list[Snapshot]:
        session = self.session_factory()
        try:
            rows = (
                session.query(LiquidityPositionSnapshot)
                .filter(LiquidityPositionSnapshot.account == account.lower())
                .order_by(LiquidityPositionSnapshot.timestamp.asc())
                .all()
            )
            return [
                Snapshot(**{column: getattr(row, column) for column in SNAPSHOT_COLUMNS})
                for row in rows
            ]
        finally:
            session.close()

from sqlalchemy import Float, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class LiquidityPositionSnapshot(Base):
    __tablename__ = "liquidity_position_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account: Mapped[str] = mapped_column(String(42), index=True)
    pair_id: Mapped[str] = mapped_column(String(42), index=True)
    timestamp: Mapped[int] = mapped_column(Integer, index=True)
    liquidity_token_balance: Mapped[float] = mapped_column(Float)
    liquidity_token_total_supply: Mapped[float] = mapped_column(Float)
    reserve0: Mapped[float] = mapped_column(Float)
    reserve1: Mapped[float] = mapped_column(Float)
    reserve_usd: Mapped[float] = mapped_column(Float)
    token0_price_usd: Mapped[float] = mapped_column(Float)
    token1_price_usd: Mapped[float] = mapped_column(Float)
    token0_id: Mapped[str | None] = mapped_column(String(42), nullable=True)
    token1_id: Mapped[str | None] = mapped_column(String(42), nullable=True)

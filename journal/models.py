# journal/models.py

from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Text, func
from journal.database import Base

class TradeRecord(Base):
    __tablename__ = "trades"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)  # Owner, the token's "sub" claim
    ticker = Column(String, index=True, nullable=False)
    entry_price = Column(Float, nullable=False)
    exit_price = Column(Float, nullable=True)  # NULL while the position is open
    size = Column(Float, nullable=False)
    confidence = Column(Integer, nullable=False)  # 1 (low) to 5 (high)
    setup_tag = Column(String, nullable=False, default="")
    emotion_tag = Column(String, nullable=False, default="")
    notes = Column(Text, nullable=False, default="")
    trade_date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    @property
    def is_closed(self) -> bool:
        return self.exit_price is not None

    @property
    def pnl(self):
        if self.exit_price is None:
            return None
        return (self.exit_price - self.entry_price) * self.size

class InsightRecord(Base):
    __tablename__ = "insights"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String, index=True, nullable=False)
    insight_type = Column(String, nullable=False, default="recommendation")
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    severity = Column(String, nullable=False, default="info")
    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)

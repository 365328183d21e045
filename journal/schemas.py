# journal/schemas.py

from enum import Enum
from pydantic import AliasChoices, BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional, List, Dict

class SetupTag(str, Enum):
    BREAKOUT = "Breakout"
    PULLBACK = "Pullback"
    SUPPORT_RESISTANCE = "Support/Resistance"
    MOVING_AVERAGE = "Moving Average"
    CHART_PATTERN = "Chart Pattern"
    NEWS_EVENT = "News Event"
    EARNINGS = "Earnings"
    OTHER = "Other"

class EmotionTag(str, Enum):
    CONFIDENT = "Confident"
    NERVOUS = "Nervous"
    EXCITED = "Excited"
    FEARFUL = "Fearful"
    GREEDY = "Greedy"
    CALM = "Calm"
    IMPULSIVE = "Impulsive"
    DISCIPLINED = "Disciplined"

# Bucket for empty or unrecognised tags during aggregation
UNSPECIFIED_TAG = "Unspecified"

class InsightType(str, Enum):
    PERFORMANCE = "performance"
    PATTERN = "pattern"
    RISK = "risk"
    RECOMMENDATION = "recommendation"

class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"

class TradeCreate(BaseModel):
    ticker: str = Field(min_length=1, max_length=16)
    entry_price: float = Field(ge=0)
    exit_price: Optional[float] = Field(default=None, ge=0)
    size: float = Field(gt=0)
    confidence: int = Field(default=3, ge=1, le=5)
    setup_tag: SetupTag
    emotion_tag: EmotionTag
    notes: str = ""
    trade_date: date = Field(default_factory=date.today)

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, value: str) -> str:
        return value.strip().upper()

    class Config:
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "ticker": "AAPL",
                "entry_price": 187.5,
                "exit_price": 192.25,
                "size": 50,
                "confidence": 4,
                "setup_tag": "Breakout",
                "emotion_tag": "Calm",
                "notes": "Clean break of the morning range on volume.",
                "trade_date": "2024-11-22"
            }
        }

class TradeUpdate(BaseModel):
    ticker: Optional[str] = Field(default=None, min_length=1, max_length=16)
    entry_price: Optional[float] = Field(default=None, ge=0)
    exit_price: Optional[float] = Field(default=None, ge=0)
    size: Optional[float] = Field(default=None, gt=0)
    confidence: Optional[int] = Field(default=None, ge=1, le=5)
    setup_tag: Optional[SetupTag] = None
    emotion_tag: Optional[EmotionTag] = None
    notes: Optional[str] = None
    trade_date: Optional[date] = None

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().upper() if value is not None else value

    class Config:
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "exit_price": 195.0,
                "notes": "Closed into strength at the prior high."
            }
        }

class TradeResponse(BaseModel):
    id: int
    ticker: str
    entry_price: float
    exit_price: Optional[float]
    size: float
    confidence: int
    setup_tag: str
    emotion_tag: str
    notes: str
    trade_date: date
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class InsightPayload(BaseModel):
    type: InsightType = InsightType.RECOMMENDATION
    title: str
    content: str
    severity: Severity = Severity.INFO

    class Config:
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "type": "performance",
                "title": "Strong Trading Performance",
                "content": "You've completed 10 trades with a 75% win rate, generating $500 in total P/L.",
                "severity": "success"
            }
        }

class InsightResponse(BaseModel):
    id: int
    type: str = Field(validation_alias=AliasChoices("insight_type", "type"))
    title: str
    content: str
    severity: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class GenerateInsightsResponse(BaseModel):
    insights: List[InsightPayload]

class StoredInsightsResponse(BaseModel):
    insights: List[InsightResponse]

class EquityPoint(BaseModel):
    trade_date: date
    equity: float
    trade: str

class MonthlyPL(BaseModel):
    month: str
    pl: float

class PortfolioSummary(BaseModel):
    range: str
    total_trades: int
    closed_trades: int
    open_trades: int
    total_pl: float
    win_rate: float
    avg_win: float
    avg_loss: float
    equity_curve: List[EquityPoint]
    setup_distribution: Dict[str, int]
    monthly_pl: List[MonthlyPL]

class APIResponse(BaseModel):
    status: str
    trade: Optional[TradeResponse] = None
    trades: Optional[List[TradeResponse]] = None
    message: Optional[str] = None
    error: Optional[str] = None

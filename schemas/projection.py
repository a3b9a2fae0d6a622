from pydantic import BaseModel, Field
from typing import Literal



class SeasonInfo(BaseModel):
    """Current season label and its default sync window."""

    season: str
    window_start: str
    window_end: str


class BetProfitRequest(BaseModel):
    stake: float = Field(gt=0, description="Amount wagered")
    odds: float = Field(description="American odds, e.g. -110 or 150")
    outcome: Literal["win", "loss", "push"]


class BetProfitData(BaseModel):
    stake: float
    odds: float
    outcome: str
    profit: float

# washdesk/schemas/loyalty.py
from pydantic import BaseModel
from typing import Literal, Optional


class LoyaltyAction(BaseModel):
    action: Literal["add", "redeem"]


class LoyaltyOut(BaseModel):
    points: int
    stamps: int
    goal: int
    rewards_available: int
    completed: bool = False
    message: Optional[str] = None

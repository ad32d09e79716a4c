from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Literal

class SplitInput(BaseModel):
    user_id: int
    # ignored for the "equal" strategy
    amount: Decimal | None = Field(default=None, max_digits=12, decimal_places=2)

class ExpenseCreate(BaseModel):
    description: str = Field(min_length=1)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    paid_by: int
    strategy: Literal["equal", "exact"] = "exact"
    splits: List[SplitInput] = Field(min_length=1)

class SplitOut(BaseModel):
    user_id: int
    amount: str

class ExpenseOut(BaseModel):
    id: int
    group_id: int
    description: str
    amount: str
    paid_by: int
    strategy: str
    splits: List[SplitOut]

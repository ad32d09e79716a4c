from pydantic import BaseModel

class Settlement(BaseModel):
    from_id: int
    from_name: str | None
    to_id: int
    to_name: str | None
    amount: str

class GroupSettledOut(BaseModel):
    group_id: int
    settled: bool

class GroupBalanceOut(BaseModel):
    net: dict[int, str]
    settled: bool
    settlements: list[Settlement]

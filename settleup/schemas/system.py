from pydantic import BaseModel

class HealthOut(BaseModel):
    status: str

class DbHealthOut(BaseModel):
    db: bool
    message: str

class MetricsOut(BaseModel):
    users: int
    groups: int
    expenses: int

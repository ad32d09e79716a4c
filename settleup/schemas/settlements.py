from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_serializer
from datetime import datetime

class SettlementCreate(BaseModel):
    group_id: int
    payer_id: int
    payee_id: int
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)

class SettlementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    group_id: int
    payer_id: int
    payee_id: int
    amount: Decimal
    created_at: datetime | None = None

    @field_serializer("amount")
    def serialize_amount(self, amount: Decimal):
        return f"{amount:.2f}"

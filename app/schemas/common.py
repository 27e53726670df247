# app/schemas/common.py
import math
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, PlainSerializer


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = math.ceil(total / limit) if limit > 0 else 0
        return cls(current_page=page, total_pages=total_pages, total_items=total)


class MessageResponse(BaseModel):
    message: str


# Money is held as Decimal and written to JSON as a number
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

from typing import Optional
from sqlmodel import SQLModel


class CartInitRequest(SQLModel):
    anonymous_id: Optional[str] = None


class CartAddRequest(SQLModel):
    cart_id: int
    course_id: int
    session_id: Optional[int] = None
    qty: int = 1


class CartMergeRequest(SQLModel):
    anonymous_id: str


class WishlistAddRequest(SQLModel):
    course_id: int

"""
Pydantic schemas for API requests and JSON serializers for responses
"""

from decimal import Decimal
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field

from ..accounts import User
from ..favorites import FavoriteEntry
from ..history import Transfer


ACCOUNT_PATTERN = r"^\d{6}$"
EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"


# User schemas
class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)


# Transfer schemas
class TransferRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    to_account: str = Field(..., alias="toAccount", pattern=ACCOUNT_PATTERN,
                            description="6-digit destination account")
    amount: Decimal = Field(..., gt=0, decimal_places=2, description="Amount with up to two decimals")
    description: Optional[str] = Field(None, max_length=255)


# Favorite schemas
class FavoriteRequest(BaseModel):
    account: str = Field(..., pattern=ACCOUNT_PATTERN, description="6-digit account to favorite")


def serialize_user(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "account": user.account,
        "balance": user.balance,
        "createdAt": user.created_at,
        "updatedAt": user.updated_at,
    }


def serialize_transfer(transfer: Transfer) -> Dict[str, Any]:
    return {
        "id": transfer.id,
        "fromAccount": transfer.from_account,
        "toAccount": transfer.to_account,
        "amount": transfer.amount,
        "description": transfer.description,
        "isFavorite": transfer.is_favorite,
        "status": transfer.status.value,
        "createdAt": transfer.created_at,
    }


def serialize_favorite(entry: FavoriteEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "account": entry.account,
        "name": entry.name,
        "createdAt": entry.created_at,
    }

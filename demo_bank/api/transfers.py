"""
Transfer and favorite endpoints
"""

from fastapi import APIRouter, Depends, status

from .auth import BankingSystem, get_banking_system, get_current_user_id
from .errors import http_error
from .schemas import (
    FavoriteRequest, TransferRequest,
    serialize_favorite, serialize_transfer
)
from ..errors import BankingError


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_transfer(
    request: TransferRequest,
    user_id: int = Depends(get_current_user_id),
    system: BankingSystem = Depends(get_banking_system)
):
    """Transfer money from the authenticated user to another account"""
    try:
        transfer = system.transfer_engine.create_transfer(
            user_id,
            to_account=request.to_account,
            amount=request.amount,
            description=request.description
        )
    except BankingError as e:
        raise http_error(e)

    return {
        "message": "Transfer completed successfully",
        "data": serialize_transfer(transfer)
    }


@router.get("")
async def list_transfers(
    user_id: int = Depends(get_current_user_id),
    system: BankingSystem = Depends(get_banking_system)
):
    """List transfers sent or received by the authenticated user"""
    try:
        transfers = system.transfer_engine.get_transfers_for_user(user_id)
    except BankingError as e:
        raise http_error(e)

    return {
        "message": "Transfers retrieved successfully",
        "data": [serialize_transfer(transfer) for transfer in transfers]
    }


@router.post("/favorites", status_code=status.HTTP_201_CREATED)
async def add_favorite(
    request: FavoriteRequest,
    user_id: int = Depends(get_current_user_id),
    system: BankingSystem = Depends(get_banking_system)
):
    """Add an account to the authenticated user's favorites"""
    try:
        favorite = system.favorites.add_favorite(user_id, request.account)
    except BankingError as e:
        raise http_error(e)

    return {
        "message": "Favorite added successfully",
        "data": serialize_favorite(system.favorites.describe(favorite))
    }


@router.get("/favorites")
async def list_favorites(
    user_id: int = Depends(get_current_user_id),
    system: BankingSystem = Depends(get_banking_system)
):
    """List the authenticated user's favorites"""
    return {
        "message": "Favorites retrieved successfully",
        "data": [serialize_favorite(entry) for entry in system.favorites.list_favorites(user_id)]
    }


@router.delete("/favorites/{favorite_id}")
async def remove_favorite(
    favorite_id: str,
    user_id: int = Depends(get_current_user_id),
    system: BankingSystem = Depends(get_banking_system)
):
    """Remove one of the authenticated user's favorites"""
    try:
        system.favorites.remove_favorite(user_id, favorite_id)
    except BankingError as e:
        raise http_error(e)

    return {"message": "Favorite removed successfully"}

"""
User endpoints
"""

from fastapi import APIRouter, Depends, status

from .auth import BankingSystem, get_banking_system, get_current_user_id
from .errors import http_error
from .schemas import LoginRequest, RegisterRequest, serialize_user
from ..errors import BankingError


router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    system: BankingSystem = Depends(get_banking_system)
):
    """Register a new user with the starting balance"""
    try:
        user = system.auth_service.register(request.name, request.email, request.password)
    except BankingError as e:
        raise http_error(e)

    return {
        "message": "User created successfully",
        "data": serialize_user(user)
    }


@router.post("/login")
def login(
    request: LoginRequest,
    system: BankingSystem = Depends(get_banking_system)
):
    """Exchange email and password for a bearer token"""
    try:
        result = system.auth_service.login(request.email, request.password)
    except BankingError as e:
        raise http_error(e)

    return {
        "message": "Login successful",
        "data": {
            "token": result["token"],
            "user": serialize_user(result["user"])
        }
    }


@router.get("")
async def list_users(
    user_id: int = Depends(get_current_user_id),
    system: BankingSystem = Depends(get_banking_system)
):
    """List all users"""
    return {
        "message": "Users retrieved successfully",
        "data": [serialize_user(user) for user in system.ledger.list_users()]
    }


@router.get("/profile")
async def get_profile(
    user_id: int = Depends(get_current_user_id),
    system: BankingSystem = Depends(get_banking_system)
):
    """Get the authenticated user's profile"""
    try:
        user = system.ledger.get_user(user_id)
    except BankingError as e:
        raise http_error(e)

    return {
        "message": "Profile retrieved successfully",
        "data": serialize_user(user)
    }


@router.get("/balance")
async def get_balance(
    user_id: int = Depends(get_current_user_id),
    system: BankingSystem = Depends(get_banking_system)
):
    """Get the authenticated user's balance"""
    try:
        balance = system.ledger.get_balance(user_id)
    except BankingError as e:
        raise http_error(e)

    return {
        "message": "Balance retrieved successfully",
        "data": {"balance": balance}
    }

"""
Domain Errors Module

Typed errors raised by the banking core. Every error is a ValueError
subclass with a stable ``code`` so callers can branch on the kind of
failure without parsing messages. Translating an error into a transport
status is the job of the API layer.
"""


class BankingError(ValueError):
    """Base class for all banking rule violations"""
    code = "banking_error"
    default_message = "Banking operation failed"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)


# Malformed input

class InvalidRequest(BankingError):
    code = "invalid_request"
    default_message = "Required fields are missing"


class InvalidAmount(BankingError):
    code = "invalid_amount"
    default_message = "Amount must be a number greater than zero"


# Failed lookups

class UserNotFound(BankingError):
    code = "user_not_found"
    default_message = "User not found"


class SenderNotFound(BankingError):
    code = "sender_not_found"
    default_message = "Sender not found"


class DestinationNotFound(BankingError):
    code = "destination_not_found"
    default_message = "Destination account not found"


class AccountNotFound(BankingError):
    code = "account_not_found"
    default_message = "Account not found"


class FavoriteNotFound(BankingError):
    code = "favorite_not_found"
    default_message = "Favorite not found"


# Business rules

class SelfTransferForbidden(BankingError):
    code = "self_transfer_forbidden"
    default_message = "Cannot transfer to your own account"


class SelfFavoriteForbidden(BankingError):
    code = "self_favorite_forbidden"
    default_message = "Cannot add your own account as a favorite"


class InsufficientFunds(BankingError):
    code = "insufficient_funds"
    default_message = "Insufficient funds"


class FavoriteRequiredForLargeAmount(BankingError):
    code = "favorite_required_for_large_amount"
    default_message = "Transfers above the ceiling are only allowed to favorite recipients"


class AlreadyFavorite(BankingError):
    code = "already_favorite"
    default_message = "Account is already a favorite"


class DuplicateEmail(BankingError):
    code = "duplicate_email"
    default_message = "A user with this email already exists"


# Authentication

class InvalidCredentials(BankingError):
    code = "invalid_credentials"
    default_message = "Invalid credentials"


class InvalidToken(BankingError):
    code = "invalid_token"
    default_message = "Invalid token"

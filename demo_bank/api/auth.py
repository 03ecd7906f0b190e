"""
Authentication and authorization dependencies
"""

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..storage import InMemoryStorage
from ..accounts import AccountStore
from ..ledger import UserLedger
from ..favorites import FavoritesRegistry
from ..history import TransferHistory
from ..transfers import TransferEngine
from ..auth import AuthService
from ..config import BankingConfig, get_config
from ..errors import InvalidToken
from .errors import http_error


class BankingSystem:
    """Banking system with all components wired to one storage"""

    def __init__(self, config: BankingConfig = None):
        self.config = config or get_config()
        self.storage = InMemoryStorage()

        self.account_store = AccountStore(self.storage)
        self.ledger = UserLedger(self.account_store, self.config.starting_balance)
        self.favorites = FavoritesRegistry(self.storage, self.account_store)
        self.history = TransferHistory(self.storage)
        self.transfer_engine = TransferEngine(
            self.account_store, self.ledger, self.favorites, self.history,
            favorite_ceiling=self.config.favorite_ceiling,
            default_description=self.config.default_transfer_description
        )
        self.auth_service = AuthService(self.ledger, self.config)


# Global banking system instance
banking_system = BankingSystem()


# Dependency to get banking system
def get_banking_system() -> BankingSystem:
    return banking_system


security = HTTPBearer(auto_error=False)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    system: BankingSystem = Depends(get_banking_system)
) -> int:
    """Dependency that validates the bearer token and returns the user id"""
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail={"error": "Not authenticated", "code": "not_authenticated"}
        )
    try:
        return system.auth_service.verify_token(credentials.credentials)
    except InvalidToken as e:
        raise http_error(e)

"""
Favorites Registry Module

A favorite records that an owner trusts a recipient account. Favorites
exempt transfers to that account from the large-amount ceiling. Each
(owner, account) pair exists at most once, owners cannot favorite their
own account, and only the owner can remove a favorite.
"""

from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .accounts import AccountStore
from .storage import StorageInterface, StorageRecord
from .errors import (
    AccountNotFound, AlreadyFavorite, BankingError, FavoriteNotFound,
    SelfFavoriteForbidden, UserNotFound
)
from .logging_config import get_logger, log_action


@dataclass
class Favorite(StorageRecord):
    """Favorite recipient of an owner"""
    owner_id: int
    favorited_user_id: int
    account: str


@dataclass
class FavoriteEntry:
    """Favorite joined with the current name of the favorited user"""
    id: int
    account: str
    name: Optional[str]
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "account": self.account,
            "name": self.name,
            "created_at": self.created_at,
        }


class FavoritesRegistry:
    """
    Manages the favorite relation between users and accounts
    """

    def __init__(self, storage: StorageInterface, account_store: AccountStore,
                 table_name: str = "favorites"):
        self.storage = storage
        self.account_store = account_store
        self.table_name = table_name
        self.logger = get_logger("demo_bank.favorites")

    def add_favorite(self, owner_id: int, account: str) -> Favorite:
        """
        Add an account to the owner's favorites

        Raises:
            AccountNotFound: no user owns the account
            UserNotFound: the owner does not exist
            SelfFavoriteForbidden: the account is the owner's own
            AlreadyFavorite: the pair is already recorded
        """
        try:
            with self.storage.atomic():
                target = self.account_store.find_by_account_number(account)
                if target is None:
                    raise AccountNotFound()

                owner = self.account_store.find_by_id(owner_id)
                if owner is None:
                    raise UserNotFound()

                if owner.account == account:
                    raise SelfFavoriteForbidden()

                if self.is_favorite(owner.id, account):
                    raise AlreadyFavorite()

                now = datetime.now(timezone.utc)
                favorite = Favorite(
                    id=self.storage.next_id(self.table_name),
                    created_at=now,
                    updated_at=now,
                    owner_id=owner.id,
                    favorited_user_id=target.id,
                    account=account
                )
                self.storage.save(self.table_name, favorite.id, favorite.to_dict())
        except BankingError as e:
            log_action(
                self.logger, "warning", "Favorite rejected",
                user_id=owner_id, action="add_favorite", resource=f"account:{account}",
                extra={"code": e.code}
            )
            raise

        log_action(
            self.logger, "info", "Favorite added",
            user_id=owner.id, action="add_favorite", resource=f"favorite:{favorite.id}",
            extra={"account": account}
        )
        return favorite

    def is_favorite(self, owner_id: Any, account: str) -> bool:
        owner_id = _as_int(owner_id)
        if owner_id is None:
            return False
        matches = self.storage.find(self.table_name, {"owner_id": owner_id, "account": account})
        return len(matches) > 0

    def get_favorites(self, owner_id: Any) -> List[Favorite]:
        owner_id = _as_int(owner_id)
        if owner_id is None:
            return []
        return [
            Favorite.from_dict(data)
            for data in self.storage.find(self.table_name, {"owner_id": owner_id})
        ]

    def list_favorites(self, owner_id: Any) -> List[FavoriteEntry]:
        """List the owner's favorites with the favorited user's current name"""
        return [self.describe(favorite) for favorite in self.get_favorites(owner_id)]

    def describe(self, favorite: Favorite) -> FavoriteEntry:
        target = self.account_store.find_by_id(favorite.favorited_user_id)
        return FavoriteEntry(
            id=favorite.id,
            account=favorite.account,
            name=target.name if target else None,
            created_at=favorite.created_at
        )

    def remove_favorite(self, owner_id: Any, favorite_id: Any) -> None:
        """
        Remove one of the owner's favorites

        A favorite belonging to someone else is reported exactly like a
        missing one.

        Raises:
            FavoriteNotFound: no favorite with this id belongs to the owner
        """
        with self.storage.atomic():
            owner = _as_int(owner_id)
            record_id = _as_int(favorite_id)
            data = self.storage.load(self.table_name, record_id) if record_id is not None else None
            if data is None or owner is None or data['owner_id'] != owner:
                log_action(
                    self.logger, "warning", "Favorite removal rejected",
                    user_id=owner, action="remove_favorite",
                    resource=f"favorite:{favorite_id}",
                    extra={"code": FavoriteNotFound.code}
                )
                raise FavoriteNotFound()
            self.storage.delete(self.table_name, record_id)

        log_action(
            self.logger, "info", "Favorite removed",
            user_id=owner, action="remove_favorite", resource=f"favorite:{record_id}"
        )


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None

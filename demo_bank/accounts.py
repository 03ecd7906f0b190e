"""
Account Store Module

Holds user/account records. Each user owns exactly one account, identified
publicly by a random 6-digit account number. Lookups by id, email and
account number go through in-memory indexes, fall back to a storage query on
a miss and return None when nothing matches; deciding whether absence is
an error is left to the caller.
"""

from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import secrets

from .storage import StorageInterface, StorageRecord


CENTS = Decimal('0.01')
ACCOUNT_NUMBER_DIGITS = 6


def to_money(value: Any) -> Decimal:
    """Convert a value to a Decimal rounded to two places"""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass
class User(StorageRecord):
    """
    Bank user together with the single account they own
    """
    name: str
    email: str
    password_hash: str
    account: str
    balance: Decimal

    def to_public_dict(self) -> Dict[str, Any]:
        """Serializable view without the password hash"""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "account": self.account,
            "balance": self.balance,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        data = dict(data)
        data['balance'] = Decimal(data['balance'])
        return super().from_dict(data)


class AccountStore:
    """
    In-memory collection of users keyed by id, email and account number
    """

    def __init__(self, storage: StorageInterface, table_name: str = "users"):
        self.storage = storage
        self.table_name = table_name
        self._ids_by_email: Dict[str, int] = {}
        self._ids_by_account: Dict[str, int] = {}
        self._load_indexes()

    def _load_indexes(self) -> None:
        """Rebuild lookup indexes from whatever the storage already holds"""
        for data in self.storage.load_all(self.table_name):
            self._ids_by_email[data['email']] = data['id']
            self._ids_by_account[data['account']] = data['id']

    def generate_account_number(self) -> str:
        """Generate a 6-digit account number not used by any existing user"""
        while True:
            candidate = f"{secrets.randbelow(10 ** ACCOUNT_NUMBER_DIGITS):0{ACCOUNT_NUMBER_DIGITS}d}"
            if self.find_by_account_number(candidate) is None:
                return candidate

    def create_account(
        self,
        balance: Decimal,
        name: str,
        email: str,
        password_hash: str
    ) -> str:
        """
        Store a new user with a freshly generated account number

        Args:
            balance: Opening balance
            name: Display name
            email: Login email (uniqueness is checked by the caller)
            password_hash: Already hashed password

        Returns:
            The new account number
        """
        with self.storage.atomic():
            now = datetime.now(timezone.utc)
            account_number = self.generate_account_number()
            user = User(
                id=self.storage.next_id(self.table_name),
                created_at=now,
                updated_at=now,
                name=name,
                email=email,
                password_hash=password_hash,
                account=account_number,
                balance=to_money(balance)
            )
            self.save(user)
        return account_number

    def save(self, user: User) -> None:
        """Persist a user and refresh the lookup indexes"""
        self.storage.save(self.table_name, user.id, user.to_dict())
        self._ids_by_email[user.email] = user.id
        self._ids_by_account[user.account] = user.id

    def find_by_id(self, user_id: Any) -> Optional[User]:
        """Find a user by id; string ids are accepted"""
        try:
            user_id = int(user_id)
        except (TypeError, ValueError):
            return None
        data = self.storage.load(self.table_name, user_id)
        return User.from_dict(data) if data else None

    def find_by_email(self, email: str) -> Optional[User]:
        return self._lookup(self._ids_by_email, "email", email)

    def find_by_account_number(self, account: str) -> Optional[User]:
        return self._lookup(self._ids_by_account, "account", account)

    def _lookup(self, index: Dict[str, int], field_name: str, value: str) -> Optional[User]:
        user_id = index.get(value)
        user = self.find_by_id(user_id) if user_id is not None else None
        if user is not None and getattr(user, field_name) == value:
            return user

        # Storage is authoritative: the index misses writes made through
        # another store and may keep entries of rolled back inserts
        index.pop(value, None)
        matches = self.storage.find(self.table_name, {field_name: value})
        if not matches:
            return None
        user = User.from_dict(matches[0])
        index[value] = user.id
        return user

    def list_all(self) -> List[User]:
        return [User.from_dict(data) for data in self.storage.load_all(self.table_name)]

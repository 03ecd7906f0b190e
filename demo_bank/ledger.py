"""
User Ledger Module

Owns user creation and every balance mutation. Balances only change through
adjust_balance, which the transfer engine calls once to debit the sender and
once to credit the recipient.
"""

from decimal import Decimal
from datetime import datetime, timezone
from typing import Any, List

from .accounts import AccountStore, User, to_money
from .config import get_config
from .errors import DuplicateEmail, UserNotFound
from .logging_config import get_logger, log_action


class UserLedger:
    """
    Balance-holding subsystem for users
    """

    def __init__(self, account_store: AccountStore, starting_balance: Any = None):
        self.account_store = account_store
        self.storage = account_store.storage
        if starting_balance is None:
            starting_balance = get_config().starting_balance
        self.starting_balance = to_money(starting_balance)
        self.logger = get_logger("demo_bank.ledger")

    def create_user(self, name: str, email: str, password_hash: str) -> User:
        """
        Register a new user with the starting balance

        Raises:
            DuplicateEmail: if a user with this email already exists
        """
        with self.storage.atomic():
            if self.account_store.find_by_email(email) is not None:
                log_action(
                    self.logger, "warning", "User creation rejected",
                    action="create_user", extra={"code": DuplicateEmail.code}
                )
                raise DuplicateEmail()

            account = self.account_store.create_account(
                self.starting_balance, name=name, email=email, password_hash=password_hash
            )
            user = self.account_store.find_by_account_number(account)

        log_action(
            self.logger, "info", "User created",
            user_id=user.id, action="create_user", resource=f"account:{user.account}",
            extra={"balance": str(user.balance)}
        )
        return user

    def get_user(self, user_id: Any) -> User:
        user = self.account_store.find_by_id(user_id)
        if user is None:
            raise UserNotFound()
        return user

    def list_users(self) -> List[User]:
        return self.account_store.list_all()

    def get_balance(self, user_id: Any) -> Decimal:
        return self.get_user(user_id).balance

    def rename_user(self, user_id: Any, name: str) -> User:
        """Change a user's display name"""
        with self.storage.atomic():
            user = self.get_user(user_id)
            user.name = name
            user.updated_at = datetime.now(timezone.utc)
            self.account_store.save(user)
        log_action(
            self.logger, "info", "User renamed",
            user_id=user.id, action="rename_user", resource=f"account:{user.account}"
        )
        return user

    def adjust_balance(self, user_id: Any, delta: Any) -> User:
        """
        Add delta to a user's balance.

        The sign of delta decides debit or credit. Sufficiency is not checked
        here; the transfer engine validates against the balance before calling.

        Raises:
            UserNotFound: if the user id is unknown
        """
        with self.storage.atomic():
            user = self.get_user(user_id)
            user.balance = to_money(user.balance + to_money(delta))
            user.updated_at = datetime.now(timezone.utc)
            self.account_store.save(user)

        log_action(
            self.logger, "debug", "Balance adjusted",
            user_id=user.id, action="adjust_balance", resource=f"account:{user.account}",
            extra={"delta": str(to_money(delta)), "balance": str(user.balance)}
        )
        return user

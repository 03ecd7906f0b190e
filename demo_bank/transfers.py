"""
Transfer Engine Module

Validates and executes transfers between accounts. Validation runs in a
fixed order and the first failing check wins:

1. destination account and amount are present
2. amount is a finite number greater than zero with at most two decimals
3. sender exists
4. destination account exists
5. sender and destination differ
6. sender balance covers the amount
7. amounts above the ceiling go only to favorite recipients

A successful transfer debits the sender, credits the recipient and appends
one history record, all inside a single storage transaction.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from .accounts import AccountStore, to_money
from .config import get_config
from .errors import (
    BankingError, DestinationNotFound, FavoriteRequiredForLargeAmount,
    InsufficientFunds, InvalidAmount, InvalidRequest, SelfTransferForbidden,
    SenderNotFound
)
from .favorites import FavoritesRegistry
from .history import Transfer, TransferHistory
from .ledger import UserLedger
from .logging_config import get_logger, log_action


class TransferEngine:
    """
    Orchestrates transfers across the account store, favorites registry,
    ledger and history
    """

    def __init__(
        self,
        account_store: AccountStore,
        ledger: UserLedger,
        favorites: FavoritesRegistry,
        history: TransferHistory,
        favorite_ceiling: Any = None,
        default_description: Optional[str] = None
    ):
        self.account_store = account_store
        self.ledger = ledger
        self.favorites = favorites
        self.history = history
        self.storage = account_store.storage

        config = get_config()
        if favorite_ceiling is None:
            favorite_ceiling = config.favorite_ceiling
        self.favorite_ceiling = to_money(favorite_ceiling)
        self.default_description = default_description or config.default_transfer_description
        self.logger = get_logger("demo_bank.transfers")

    def create_transfer(
        self,
        sender_id: int,
        to_account: Optional[str],
        amount: Any,
        description: Optional[str] = None
    ) -> Transfer:
        """
        Move money from the sender's account to another account

        Args:
            sender_id: Authenticated id of the sending user
            to_account: 6-digit destination account number
            amount: Positive amount with at most two decimals
            description: Optional free text, defaults to a generic label

        Returns:
            The completed Transfer record

        Raises:
            InvalidRequest, InvalidAmount, SenderNotFound, DestinationNotFound,
            SelfTransferForbidden, InsufficientFunds,
            FavoriteRequiredForLargeAmount
        """
        try:
            with self.storage.atomic():
                transfer = self._execute(sender_id, to_account, amount, description)
        except BankingError as e:
            log_action(
                self.logger, "warning", "Transfer rejected",
                user_id=sender_id, action="create_transfer",
                resource=f"account:{to_account}",
                extra={"code": e.code, "amount": str(amount)}
            )
            raise

        log_action(
            self.logger, "info", "Transfer completed",
            user_id=sender_id, action="create_transfer", resource=f"transfer:{transfer.id}",
            extra={
                "from_account": transfer.from_account,
                "to_account": transfer.to_account,
                "amount": str(transfer.amount),
                "is_favorite": transfer.is_favorite
            }
        )
        return transfer

    def _execute(self, sender_id, to_account, amount, description) -> Transfer:
        if not to_account or amount is None:
            raise InvalidRequest("Destination account and amount are required")

        value = self._parse_amount(amount)
        description = self._describe(description)

        sender = self.account_store.find_by_id(sender_id)
        if sender is None:
            raise SenderNotFound()

        recipient = self.account_store.find_by_account_number(to_account)
        if recipient is None:
            raise DestinationNotFound()

        if sender.account == to_account:
            raise SelfTransferForbidden()

        if sender.balance < value:
            raise InsufficientFunds()

        is_favorite = self.favorites.is_favorite(sender.id, to_account)
        if value > self.favorite_ceiling and not is_favorite:
            raise FavoriteRequiredForLargeAmount(
                f"Transfers above {self.favorite_ceiling} are only allowed to favorite recipients"
            )

        self.ledger.adjust_balance(sender.id, -value)
        self.ledger.adjust_balance(recipient.id, value)

        return self.history.append(
            from_account=sender.account,
            to_account=to_account,
            amount=value,
            description=description,
            is_favorite=is_favorite
        )

    @staticmethod
    def _parse_amount(amount: Any) -> Decimal:
        """Positive amount with at most two decimals; sub-cent amounts are rejected, not rounded"""
        if isinstance(amount, bool):
            raise InvalidAmount()
        try:
            value = Decimal(str(amount))
            exact = value.is_finite() and value == to_money(value)
        except (InvalidOperation, ValueError):
            exact = False
        if not exact or value <= Decimal('0'):
            raise InvalidAmount()
        return to_money(value)

    def _describe(self, description: Any) -> str:
        if description is None:
            return self.default_description
        text = str(description)
        return text if text.strip() else self.default_description

    def get_transfers_by_account(self, account: str) -> List[Transfer]:
        """Transfers where the account is source or destination, oldest first"""
        return self.history.by_account(account)

    def get_transfers_for_user(self, user_id: Any) -> List[Transfer]:
        """Transfers involving the user's account"""
        user = self.ledger.get_user(user_id)
        return self.history.by_account(user.account)

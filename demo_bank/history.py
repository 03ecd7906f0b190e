"""
Transfer History Module

Append-only log of completed transfers, queryable by participant account.
Results come back in insertion order.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from .storage import StorageInterface, StorageRecord


class TransferStatus(Enum):
    """Transfers are recorded only once both balance mutations happened"""
    COMPLETED = "completed"


@dataclass
class Transfer(StorageRecord):
    """Immutable record of a money movement between two accounts"""
    from_account: str
    to_account: str
    amount: Decimal
    description: str
    is_favorite: bool
    status: TransferStatus = TransferStatus.COMPLETED

    def __post_init__(self):
        if self.amount <= Decimal('0'):
            raise ValueError("Transfer amount must be positive")

    def involves(self, account: str) -> bool:
        return account in (self.from_account, self.to_account)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['status'] = self.status.value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transfer':
        data = dict(data)
        data['amount'] = Decimal(data['amount'])
        data['status'] = TransferStatus(data['status'])
        return super().from_dict(data)


class TransferHistory:
    """
    Ordered log of transfers
    """

    def __init__(self, storage: StorageInterface, table_name: str = "transfers"):
        self.storage = storage
        self.table_name = table_name

    def append(
        self,
        from_account: str,
        to_account: str,
        amount: Decimal,
        description: str,
        is_favorite: bool
    ) -> Transfer:
        """Record a completed transfer and return it"""
        now = datetime.now(timezone.utc)
        transfer = Transfer(
            id=self.storage.next_id(self.table_name),
            created_at=now,
            updated_at=now,
            from_account=from_account,
            to_account=to_account,
            amount=amount,
            description=description,
            is_favorite=is_favorite
        )
        self.storage.save(self.table_name, transfer.id, transfer.to_dict())
        return transfer

    def get_transfer(self, transfer_id: int) -> Optional[Transfer]:
        data = self.storage.load(self.table_name, transfer_id)
        return Transfer.from_dict(data) if data else None

    def all(self) -> List[Transfer]:
        return [Transfer.from_dict(data) for data in self.storage.load_all(self.table_name)]

    def by_account(self, account: str) -> List[Transfer]:
        """All transfers where the account is source or destination"""
        return [transfer for transfer in self.all() if transfer.involves(account)]

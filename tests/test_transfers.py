"""
Test suite for the transfer engine and transfer history

Tests validation order, the favorite ceiling, balance conservation,
rollback on failure and concurrent transfers from the same sender.
"""

import threading
from decimal import Decimal
from unittest.mock import patch

import pytest

from demo_bank.storage import InMemoryStorage
from demo_bank.accounts import AccountStore
from demo_bank.ledger import UserLedger
from demo_bank.favorites import FavoritesRegistry
from demo_bank.history import Transfer, TransferHistory, TransferStatus
from demo_bank.transfers import TransferEngine
from demo_bank.errors import (
    BankingError, DestinationNotFound, FavoriteRequiredForLargeAmount, InsufficientFunds,
    InvalidAmount, InvalidRequest, SelfTransferForbidden, SenderNotFound
)


class TransferTestCase:
    """Shared setup: two users with 1000.00 each"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.account_store = AccountStore(self.storage)
        self.ledger = UserLedger(self.account_store, starting_balance="1000")
        self.favorites = FavoritesRegistry(self.storage, self.account_store)
        self.history = TransferHistory(self.storage)
        self.engine = TransferEngine(
            self.account_store, self.ledger, self.favorites, self.history,
            favorite_ceiling="5000", default_description="Transfer"
        )

        self.alice = self.ledger.create_user("Alice", "alice@example.com", "salt$hash")
        self.bob = self.ledger.create_user("Bob", "bob@example.com", "salt$hash")

    def balance(self, user):
        return self.ledger.get_balance(user.id)

    def fund(self, user, amount):
        self.ledger.adjust_balance(user.id, Decimal(amount))

    def unused_account(self):
        return self.account_store.generate_account_number()


class TestCreateTransfer(TransferTestCase):
    """Test successful transfers"""

    def test_transfer_moves_money(self):
        transfer = self.engine.create_transfer(
            self.alice.id, self.bob.account, Decimal("100"), "Rent"
        )

        assert transfer.id == 1
        assert transfer.from_account == self.alice.account
        assert transfer.to_account == self.bob.account
        assert transfer.amount == Decimal("100.00")
        assert transfer.description == "Rent"
        assert transfer.is_favorite is False
        assert transfer.status == TransferStatus.COMPLETED

        assert self.balance(self.alice) == Decimal("900.00")
        assert self.balance(self.bob) == Decimal("1100.00")

    def test_balance_conservation(self):
        before = self.balance(self.alice) + self.balance(self.bob)

        for amount in ("0.01", "10.50", "333.33", "99.99"):
            self.engine.create_transfer(self.alice.id, self.bob.account, amount)
            self.engine.create_transfer(self.bob.id, self.alice.account, "1.10")

        assert self.balance(self.alice) + self.balance(self.bob) == before

    def test_default_description(self):
        transfer = self.engine.create_transfer(self.alice.id, self.bob.account, 10)
        blank = self.engine.create_transfer(self.alice.id, self.bob.account, 10, "   ")

        assert transfer.description == "Transfer"
        assert blank.description == "Transfer"

    def test_non_string_description_is_stored_as_text(self):
        transfer = self.engine.create_transfer(self.alice.id, self.bob.account, 10, 123)

        assert transfer.description == "123"
        assert self.history.get_transfer(transfer.id).description == "123"

    def test_amount_accepts_numbers_and_strings(self):
        self.engine.create_transfer(self.alice.id, self.bob.account, 10)
        self.engine.create_transfer(self.alice.id, self.bob.account, 10.25)
        self.engine.create_transfer(self.alice.id, self.bob.account, "4.75")

        assert self.balance(self.alice) == Decimal("975.00")

    def test_string_sender_id(self):
        self.engine.create_transfer(str(self.alice.id), self.bob.account, 10)

        assert self.balance(self.alice) == Decimal("990.00")

    def test_whole_balance_can_be_sent(self):
        self.engine.create_transfer(self.alice.id, self.bob.account, "1000.00")

        assert self.balance(self.alice) == Decimal("0.00")


class TestValidation(TransferTestCase):
    """Test each validation rule and the order in which they apply"""

    @pytest.mark.parametrize("to_account,amount", [
        (None, 10),
        ("", 10),
        ("123456", None),
        (None, None),
    ])
    def test_missing_fields(self, to_account, amount):
        with pytest.raises(InvalidRequest):
            self.engine.create_transfer(self.alice.id, to_account, amount)

    @pytest.mark.parametrize("amount", [
        0, -1, "-0.01", "0.004", "10.005", "1E+999999", "abc", float("nan"), float("inf"), True
    ])
    def test_invalid_amount(self, amount):
        with pytest.raises(InvalidAmount):
            self.engine.create_transfer(self.alice.id, self.bob.account, amount)

    def test_invalid_amount_checked_before_sender(self):
        with pytest.raises(InvalidAmount):
            self.engine.create_transfer(999, "000000", -5)

    def test_unknown_sender(self):
        with pytest.raises(SenderNotFound):
            self.engine.create_transfer(999, self.bob.account, 10)

    def test_sender_checked_before_destination(self):
        with pytest.raises(SenderNotFound):
            self.engine.create_transfer(999, "000000", 10)

    def test_unknown_destination(self):
        with pytest.raises(DestinationNotFound):
            self.engine.create_transfer(self.alice.id, self.unused_account(), 10)

    @pytest.mark.parametrize("amount", ["10", "999999", "6000"])
    def test_self_transfer_forbidden_regardless_of_amount(self, amount):
        with pytest.raises(SelfTransferForbidden):
            self.engine.create_transfer(self.alice.id, self.alice.account, amount)

    def test_self_transfer_forbidden_even_if_listed_as_favorite(self):
        # A self favorite cannot be created through the registry; write one directly
        self.storage.save("favorites", 99, {
            "id": 99, "owner_id": self.alice.id, "favorited_user_id": self.alice.id,
            "account": self.alice.account,
            "created_at": "2024-01-01T00:00:00+00:00",
            "updated_at": "2024-01-01T00:00:00+00:00",
        })

        with pytest.raises(SelfTransferForbidden):
            self.engine.create_transfer(self.alice.id, self.alice.account, 10)

    def test_insufficient_funds(self):
        with pytest.raises(InsufficientFunds):
            self.engine.create_transfer(self.alice.id, self.bob.account, "1000.01")

        assert self.balance(self.alice) == Decimal("1000.00")
        assert self.balance(self.bob) == Decimal("1000.00")

    def test_rejections_leave_no_history(self):
        for args in [(None, 1), (self.bob.account, 0), (self.alice.account, 1),
                     (self.bob.account, 5000)]:
            with pytest.raises(BankingError):
                self.engine.create_transfer(self.alice.id, *args)

        assert self.history.all() == []
        assert self.storage.next_id("transfers") == 1


class TestFavoriteCeiling(TransferTestCase):
    """Test the large-amount rule for non-favorite recipients"""

    def setup_method(self):
        super().setup_method()
        self.fund(self.alice, "10000")

    def test_exactly_ceiling_allowed_for_non_favorite(self):
        transfer = self.engine.create_transfer(self.alice.id, self.bob.account, "5000")

        assert transfer.is_favorite is False
        assert self.balance(self.alice) == Decimal("6000.00")

    def test_one_cent_above_ceiling_rejected_for_non_favorite(self):
        with pytest.raises(FavoriteRequiredForLargeAmount):
            self.engine.create_transfer(self.alice.id, self.bob.account, "5000.01")

        assert self.balance(self.alice) == Decimal("11000.00")
        assert self.balance(self.bob) == Decimal("1000.00")

    def test_sub_cent_amount_above_ceiling_is_not_rounded_down(self):
        with pytest.raises(InvalidAmount):
            self.engine.create_transfer(self.alice.id, self.bob.account, "5000.004")

        assert self.balance(self.alice) == Decimal("11000.00")

    def test_large_amount_allowed_for_favorite(self):
        self.favorites.add_favorite(self.alice.id, self.bob.account)

        transfer = self.engine.create_transfer(self.alice.id, self.bob.account, "10000")

        assert transfer.is_favorite is True
        assert self.balance(self.alice) == Decimal("1000.00")
        assert self.balance(self.bob) == Decimal("11000.00")

    def test_small_transfer_to_favorite_is_flagged(self):
        self.favorites.add_favorite(self.alice.id, self.bob.account)

        transfer = self.engine.create_transfer(self.alice.id, self.bob.account, "1")

        assert transfer.is_favorite is True

    def test_favorite_flag_is_frozen_on_record(self):
        favorite = self.favorites.add_favorite(self.alice.id, self.bob.account)
        transfer = self.engine.create_transfer(self.alice.id, self.bob.account, "20")

        self.favorites.remove_favorite(self.alice.id, favorite.id)

        stored = self.history.get_transfer(transfer.id)
        assert stored.is_favorite is True

    def test_favorite_of_recipient_does_not_count(self):
        self.favorites.add_favorite(self.bob.id, self.alice.account)

        with pytest.raises(FavoriteRequiredForLargeAmount):
            self.engine.create_transfer(self.alice.id, self.bob.account, "6000")


class TestWorkedExample(TransferTestCase):
    """Balance and favorite checks hold independently"""

    def test_scenario(self):
        first = self.engine.create_transfer(self.alice.id, self.bob.account, 100)
        assert (first.amount, first.is_favorite, first.status.value) == (
            Decimal("100.00"), False, "completed"
        )
        assert self.balance(self.alice) == Decimal("900.00")
        assert self.balance(self.bob) == Decimal("1100.00")

        # Funds are checked before the ceiling
        with pytest.raises(InsufficientFunds):
            self.engine.create_transfer(self.alice.id, self.bob.account, 6000)
        assert self.balance(self.alice) == Decimal("900.00")
        assert self.balance(self.bob) == Decimal("1100.00")

        self.favorites.add_favorite(self.alice.id, self.bob.account)
        with pytest.raises(InsufficientFunds):
            self.engine.create_transfer(self.alice.id, self.bob.account, 6000)
        assert self.balance(self.alice) == Decimal("900.00")
        assert self.balance(self.bob) == Decimal("1100.00")

    def test_funded_sender_needs_favorite_for_large_amount(self):
        self.engine.create_transfer(self.alice.id, self.bob.account, 100)
        self.fund(self.alice, "10000")

        with pytest.raises(FavoriteRequiredForLargeAmount):
            self.engine.create_transfer(self.alice.id, self.bob.account, 6000)
        assert self.balance(self.alice) == Decimal("10900.00")
        assert self.balance(self.bob) == Decimal("1100.00")

        self.favorites.add_favorite(self.alice.id, self.bob.account)
        transfer = self.engine.create_transfer(self.alice.id, self.bob.account, 6000)

        assert transfer.is_favorite is True
        assert self.balance(self.alice) == Decimal("4900.00")
        assert self.balance(self.bob) == Decimal("7100.00")


class TestAtomicity(TransferTestCase):
    """Debit and credit are applied together or not at all"""

    def test_failed_credit_rolls_back_debit(self):
        original = self.ledger.adjust_balance
        calls = []

        def flaky(user_id, delta):
            calls.append(user_id)
            if len(calls) == 2:
                raise RuntimeError("credit failed")
            return original(user_id, delta)

        with patch.object(self.ledger, "adjust_balance", side_effect=flaky):
            with pytest.raises(RuntimeError):
                self.engine.create_transfer(self.alice.id, self.bob.account, 100)

        assert self.balance(self.alice) == Decimal("1000.00")
        assert self.balance(self.bob) == Decimal("1000.00")
        assert self.history.all() == []

    def test_concurrent_transfers_never_overdraw(self):
        carol = self.ledger.create_user("Carol", "carol@example.com", "salt$hash")
        failures = []

        def send(recipient):
            for _ in range(30):
                try:
                    self.engine.create_transfer(self.alice.id, recipient.account, "25")
                except InsufficientFunds:
                    failures.append(recipient.id)

        threads = [threading.Thread(target=send, args=(r,)) for r in (self.bob, carol, self.bob, carol)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        # 120 attempts of 25.00 against 1000.00: exactly 40 succeed
        assert self.balance(self.alice) == Decimal("0.00")
        assert len(failures) == 80
        assert len(self.history.all()) == 40
        total = self.balance(self.alice) + self.balance(self.bob) + self.ledger.get_balance(carol.id)
        assert total == Decimal("3000.00")


class TestTransferHistory(TransferTestCase):
    """Test history queries"""

    def test_by_account_in_insertion_order(self):
        carol = self.ledger.create_user("Carol", "carol@example.com", "salt$hash")

        t1 = self.engine.create_transfer(self.alice.id, self.bob.account, 1)
        t2 = self.engine.create_transfer(self.bob.id, carol.account, 2)
        t3 = self.engine.create_transfer(carol.id, self.alice.account, 3)

        assert [t.id for t in self.engine.get_transfers_by_account(self.alice.account)] == [t1.id, t3.id]
        assert [t.id for t in self.engine.get_transfers_by_account(self.bob.account)] == [t1.id, t2.id]
        assert [t.id for t in self.engine.get_transfers_for_user(carol.id)] == [t2.id, t3.id]
        assert self.engine.get_transfers_by_account(self.unused_account()) == []

    def test_records_round_trip_through_storage(self):
        transfer = self.engine.create_transfer(self.alice.id, self.bob.account, "12.30", "Lunch")

        data = self.storage.load("transfers", transfer.id)
        assert data["amount"] == "12.30"
        assert data["status"] == "completed"
        assert Transfer.from_dict(data) == transfer

    def test_transfer_requires_positive_amount(self):
        with pytest.raises(ValueError):
            self.history.append(self.alice.account, self.bob.account, Decimal("0"), "x", False)

"""
Tests de la unidad de trabajo, los locks por par y el manejo de errores internos.
"""
import threading
import uuid

import pytest
from sqlalchemy.exc import OperationalError

from barter.core.exceptions import InternalException
from barter.core.pairs import canonical_pair, pair_key, pair_lock_id
from barter.crud.chat import chat as crud_chat
from barter.db.unit_of_work import PairLockRegistry, UnitOfWork
from barter.models.interest import InterestStatus
from barter.models.user import User
from barter.services import match_detector


class TestPairs:
    """Tests de normalización de pares."""

    def test_canonical_pair_orders_ids(self):
        a, b = uuid.uuid4(), uuid.uuid4()
        assert canonical_pair(a, b) == canonical_pair(b, a)
        low, high = canonical_pair(a, b)
        assert low < high

    def test_same_user_is_not_a_pair(self):
        user = uuid.uuid4()
        with pytest.raises(ValueError):
            canonical_pair(user, user)

    def test_keys_are_order_independent(self):
        a, b = uuid.uuid4(), uuid.uuid4()
        assert pair_key(a, b) == pair_key(b, a)
        assert pair_lock_id(a, b) == pair_lock_id(b, a)
        assert -2**63 <= pair_lock_id(a, b) < 2**63


class TestPairLockRegistry:
    """Tests del registro de locks en proceso."""

    def test_entries_released_after_use(self):
        locks = PairLockRegistry()
        with locks.hold("a:b"):
            assert len(locks) == 1
        assert len(locks) == 0

    def test_different_keys_do_not_block(self):
        locks = PairLockRegistry()
        acquired = threading.Event()

        def other_pair():
            with locks.hold("c:d"):
                acquired.set()

        with locks.hold("a:b"):
            thread = threading.Thread(target=other_pair)
            thread.start()
            assert acquired.wait(timeout=5)
            thread.join()

    def test_same_key_blocks(self):
        locks = PairLockRegistry()
        acquired = threading.Event()

        def same_pair():
            with locks.hold("a:b"):
                acquired.set()

        with locks.hold("a:b"):
            thread = threading.Thread(target=same_pair)
            thread.start()
            assert not acquired.wait(timeout=0.2)
        thread.join(timeout=5)
        assert acquired.is_set()


class TestUnitOfWork:
    """Tests de atomicidad."""

    def test_rollback_on_error(self, session_factory):
        uow = UnitOfWork(session_factory)
        a, b = uuid.uuid4(), uuid.uuid4()

        with pytest.raises(RuntimeError):
            with uow.pair_scope(a, b) as db:
                db.add(User(first_name="Nie", last_name="Zapisany"))
                db.flush()
                raise RuntimeError("boom")

        with uow.read_scope() as db:
            assert db.query(User).filter(User.first_name == "Nie").count() == 0

    def test_savepoint_stays_inside_outer_transaction(self, session_factory):
        uow = UnitOfWork(session_factory)

        with pytest.raises(RuntimeError):
            with uow.pair_scope(uuid.uuid4(), uuid.uuid4()) as db:
                with db.begin_nested():
                    db.add(User(first_name="Punkt", last_name="Zapisu"))
                raise RuntimeError("boom")

        with uow.read_scope() as db:
            assert db.query(User).filter(User.first_name == "Punkt").count() == 0

    def test_commit_on_success(self, session_factory):
        uow = UnitOfWork(session_factory)
        with uow.pair_scope(uuid.uuid4(), uuid.uuid4()) as db:
            db.add(User(first_name="Zapisany", last_name="Tak"))

        with uow.read_scope() as db:
            assert db.query(User).filter(User.first_name == "Zapisany").count() == 1


class TestInternalErrors:
    """Un fallo de persistencia tras la validación revierte toda la operación."""

    def test_failed_chat_allocation_rolls_back_match(self, service, pair, monkeypatch):
        service.express_interest(pair["bob_offer"], pair["alice"])

        def broken_upsert(db, *, user_a, user_b):
            raise OperationalError("INSERT INTO chats", {}, Exception("disk I/O error"))

        monkeypatch.setattr(crud_chat, "upsert_active", broken_upsert)

        with pytest.raises(InternalException) as exc_info:
            service.express_interest(pair["alice_offer"], pair["bob"])

        assert exc_info.value.code == "INTERNAL_ERROR"
        monkeypatch.undo()

        assert service.has_interest(pair["alice_offer"], pair["bob"]) is False
        statuses = [i.status for i in service.list_interests_for_user(pair["alice"])]
        assert statuses == [InterestStatus.PROPOSED]
        assert service.get_chat_for_pair(pair["alice"], pair["bob"]) is None

    def test_failure_after_insert_discards_new_interest(self, service, pair, monkeypatch):
        service.express_interest(pair["bob_offer"], pair["alice"])

        def broken_chat(db, user_a, user_b):
            raise OperationalError("INSERT INTO chats", {}, Exception("database is locked"))

        monkeypatch.setattr(match_detector, "ensure_chat", broken_chat)

        with pytest.raises(InternalException):
            service.express_interest(pair["alice_offer"], pair["bob"])

        monkeypatch.undo()

        assert service.list_interests_for_user(pair["bob"]) == []
        statuses = [i.status for i in service.list_interests_for_user(pair["alice"])]
        assert statuses == [InterestStatus.PROPOSED]
        assert service.get_chat_for_pair(pair["alice"], pair["bob"]) is None

    def test_unexpected_error_is_logged_as_internal(self, service, pair, monkeypatch, caplog):
        service.express_interest(pair["bob_offer"], pair["alice"])

        def broken_chat(db, user_a, user_b):
            raise KeyError(user_a)

        monkeypatch.setattr(match_detector, "ensure_chat", broken_chat)

        with caplog.at_level("ERROR", logger="barter.services.barter_service"):
            with pytest.raises(InternalException) as exc_info:
                service.express_interest(pair["alice_offer"], pair["bob"])

        assert exc_info.value.code == "INTERNAL_ERROR"
        assert isinstance(exc_info.value.__cause__, KeyError)
        assert "Fallo inesperado en express_interest" in caplog.text

        monkeypatch.undo()
        assert service.has_interest(pair["alice_offer"], pair["bob"]) is False

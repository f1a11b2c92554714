"""
Tests de confirmación (realize) y retractación (unrealize) de intercambios.
"""
import uuid

import pytest

from barter.core.exceptions import (
    AlreadyCompletedException,
    AlreadyRealizedException,
    BadStatusException,
    ForbiddenException,
    NotFoundException,
)
from barter.crud.exchange_record import exchange_record as crud_exchange_record
from barter.models.chat import ChatStatus
from barter.models.interest import Interest, InterestStatus
from barter.services.exchange_historian import record_completed_exchange


def interest_of(service, user_id, offer_id):
    return next(i for i in service.list_interests_for_user(user_id) if i.offer_id == offer_id)


def record_count(session_factory, user_a, user_b):
    with session_factory() as db:
        return crud_exchange_record.count_by_pair(db, user_a=user_a, user_b=user_b)


class TestRealize:
    """Tests de realize."""

    def test_requires_accepted(self, service, pair):
        """realize sobre un interés PROPOSED falla con BadStatus."""
        created = service.express_interest(pair["bob_offer"], pair["alice"])

        with pytest.raises(BadStatusException) as exc_info:
            service.realize(created.id, pair["alice"])

        assert exc_info.value.code == "BAD_STATUS"
        assert interest_of(service, pair["alice"], pair["bob_offer"]).status == InterestStatus.PROPOSED

    def test_sets_realized_and_timestamp(self, service, matched):
        outcome = service.realize(matched["alice_interest"], matched["alice"])

        assert outcome.completed is False
        assert outcome.exchange_record_id is None
        assert outcome.interest.status == InterestStatus.REALIZED
        assert outcome.interest.realized_at is not None

        stored = interest_of(service, matched["alice"], matched["bob_offer"])
        assert stored.status == InterestStatus.REALIZED
        assert stored.realized_at is not None

    def test_forbidden_for_other_user(self, service, matched):
        with pytest.raises(ForbiddenException):
            service.realize(matched["alice_interest"], matched["bob"])

    def test_not_found(self, service, matched):
        with pytest.raises(NotFoundException):
            service.realize(uuid.uuid4(), matched["alice"])

    def test_twice_is_already_realized(self, service, matched):
        """Confirmar dos veces falla; AlreadyRealized es un BadStatus."""
        service.realize(matched["alice_interest"], matched["alice"])

        with pytest.raises(AlreadyRealizedException) as exc_info:
            service.realize(matched["alice_interest"], matched["alice"])

        assert isinstance(exc_info.value, BadStatusException)


class TestFullScenario:
    """Flujo completo: interés, match, confirmaciones, historial."""

    def test_end_to_end(self, service, session_factory, pair):
        alice, bob = pair["alice"], pair["bob"]

        a = service.express_interest(pair["bob_offer"], alice)
        assert a.status == InterestStatus.PROPOSED
        assert service.get_chat_for_pair(alice, bob) is None

        b = service.express_interest(pair["alice_offer"], bob)
        assert interest_of(service, alice, pair["bob_offer"]).status == InterestStatus.ACCEPTED
        assert b.status == InterestStatus.ACCEPTED
        assert service.get_chat_for_pair(alice, bob).status == ChatStatus.ACTIVE

        first = service.realize(a.id, alice)
        assert first.completed is False
        assert interest_of(service, bob, pair["alice_offer"]).status == InterestStatus.ACCEPTED
        assert record_count(session_factory, alice, bob) == 0

        second = service.realize(b.id, bob)
        assert second.completed is True
        assert second.exchange_record_id is not None
        assert record_count(session_factory, alice, bob) == 1

        history = service.list_history_for_user(alice)
        assert [h.id for h in history] == [second.exchange_record_id]
        assert history[0].chat_id == b.chat_id

        with pytest.raises(AlreadyRealizedException):
            service.realize(a.id, alice)
        with pytest.raises(AlreadyCompletedException):
            service.unrealize(b.id, bob)


class TestUnrealize:
    """Tests de unrealize."""

    def test_reverts_before_other_side_confirms(self, service, matched):
        """Antes de que la otra parte confirme se puede volver a ACCEPTED."""
        service.realize(matched["alice_interest"], matched["alice"])

        service.unrealize(matched["alice_interest"], matched["alice"])

        stored = interest_of(service, matched["alice"], matched["bob_offer"])
        assert stored.status == InterestStatus.ACCEPTED
        assert stored.realized_at is None
        chat = service.get_chat_for_pair(matched["alice"], matched["bob"])
        assert chat.status == ChatStatus.ACTIVE

    def test_realize_again_after_unrealize(self, service, session_factory, matched):
        service.realize(matched["alice_interest"], matched["alice"])
        service.unrealize(matched["alice_interest"], matched["alice"])

        assert service.realize(matched["alice_interest"], matched["alice"]).completed is False
        assert service.realize(matched["bob_interest"], matched["bob"]).completed is True
        assert record_count(session_factory, matched["alice"], matched["bob"]) == 1

    def test_blocked_after_both_confirmed(self, service, matched):
        """Con ambas partes confirmadas ninguna puede retractarse."""
        service.realize(matched["alice_interest"], matched["alice"])
        service.realize(matched["bob_interest"], matched["bob"])

        for interest_id, user_id in (
            (matched["alice_interest"], matched["alice"]),
            (matched["bob_interest"], matched["bob"]),
        ):
            with pytest.raises(AlreadyCompletedException):
                service.unrealize(interest_id, user_id)

        assert interest_of(service, matched["alice"], matched["bob_offer"]).status == InterestStatus.REALIZED

    def test_requires_realized(self, service, matched):
        with pytest.raises(BadStatusException):
            service.unrealize(matched["alice_interest"], matched["alice"])

    def test_forbidden_for_other_user(self, service, matched):
        service.realize(matched["alice_interest"], matched["alice"])

        with pytest.raises(ForbiddenException):
            service.unrealize(matched["alice_interest"], matched["bob"])


class TestIndependentOfferPairs:
    """Varios pares de ofertas entre los mismos usuarios se cierran por separado."""

    def test_each_offer_pair_completes_once(self, service, session_factory, matched, make_offer):
        bob_second = make_offer(matched["bob"], "Aparat")
        extra = service.express_interest(bob_second, matched["alice"])
        assert extra.status == InterestStatus.ACCEPTED

        service.realize(matched["alice_interest"], matched["alice"])
        done = service.realize(matched["bob_interest"], matched["bob"])
        assert done.completed is True

        # El interés de Bartek ya cerró su intercambio: el segundo queda a la espera
        pending = service.realize(extra.id, matched["alice"])
        assert pending.completed is False
        assert record_count(session_factory, matched["alice"], matched["bob"]) == 1

        # Y sigue pudiendo retractarse
        service.unrealize(extra.id, matched["alice"])

    def test_second_exchange_shares_chat(self, service, session_factory, matched, make_offer):
        service.realize(matched["alice_interest"], matched["alice"])
        service.realize(matched["bob_interest"], matched["bob"])

        alice_second = make_offer(matched["alice"], "Hulajnoga")
        bob_second = make_offer(matched["bob"], "Aparat")
        a2 = service.express_interest(bob_second, matched["alice"])
        b2 = service.express_interest(alice_second, matched["bob"])

        service.realize(a2.id, matched["alice"])
        outcome = service.realize(b2.id, matched["bob"])

        assert outcome.completed is True
        history = service.list_history_for_user(matched["bob"])
        assert len(history) == 2
        assert {h.chat_id for h in history} == {matched["chat_id"]}
        assert record_count(session_factory, matched["alice"], matched["bob"]) == 2


class TestRecordCompletedExchange:
    """El registro de un par de ofertas se escribe una sola vez."""

    def test_repeated_recording_keeps_single_row(self, service, session_factory, matched):
        service.realize(matched["alice_interest"], matched["alice"])
        outcome = service.realize(matched["bob_interest"], matched["bob"])

        with session_factory.begin() as db:
            alice_interest = db.get(Interest, matched["alice_interest"])
            bob_interest = db.get(Interest, matched["bob_interest"])

            first = record_completed_exchange(db, alice_interest, bob_interest)
            second = record_completed_exchange(db, bob_interest, alice_interest)

        assert first.id == outcome.exchange_record_id
        assert second.id == first.id
        assert record_count(session_factory, matched["alice"], matched["bob"]) == 1

"""
Fixtures compartidas: base SQLite en archivo por test, usuarios y ofertas.
"""
import pytest

from barter.db.session import create_db_engine, create_session_factory, init_models
from barter.models.offer import Offer, OfferStatus
from barter.models.user import User
from barter.services.barter_service import BarterService


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'barter.db'}")
    init_models(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def service(session_factory):
    return BarterService(session_factory)


@pytest.fixture
def make_user(session_factory):
    """Crear un usuario y devolver su id."""
    def _make(first_name="Ana", last_name="Nowak"):
        with session_factory.begin() as db:
            user = User(first_name=first_name, last_name=last_name)
            db.add(user)
            db.flush()
            return user.id
    return _make


@pytest.fixture
def make_offer(session_factory):
    """Crear una oferta para ``owner_id`` y devolver su id."""
    def _make(owner_id, title="Rower", status=OfferStatus.ACTIVE):
        with session_factory.begin() as db:
            offer = Offer(owner_id=owner_id, title=title, description="opis", status=status)
            db.add(offer)
            db.flush()
            return offer.id
    return _make


@pytest.fixture
def pair(make_user, make_offer):
    """Dos usuarios con una oferta cada uno."""
    alice = make_user("Alicja", "Kowalska")
    bob = make_user("Bartek", "Nowak")
    return {
        "alice": alice,
        "bob": bob,
        "alice_offer": make_offer(alice, "Rower"),
        "bob_offer": make_offer(bob, "Gitara"),
    }


@pytest.fixture
def matched(service, pair):
    """Par con match mutuo ya establecido."""
    a_interest = service.express_interest(pair["bob_offer"], pair["alice"])
    b_interest = service.express_interest(pair["alice_offer"], pair["bob"])
    return {
        **pair,
        "alice_interest": a_interest.id,
        "bob_interest": b_interest.id,
        "chat_id": b_interest.chat_id,
    }

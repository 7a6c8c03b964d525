"""
Unit tests for the SQLAlchemy stores.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from plantpal.errors import ConflictError
from plantpal.storage import PlantStore, SessionGateway
from plantpal.storage.models import utcnow
from plantpal.storage.session_store import SessionStore


@pytest.fixture
def owners(user_repository):
    """Two users to own plants."""
    return (
        user_repository.create("alice", password_hash="x"),
        user_repository.create("bob", password_hash="y"),
    )


class TestUserRepository:
    """Tests for user persistence."""

    def test_create_and_lookup(self, user_repository):
        user = user_repository.create("alice", password_hash="hash")

        assert user_repository.get(user.id).username == "alice"
        assert user_repository.get_by_username("alice").id == user.id
        assert user_repository.username_exists("alice")
        assert not user_repository.username_exists("ALICE")

    def test_created_at_is_naive_utc(self, user_repository):
        before = utcnow()
        user = user_repository.create("alice", password_hash="hash")
        after = datetime.now(timezone.utc).replace(tzinfo=None)

        assert user.created_at.tzinfo is None
        assert before <= user.created_at <= after

    def test_duplicate_username_conflicts(self, user_repository):
        user_repository.create("alice", password_hash="hash")

        with pytest.raises(ConflictError):
            user_repository.create("alice", password_hash="other")

    def test_duplicate_external_id_conflicts(self, user_repository):
        user_repository.create("octocat", external_id="583231")

        with pytest.raises(ConflictError):
            user_repository.create("someone-else", external_id="583231")

    def test_link_external_only_once(self, user_repository):
        user = user_repository.create("alice", password_hash="hash")

        linked = user_repository.link_external(user.id, "42")
        again = user_repository.link_external(user.id, "43")

        assert linked.external_id == "42"
        assert again is None
        assert user_repository.get(user.id).external_id == "42"

    def test_link_external_id_bound_elsewhere_conflicts(self, user_repository):
        user_repository.create("octocat", external_id="42")
        alice = user_repository.create("alice", password_hash="hash")

        with pytest.raises(ConflictError):
            user_repository.link_external(alice.id, "42")

    def test_to_dict_hides_password_hash(self, user_repository):
        user = user_repository.create("alice", password_hash="hash")

        assert "password_hash" not in user.to_dict()


class TestPlantRepository:
    """Tests for owner-scoped plant CRUD."""

    def test_create_applies_defaults(self, plant_repository, owners):
        alice, _ = owners

        plant = plant_repository.create(
            owner_id=alice.id,
            name="Fern",
            last_watered=date(2025, 9, 1),
            interval_days=3,
        )

        assert plant.species == ""
        assert plant.sunlight == "medium"
        assert plant.indoors is True
        assert plant.notes == ""
        assert plant.created_at is not None

    def test_other_owner_cannot_see_or_change(self, plant_repository, owners):
        alice, bob = owners
        plant = plant_repository.create(alice.id, "Fern", date(2025, 9, 1), 3)

        assert plant_repository.get(bob.id, plant.id) is None
        assert plant_repository.list_for_owner(bob.id) == []
        assert plant_repository.update(bob.id, plant.id, {"name": "Mine now"}) is None
        assert plant_repository.delete(bob.id, plant.id) is False

        assert plant_repository.get(alice.id, plant.id).name == "Fern"

    def test_list_only_returns_own_plants(self, plant_repository, owners):
        alice, bob = owners
        plant_repository.create(alice.id, "Fern", date(2025, 9, 1), 3)
        plant_repository.create(alice.id, "Cactus", date(2025, 8, 1), 21)
        plant_repository.create(bob.id, "Basil", date(2025, 9, 5), 2)

        names = {p.name for p in plant_repository.list_for_owner(alice.id)}

        assert names == {"Fern", "Cactus"}

    def test_partial_update_keeps_other_fields(self, plant_repository, owners):
        alice, _ = owners
        plant = plant_repository.create(
            alice.id, "Fern", date(2025, 9, 1), 3, species="Nephrolepis", notes="bathroom",
        )

        updated = plant_repository.update(alice.id, plant.id, {"last_watered": date(2025, 9, 4)})

        assert updated.last_watered == date(2025, 9, 4)
        assert updated.name == "Fern"
        assert updated.species == "Nephrolepis"
        assert updated.notes == "bathroom"
        assert updated.interval_days == 3

    def test_update_ignores_immutable_fields(self, plant_repository, owners):
        alice, bob = owners
        plant = plant_repository.create(alice.id, "Fern", date(2025, 9, 1), 3)

        updated = plant_repository.update(
            alice.id, plant.id, {"owner_id": bob.id, "id": "other", "name": "Boston Fern"},
        )

        assert updated.id == plant.id
        assert updated.owner_id == alice.id
        assert updated.name == "Boston Fern"

    def test_delete(self, plant_repository, owners):
        alice, _ = owners
        plant = plant_repository.create(alice.id, "Fern", date(2025, 9, 1), 3)

        assert plant_repository.delete(alice.id, plant.id) is True
        assert plant_repository.get(alice.id, plant.id) is None
        assert plant_repository.delete(alice.id, plant.id) is False

    def test_satisfies_protocol(self, plant_repository):
        assert isinstance(plant_repository, PlantStore)


class TestSessionStore:
    """Tests for server-side sessions."""

    def test_issue_and_resolve(self, session_store, owners):
        alice, _ = owners

        token = session_store.issue(alice.id)

        assert len(token) >= 32
        assert session_store.resolve(token) == alice.id

    def test_tokens_are_unique(self, session_store, owners):
        alice, _ = owners

        assert session_store.issue(alice.id) != session_store.issue(alice.id)

    def test_unknown_or_empty_token(self, session_store):
        assert session_store.resolve("nope") is None
        assert session_store.resolve(None) is None
        assert session_store.resolve("") is None

    def test_revoke(self, session_store, owners):
        alice, _ = owners
        token = session_store.issue(alice.id)

        assert session_store.revoke(token) is True
        assert session_store.resolve(token) is None
        assert session_store.revoke(token) is False
        assert session_store.revoke(None) is False

    def test_expired_session_is_absent(self, engine, owners):
        alice, _ = owners
        store = SessionStore(engine, ttl=timedelta(seconds=-1))

        token = store.issue(alice.id)

        assert store.resolve(token) is None
        # Deleted on sight, so a second revoke finds nothing
        assert store.revoke(token) is False

    def test_purge_expired(self, engine, owners):
        alice, _ = owners
        expired = SessionStore(engine, ttl=timedelta(seconds=-1))
        live = SessionStore(engine)
        expired.issue(alice.id)
        expired.issue(alice.id)
        token = live.issue(alice.id)

        assert live.purge_expired() == 2
        assert live.resolve(token) == alice.id

    def test_satisfies_protocol(self, session_store):
        assert isinstance(session_store, SessionGateway)

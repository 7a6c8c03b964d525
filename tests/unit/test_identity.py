"""
Unit tests for password hashing, identity resolution and the GitHub client.
"""

import pytest

from plantpal.errors import (
    ConflictError,
    IncorrectPassword,
    PasswordLoginUnavailable,
    UpstreamAuthError,
)
from plantpal.identity.github import GitHubOAuthClient, GitHubProfile, mask_secret
from plantpal.identity.passwords import hash_password, verify_password
from plantpal.identity.resolver import IdentityResolver
from plantpal.storage.protocols import UserStore


class RacingUserStore:
    """
    Wraps a real repository so that ``create`` loses a race.

    Before each failing create, ``rival`` (if given) is run against the
    real store to play the concurrent request that got there first.
    """

    def __init__(self, inner, failures: int = 1, rival=None):
        self.inner = inner
        self.failures = failures
        self.rival = rival
        self.create_calls = 0

    def __getattr__(self, name):
        return getattr(self.inner, name)

    def create(self, username, password_hash=None, external_id=None):
        self.create_calls += 1
        if self.failures > 0:
            self.failures -= 1
            if self.rival is not None:
                self.rival(self.inner)
            raise ConflictError(detail="UNIQUE constraint failed: users.username")
        return self.inner.create(username, password_hash=password_hash, external_id=external_id)


class LateBindingUserStore:
    """
    Wraps a real repository so that the first external-id lookup misses.

    ``rival`` runs just after that miss, so the following write hits the
    real unique constraint.
    """

    def __init__(self, inner, rival):
        self.inner = inner
        self.rival = rival
        self.lookups = 0

    def __getattr__(self, name):
        return getattr(self.inner, name)

    def get_by_external_id(self, external_id):
        self.lookups += 1
        found = self.inner.get_by_external_id(external_id)
        if self.lookups == 1:
            self.rival(self.inner)
        return found


class TestPasswords:
    """Tests for bcrypt helpers."""

    def test_hash_verifies(self):
        hashed = hash_password("hunter2")

        assert hashed != "hunter2"
        assert verify_password("hunter2", hashed)
        assert not verify_password("hunter3", hashed)

    def test_hash_is_salted(self):
        assert hash_password("same") != hash_password("same")

    def test_malformed_hash_does_not_verify(self):
        assert not verify_password("anything", "not-a-bcrypt-hash")


class TestResolveLocal:
    """Tests for password login with implicit registration."""

    def test_first_login_registers(self, resolver, user_repository):
        result = resolver.resolve_local("alice", "pw1")

        assert result.created is True
        assert result.user.username == "alice"
        stored = user_repository.get_by_username("alice")
        assert stored.id == result.user.id
        assert stored.password_hash != "pw1"

    def test_second_login_is_same_user(self, resolver):
        first = resolver.resolve_local("alice", "pw1")
        second = resolver.resolve_local("alice", "pw1")

        assert second.created is False
        assert second.user.id == first.user.id

    def test_wrong_password_rejected_and_record_unchanged(self, resolver, user_repository):
        resolver.resolve_local("alice", "pw1")
        before = user_repository.get_by_username("alice")

        with pytest.raises(IncorrectPassword) as exc_info:
            resolver.resolve_local("alice", "pw2")

        assert exc_info.value.status_code == 401
        after = user_repository.get_by_username("alice")
        assert after.password_hash == before.password_hash
        assert resolver.resolve_local("alice", "pw1").user.id == before.id

    def test_usernames_are_case_sensitive(self, resolver):
        lower = resolver.resolve_local("alice", "pw")
        upper = resolver.resolve_local("Alice", "pw")

        assert upper.created is True
        assert upper.user.id != lower.user.id

    def test_external_only_account_refuses_password(self, resolver):
        resolver.resolve_external("583231", "octocat")

        with pytest.raises(PasswordLoginUnavailable) as exc_info:
            resolver.resolve_local("octocat", "whatever")

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "this account uses GitHub only"

    def test_concurrent_registration_resolves_to_existing(self, user_repository):
        """Losing the create race re-reads and verifies against the winner."""
        def rival(store):
            store.create("bob", password_hash=hash_password("pw"))

        store = RacingUserStore(user_repository, failures=1, rival=rival)
        resolver = IdentityResolver(store)

        result = resolver.resolve_local("bob", "pw")

        assert result.created is False
        assert result.user.username == "bob"
        assert store.create_calls == 1

    def test_concurrent_registration_with_other_password(self, user_repository):
        def rival(store):
            store.create("bob", password_hash=hash_password("their-password"))

        resolver = IdentityResolver(RacingUserStore(user_repository, rival=rival))

        with pytest.raises(IncorrectPassword):
            resolver.resolve_local("bob", "my-password")

    def test_repeated_conflict_is_raised(self, user_repository):
        resolver = IdentityResolver(RacingUserStore(user_repository, failures=2))

        with pytest.raises(ConflictError):
            resolver.resolve_local("bob", "pw")


class TestResolveExternal:
    """Tests for GitHub login reconciliation."""

    def test_first_login_creates_user_with_login_name(self, resolver):
        result = resolver.resolve_external("583231", "octocat")

        assert result.created is True
        assert result.user.username == "octocat"
        assert result.user.external_id == "583231"
        assert not result.user.has_password

    def test_stable_across_provider_renames(self, resolver):
        first = resolver.resolve_external("583231", "octocat")
        renamed = resolver.resolve_external("583231", "octodog")

        assert renamed.created is False
        assert renamed.user.id == first.user.id
        assert renamed.user.username == "octocat"

    def test_numeric_provider_id_is_normalized(self, resolver):
        first = resolver.resolve_external(583231, "octocat")
        second = resolver.resolve_external("583231", "octocat")

        assert second.user.id == first.user.id

    def test_links_password_account_with_same_username(self, resolver, user_repository):
        local = resolver.resolve_local("alice", "pw").user

        result = resolver.resolve_external("42", "alice")

        assert result.created is False
        assert result.user.id == local.id
        assert result.user.external_id == "42"
        # Both credentials keep working
        assert resolver.resolve_local("alice", "pw").user.id == local.id
        assert user_repository.get_by_external_id("42").id == local.id

    def test_does_not_relink_account_bound_to_other_provider_id(self, resolver):
        resolver.resolve_external("1", "alice")

        result = resolver.resolve_external("2", "alice")

        assert result.created is True
        assert result.user.username == "alice-1"

    def test_numbered_suffix_skips_taken_names(self, resolver):
        resolver.resolve_external("1", "alice")
        resolver.resolve_external("2", "alice")

        third = resolver.resolve_external("3", "alice")

        assert third.user.username == "alice-2"

    def test_falls_back_to_provider_id_name(self, user_repository):
        resolver = IdentityResolver(user_repository, max_suffix_attempts=2)
        for provider_id in ("1", "2", "3"):
            resolver.resolve_external(provider_id, "alice")

        fourth = resolver.resolve_external("99", "alice")

        assert fourth.user.username == "gh_99"

    def test_fallback_name_gets_suffix_when_taken(self, user_repository):
        resolver = IdentityResolver(user_repository, max_suffix_attempts=0)
        resolver.resolve_local("alice", "pw")
        resolver.resolve_local("gh_99", "pw")
        resolver.resolve_external("1", "alice")  # links to the local alice

        result = resolver.resolve_external("99", "alice")

        assert result.user.username == "gh_99-1"

    def test_missing_preferred_name_uses_provider_id(self, resolver):
        result = resolver.resolve_external("7")

        assert result.user.username == "gh_7"

    def test_unique_username_is_preferred_when_free(self, resolver):
        assert resolver.unique_username("fresh", "1") == "fresh"

    def test_concurrent_first_login_returns_bound_user(self, user_repository):
        def rival(store):
            store.create("octocat", external_id="583231")

        store = RacingUserStore(user_repository, rival=rival)
        resolver = IdentityResolver(store)

        result = resolver.resolve_external("583231", "octocat")

        assert result.created is False
        assert result.user.username == "octocat"
        assert user_repository.username_exists("octocat-1") is False

    def test_repeated_conflict_is_raised(self, user_repository):
        resolver = IdentityResolver(RacingUserStore(user_repository, failures=2))

        with pytest.raises(ConflictError):
            resolver.resolve_external("583231", "octocat")

    def test_link_losing_to_concurrent_binding_returns_bound_user(self, user_repository):
        """The provider id is bound elsewhere between lookup and link."""
        alice = user_repository.create("alice", password_hash=hash_password("pw"))
        store = LateBindingUserStore(
            user_repository,
            rival=lambda inner: inner.create("alice-gh", external_id="42"),
        )
        resolver = IdentityResolver(store)

        result = resolver.resolve_external("42", "alice")

        assert result.created is False
        assert result.user.username == "alice-gh"
        assert user_repository.get(alice.id).external_id is None


def test_repository_satisfies_user_store_protocol(user_repository):
    assert isinstance(user_repository, UserStore)


class TestGitHubClient:
    """Tests for the parts of the OAuth client that do not touch the network."""

    def make_client(self, **overrides) -> GitHubOAuthClient:
        values = dict(
            client_id="Iv1.abcdef",
            client_secret="s3cr3t-value-1234",
            callback_url="http://localhost:8080/auth/github/callback",
        )
        values.update(overrides)
        return GitHubOAuthClient(**values)

    def test_enabled_requires_all_settings(self):
        assert self.make_client().enabled
        assert not self.make_client(client_secret="").enabled
        assert not self.make_client(callback_url="").enabled

    def test_authorization_url_carries_state(self):
        url = self.make_client().authorization_url("xyz")

        assert url.startswith(GitHubOAuthClient.AUTHORIZE_URL)
        assert "client_id=Iv1.abcdef" in url
        assert "state=xyz" in url
        assert "redirect_uri=" in url

    def test_parse_profile(self):
        profile = self.make_client()._parse_profile(
            {"id": 583231, "login": "octocat", "name": "The Octocat"}
        )

        assert profile.provider_id == "583231"
        assert profile.preferred_username == "octocat"

    def test_parse_profile_without_id_fails(self):
        with pytest.raises(UpstreamAuthError):
            self.make_client()._parse_profile({"login": "octocat"})

    def test_preferred_username_without_login(self):
        profile = GitHubProfile(provider_id="1", login=None, name="The Octocat")
        assert profile.preferred_username == "gh_1"

    @pytest.mark.asyncio
    async def test_authenticate_without_code_fails(self):
        with pytest.raises(UpstreamAuthError):
            await self.make_client().authenticate("")


class TestMaskSecret:
    def test_empty(self):
        assert mask_secret("") == "(empty)"

    def test_short(self):
        assert mask_secret("abcd1234") == "****"

    def test_long(self):
        assert mask_secret("abcdefghijkl") == "abcd...ijkl"

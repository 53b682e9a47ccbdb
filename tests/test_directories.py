"""Tests for the owner and local account directories."""

import pytest

from folio.adapters.local_directory import LOCAL_TOKEN_PREFIX, LocalDirectory
from folio.adapters.owner_directory import OWNER_ID, OWNER_TOKEN_PREFIX, OwnerDirectory
from folio.data.models import User
from folio.ports.account_directory import AuthRejected, Unsupported


def _owner():
    return OwnerDirectory(
        email="boss@example.com", password="s3cret", display_name="Boss", bio="Owner bio",
    )


class TestOwnerDirectory:
    @pytest.mark.asyncio
    async def test_owner_credential_synthesizes_owner(self):
        result = await _owner().authenticate("boss@example.com", "s3cret")
        assert result.is_owner is True
        assert result.user.id == OWNER_ID
        assert result.user.role == "owner"
        assert result.user.name == "Boss"
        assert result.user.bio == "Owner bio"
        assert result.user.is_owner is True
        assert result.token.startswith(OWNER_TOKEN_PREFIX)

    @pytest.mark.asyncio
    async def test_owner_id_is_deterministic(self):
        first = await _owner().authenticate("boss@example.com", "s3cret")
        second = await _owner().authenticate("boss@example.com", "s3cret")
        assert first.user.id == second.user.id

    @pytest.mark.asyncio
    async def test_wrong_password_rejected(self):
        with pytest.raises(AuthRejected):
            await _owner().authenticate("boss@example.com", "guess")

    @pytest.mark.asyncio
    async def test_other_email_rejected(self):
        with pytest.raises(AuthRejected):
            await _owner().authenticate("a@x.com", "s3cret")

    @pytest.mark.asyncio
    async def test_other_operations_unsupported(self):
        owner = _owner()
        user = User(id=OWNER_ID, name="Boss", email="boss@example.com")
        with pytest.raises(Unsupported):
            await owner.register("Boss", "boss@example.com", "s3cret")
        with pytest.raises(Unsupported):
            await owner.update_profile("t", user, {"name": "X"})
        with pytest.raises(Unsupported):
            await owner.verify("t")

    def test_defaults_come_from_settings(self):
        from folio.config import settings

        owner = OwnerDirectory()
        assert owner._email == settings.OWNER_EMAIL
        assert owner._password == settings.OWNER_PASSWORD


class TestLocalDirectory:
    @pytest.mark.asyncio
    async def test_register_creates_record(self, local_users):
        directory = LocalDirectory(local_users)
        result = await directory.register("Ann", "a@x.com", "pw")

        assert result.is_owner is False
        assert result.token.startswith(LOCAL_TOKEN_PREFIX)
        assert result.user.name == "Ann"
        assert result.user.role == "user"
        assert result.user.is_active is True
        assert result.user.login_count == 1

        record = local_users.find_by_email("a@x.com")
        assert record.user.id == result.user.id
        assert record.password == "pw"

    @pytest.mark.asyncio
    async def test_register_generates_distinct_ids(self, local_users):
        directory = LocalDirectory(local_users)
        first = await directory.register("Ann", "a@x.com", "pw")
        second = await directory.register("Bob", "b@x.com", "pw")
        assert first.user.id != second.user.id

    @pytest.mark.asyncio
    async def test_register_duplicate_rejected(self, local_users):
        directory = LocalDirectory(local_users)
        await directory.register("Ann", "a@x.com", "pw")
        with pytest.raises(AuthRejected):
            await directory.register("Other Ann", "a@x.com", "other")
        assert len(local_users.list_records()) == 1

    @pytest.mark.asyncio
    async def test_authenticate_matches_record(self, local_users):
        directory = LocalDirectory(local_users)
        created = await directory.register("Ann", "a@x.com", "pw")
        result = await directory.authenticate("a@x.com", "pw")

        assert result.user.id == created.user.id
        assert result.user.login_count == 2
        assert result.user.last_login is not None
        assert "password" not in result.user.to_dict()

    @pytest.mark.asyncio
    async def test_authenticate_bad_password(self, local_users):
        directory = LocalDirectory(local_users)
        await directory.register("Ann", "a@x.com", "pw")
        with pytest.raises(AuthRejected):
            await directory.authenticate("a@x.com", "nope")

    @pytest.mark.asyncio
    async def test_update_profile_patches_registry(self, local_users):
        directory = LocalDirectory(local_users)
        created = await directory.register("Ann", "a@x.com", "pw")
        updated = await directory.update_profile(
            created.token, created.user, {"bio": "hello", "date_of_birth": "1990-05-01"},
        )

        assert updated.bio == "hello"
        record = local_users.find_by_id(created.user.id)
        assert record.user.bio == "hello"
        assert record.user.date_of_birth == "1990-05-01"
        assert record.password == "pw"

    @pytest.mark.asyncio
    async def test_update_profile_without_record_still_applies(self, local_users):
        directory = LocalDirectory(local_users)
        remote_user = User(id="remote-1", name="Ann", email="a@x.com")
        updated = await directory.update_profile("jwt", remote_user, {"name": "Annie"})
        assert updated.name == "Annie"
        assert local_users.list_records() == []

    @pytest.mark.asyncio
    async def test_verify_unsupported(self, local_users):
        with pytest.raises(Unsupported):
            await LocalDirectory(local_users).verify("local_token_1")

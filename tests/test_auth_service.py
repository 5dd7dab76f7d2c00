"""
Auth service tests: signup composite, login, logout blacklist.
"""

from uuid import uuid4

import pytest

from tasknest.core.exceptions import (
    InvalidCredentialsError,
    PasswordTooShortError,
    SignupFailedError,
    UserNotFoundError,
    UsernameRequiredError,
    UsernameTakenError,
)
from tasknest.core.security import (
    blacklist_redis_key,
    create_access_token,
    decode_access_token,
    generate_invite_code,
)
from tasknest.models.member import OrgRole
from tasknest.services.auth_service import AuthService
from tests.fakes import FakeUserRepository


class RecordingRedis:
    def __init__(self):
        self.values = {}

    async def set(self, key, value, ex=None):
        self.values[key] = (value, ex)


@pytest.fixture
def service(user_repo) -> AuthService:
    return AuthService(user_repo, invite_code_factory=lambda: "abcd-ef01-2345")


async def test_signup_creates_personal_organization(service, store):
    user = await service.signup("  alice ", "correct-horse")

    assert user.username == "alice"
    assert user.password_hash != "correct-horse"
    [org] = store.organizations.values()
    assert org.name == "alice's organization"
    assert org.invite_code == "abcd-ef01-2345"
    assert store.members[(org.id, user.id)].role == OrgRole.owner


async def test_signup_validation(service):
    with pytest.raises(UsernameRequiredError):
        await service.signup("   ", "long-enough")
    with pytest.raises(PasswordTooShortError):
        await service.signup("alice", "short")


async def test_signup_rejects_taken_username(service):
    await service.signup("alice", "password-1")
    with pytest.raises(UsernameTakenError):
        await service.signup("alice", "password-2")


@pytest.mark.parametrize("step", ["user", "organization", "membership"])
async def test_signup_failure_leaves_nothing_behind(store, step):
    service = AuthService(FakeUserRepository(store, fail_at=step))

    with pytest.raises(SignupFailedError) as exc_info:
        await service.signup("alice", "password-1")

    assert exc_info.value.step == step
    assert store.users == {}
    assert store.organizations == {}
    assert store.members == {}


async def test_login(service):
    created = await service.signup("alice", "password-1")

    assert (await service.login("alice", "password-1")).id == created.id
    with pytest.raises(InvalidCredentialsError):
        await service.login("alice", "wrong-password")
    with pytest.raises(InvalidCredentialsError):
        await service.login("nobody", "password-1")


async def test_get_user(service):
    created = await service.signup("alice", "password-1")
    assert (await service.get_user(created.id)).username == "alice"
    with pytest.raises(UserNotFoundError):
        await service.get_user(uuid4())


async def test_logout_blacklists_jti(service):
    payload = decode_access_token(create_access_token(str(uuid4()), jti="jti-123"))
    redis = RecordingRedis()

    await service.logout(redis, payload)

    value, ttl = redis.values[blacklist_redis_key("jti-123")]
    assert value == "1"
    assert ttl > 0


def test_invite_code_format():
    code = generate_invite_code()
    parts = code.split("-")
    assert [len(p) for p in parts] == [4, 4, 4]
    int("".join(parts), 16)

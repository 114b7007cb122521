import pytest

from src.ojt_tracker.ojt_tracker.core.enums import Role
from src.ojt_tracker.ojt_tracker.core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from src.ojt_tracker.ojt_tracker.users.service import AuthService, UserService
from tests.fakes import InMemoryUsers, make_profile


@pytest.fixture
def users():
    return InMemoryUsers([make_profile(1, Role.ADMIN), make_profile(2), make_profile(3, is_active=False)])


def test_login_ok(users):
    session_user = AuthService(users).authenticate(" USER2@ojt.local ", "secret123")
    assert (session_user.user_id, session_user.role) == (2, Role.OJT)


@pytest.mark.parametrize("email,password", [("user2@ojt.local", "wrong"), ("nobody@ojt.local", "secret123"), ("user3@ojt.local", "secret123")])
def test_login_rejected(users, email, password):
    with pytest.raises(AuthenticationError):
        AuthService(users).authenticate(email, password)


def test_placeholder_hash_never_matches():
    users = InMemoryUsers([make_profile(1, password_hash="CHANGE_ME")])
    with pytest.raises(AuthenticationError):
        AuthService(users).authenticate("user1@ojt.local", "CHANGE_ME")


def test_admin_creates_user(users):
    svc = UserService(users)
    uid = svc.create_user(
        current_role=Role.ADMIN,
        full_name="New Trainee",
        email="New@OJT.local",
        password="longenough",
        role="ojt",
        required_hours="480",
    )

    created = svc.get(uid)
    assert created.email == "new@ojt.local"
    assert created.required_hours == 480
    assert AuthService(users).authenticate("new@ojt.local", "longenough").user_id == uid


def test_create_user_validation(users):
    svc = UserService(users)
    base = dict(current_role=Role.ADMIN, full_name="X", email="x@ojt.local", password="longenough")

    with pytest.raises(AuthorizationError):
        svc.create_user(**{**base, "current_role": Role.SUPERVISOR})
    with pytest.raises(ValidationError):
        svc.create_user(**{**base, "email": "user2@ojt.local"})
    with pytest.raises(ValidationError):
        svc.create_user(**{**base, "password": "123"})
    with pytest.raises(ValidationError):
        svc.create_user(**{**base, "role": "intern"})
    with pytest.raises(ValidationError):
        svc.create_user(**{**base, "required_hours": -1})


def test_deactivate_and_delete(users):
    svc = UserService(users)
    svc.deactivate_user(current_role=Role.ADMIN, user_id=2)
    assert not svc.get(2).is_active

    with pytest.raises(ValidationError):
        svc.delete_user(current_role=Role.ADMIN, current_user_id=1, user_id=1)

    svc.delete_user(current_role=Role.ADMIN, current_user_id=1, user_id=2)
    assert [u.user_id for u in svc.list_users()] == [1, 3]

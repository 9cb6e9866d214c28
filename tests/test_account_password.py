"""Password endpoint tests."""
import pytest

from tatami.core.errors import AccountError, AccountErrorKind
from tatami.services import user_service
from tatami.services.auth_service import verify_password
from tests.conftest import PASSWORD, client, reload_user

EMPTY_PASSWORD = {"oldPassword": None, "newPassword": None, "newPasswordConfirmation": None}


@pytest.fixture
def password_updates(monkeypatch):
    calls = []
    update_password = user_service.update_password

    def record(db, user, raw_password):
        calls.append(user.login)
        update_password(db, user, raw_password)

    monkeypatch.setattr(user_service, "update_password", record)
    return calls


def test_password_form_allowed(auth_headers):
    r = client.get("/rest/account/password", headers=auth_headers)
    assert r.status_code == 200
    assert r.json() == EMPTY_PASSWORD


def test_password_managed_by_ldap(ldap_headers):
    r = client.get("/rest/account/password", headers=ldap_headers)
    assert r.status_code == 403
    assert r.content == b""


def test_set_password(auth_headers, db_session, password_updates):
    r = client.post("/rest/account/password", json={
        "oldPassword": PASSWORD,
        "newPassword": "n3w-passw0rd",
        "newPasswordConfirmation": "n3w-passw0rd",
    }, headers=auth_headers)
    assert r.status_code == 200
    assert r.json() == EMPTY_PASSWORD
    assert password_updates == ["alice@example.com"]

    stored = reload_user(db_session, "alice@example.com")
    assert stored.password != "n3w-passw0rd"
    assert verify_password("n3w-passw0rd", stored.password)
    assert not verify_password(PASSWORD, stored.password)


def test_set_password_wrong_old_password(auth_headers, db_session, password_updates):
    r = client.post("/rest/account/password", json={
        "oldPassword": "not-my-password",
        "newPassword": "n3w-passw0rd",
        "newPasswordConfirmation": "n3w-passw0rd",
    }, headers=auth_headers)
    assert r.status_code == 500
    assert r.content == b""
    assert password_updates == []
    assert verify_password(PASSWORD, reload_user(db_session, "alice@example.com").password)


def test_set_password_confirmation_mismatch(auth_headers, db_session, password_updates):
    r = client.post("/rest/account/password", json={
        "oldPassword": PASSWORD,
        "newPassword": "n3w-passw0rd",
        "newPasswordConfirmation": "another-one",
    }, headers=auth_headers)
    assert r.status_code == 500
    assert r.content == b""
    assert password_updates == []
    assert verify_password(PASSWORD, reload_user(db_session, "alice@example.com").password)


def test_set_password_too_short(auth_headers, db_session):
    r = client.post("/rest/account/password", json={
        "oldPassword": PASSWORD,
        "newPassword": "abc",
        "newPasswordConfirmation": "abc",
    }, headers=auth_headers)
    assert r.status_code == 500
    assert r.content == b""
    assert verify_password(PASSWORD, reload_user(db_session, "alice@example.com").password)


def test_set_password_rate_limited(auth_headers):
    payload = {"oldPassword": "wrong", "newPassword": "abcd", "newPasswordConfirmation": "abcd"}
    for _ in range(10):
        assert client.post("/rest/account/password", json=payload, headers=auth_headers).status_code == 500

    r = client.post("/rest/account/password", json=payload, headers=auth_headers)
    assert r.status_code == 429


@pytest.mark.parametrize("new_password, expected", [
    ("a" * 72, 200),
    ("é" * 36, 200),
    ("a" * 73, 500),
    ("é" * 37, 500),
    ("a" * 100, 500),
])
def test_set_password_bcrypt_byte_limit(auth_headers, db_session, new_password, expected):
    r = client.post("/rest/account/password", json={
        "oldPassword": PASSWORD,
        "newPassword": new_password,
        "newPasswordConfirmation": new_password,
    }, headers=auth_headers)
    assert r.status_code == expected

    stored = reload_user(db_session, "alice@example.com")
    if expected == 200:
        assert verify_password(new_password, stored.password)
    else:
        assert r.content == b""
        assert verify_password(PASSWORD, stored.password)


def test_update_password_refuses_oversized_input_before_hashing(alice, db_session, monkeypatch):
    user, _ = alice
    hashed = []
    monkeypatch.setattr(user_service, "hash_password", lambda raw: hashed.append(raw))

    with pytest.raises(AccountError) as excinfo:
        user_service.update_password(db_session, user, "ü" * 40)
    assert excinfo.value.kind is AccountErrorKind.PERSISTENCE_REJECTED
    assert hashed == []

import time

from authlib.jose import jwt

from equalify.auth import create_access_token, decode_access_token


def test_token_round_trip():
    assert decode_access_token(create_access_token(42)) == 42


def test_expired_token_is_rejected():
    assert decode_access_token(create_access_token(42, expires_in=-10)) is None


def test_token_signed_with_another_key_is_rejected():
    payload = {"sub": "42", "exp": int(time.time()) + 60}
    token = jwt.encode({"alg": "HS256"}, payload, "someone-else").decode("utf-8")
    assert decode_access_token(token) is None


def test_token_for_unknown_user(client):
    headers = {"Authorization": f"Bearer {create_access_token(12345)}"}
    assert client.get("/users/me", headers=headers).status_code == 401


def test_index(client):
    assert client.get("/").json() == {"name": "Equalify", "user": None}

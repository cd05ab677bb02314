import time

import pytest
from jose import jwt

from marketplace.auth import CurrentUser, get_current_user
from marketplace.models import CrowdfundingNotification

SECRET = "test-jwt-secret"


def make_token(sub="u1", aud="authenticated", secret=SECRET, expires_in=3600):
    claims = {"aud": aud, "exp": int(time.time()) + expires_in, "email": "u1@example.com"}
    if sub:
        claims["sub"] = sub
    return jwt.encode(claims, secret, algorithm="HS256")


def test_valid_token_reaches_handler(raw_client, add):
    add(CrowdfundingNotification(id="n1", user_id="u1", type="project_update", title="Hi"))

    response = raw_client.get("/api/crowdfunding/notifications",
                              headers={"Authorization": f"Bearer {make_token()}"})

    assert response.status_code == 200
    assert [n["id"] for n in response.json()] == ["n1"]


@pytest.mark.parametrize("header", [
    None,
    "",
    "Bearer",
    "Token abc",
    "Bearer not-a-jwt",
    f"Bearer {make_token(secret='other-secret')}",
    f"Bearer {make_token(aud='anon')}",
    f"Bearer {make_token(expires_in=-60)}",
    f"Bearer {make_token(sub=None)}",
])
def test_bad_credentials_are_401(raw_client, mocker, header):
    create = mocker.patch("marketplace.routes.payments.create_payment")
    headers = {"Authorization": header} if header is not None else {}

    response = raw_client.post("/api/stripe/create-payment-intent", json={"offerId": "o1"}, headers=headers)

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    create.assert_not_called()


def test_missing_jwt_secret_rejects(raw_client, monkeypatch):
    monkeypatch.delenv("SUPABASE_JWT_SECRET")

    response = raw_client.get("/api/crowdfunding/notifications",
                              headers={"Authorization": f"Bearer {make_token()}"})

    assert response.status_code == 401


def test_current_user_is_token_subject():
    user = get_current_user(authorization=f"Bearer {make_token(sub='u42')}")

    assert user == CurrentUser(id="u42")

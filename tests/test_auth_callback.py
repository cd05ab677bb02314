import httpx
import pytest

from marketplace import supabase_auth
from marketplace.routes.auth_callback import safe_next_path


@pytest.fixture
def auth_service(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.test/")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")


def test_callback_exchanges_code_and_redirects(raw_client, auth_service, mocker):
    exchange = mocker.patch("marketplace.supabase_auth.exchange_code_for_session",
                            return_value={"access_token": "t"})
    raw_client.cookies.set("sb-project-auth-token-code-verifier", "verifier-123")

    response = raw_client.get("/auth/callback", params={"code": "abc", "next": "/dashboard"},
                              follow_redirects=False)

    assert response.status_code == 307
    assert response.headers["location"] == "http://testserver/dashboard"
    exchange.assert_called_once_with("abc", "verifier-123")


def test_callback_defaults_to_register(raw_client, auth_service, mocker):
    mocker.patch("marketplace.supabase_auth.exchange_code_for_session", return_value={})

    response = raw_client.get("/auth/callback", params={"code": "abc"}, follow_redirects=False)

    assert response.headers["location"] == "http://testserver/register"


def test_callback_failed_exchange(raw_client, auth_service, mocker):
    mocker.patch("marketplace.supabase_auth.exchange_code_for_session",
                 side_effect=supabase_auth.AuthExchangeError("invalid grant"))

    response = raw_client.get("/auth/callback", params={"code": "abc", "next": "/dashboard"},
                              follow_redirects=False)

    assert response.status_code == 307
    assert response.headers["location"] == "http://testserver/auth?error=verification_failed"


def test_callback_without_code_skips_exchange(raw_client, auth_service, mocker):
    exchange = mocker.patch("marketplace.supabase_auth.exchange_code_for_session")

    response = raw_client.get("/auth/callback", follow_redirects=False)

    assert response.headers["location"] == "http://testserver/register"
    exchange.assert_not_called()


def test_callback_without_auth_config_skips_exchange(raw_client, monkeypatch, mocker):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    exchange = mocker.patch("marketplace.supabase_auth.exchange_code_for_session")

    response = raw_client.get("/auth/callback", params={"code": "abc"}, follow_redirects=False)

    assert response.status_code == 307
    exchange.assert_not_called()


@pytest.mark.parametrize("value, expected", [
    (None, "/register"),
    ("/dashboard/offers?tab=1", "/dashboard/offers?tab=1"),
    ("https://evil.example", "/register"),
    ("//evil.example", "/register"),
    ("/\\evil.example", "/register"),
    ("dashboard", "/register"),
])
def test_safe_next_path(value, expected):
    assert safe_next_path(value) == expected


def test_exchange_code_posts_pkce_grant(auth_service, mocker):
    post = mocker.patch("httpx.Client.post", return_value=httpx.Response(200, json={"access_token": "t"}))

    session = supabase_auth.exchange_code_for_session("abc", "verifier")

    assert session == {"access_token": "t"}
    args, kwargs = post.call_args
    assert args[0] == "https://project.supabase.test/auth/v1/token"
    assert kwargs["params"] == {"grant_type": "pkce"}
    assert kwargs["json"] == {"auth_code": "abc", "code_verifier": "verifier"}
    assert kwargs["headers"]["apikey"] == "anon-key"


def test_exchange_code_raises_on_error_response(auth_service, mocker):
    mocker.patch("httpx.Client.post",
                 return_value=httpx.Response(400, json={"error_description": "invalid flow state"}))

    with pytest.raises(supabase_auth.AuthExchangeError, match="invalid flow state"):
        supabase_auth.exchange_code_for_session("abc")


def test_exchange_code_raises_when_unreachable(auth_service, mocker):
    mocker.patch("httpx.Client.post", side_effect=httpx.ConnectError("refused"))

    with pytest.raises(supabase_auth.AuthExchangeError):
        supabase_auth.exchange_code_for_session("abc")

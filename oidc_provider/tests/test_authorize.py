"""
Tests for /oauth2/authorize and the code issuer.
"""
import re
from concurrent.futures import ThreadPoolExecutor
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from oidc_provider.authorize import AuthorizationRequest, CodeIssuer
from oidc_provider.clients import ClientRegistry
from oidc_provider.code_store import CodeStore
from oidc_provider.dependencies import get_now
from oidc_provider.errors import (
    InternalError,
    MissingParameter,
    RedirectURINotAllowed,
    UnknownClient,
    UnsupportedResponseType,
    UnsupportedScope,
)
from oidc_provider.main import create_app

NOW = 1_700_000_000
REDIRECT_URI = "https://client.example/cb"
VALID = {
    "response_type": "code",
    "client_id": "abc",
    "redirect_uri": REDIRECT_URI,
    "scope": "openid",
    "state": "xyz",
}


@pytest.fixture
def store():
    return CodeStore()


@pytest.fixture
def app(store, rs256_signer):
    app = create_app(code_store=store, signer=rs256_signer)
    app.dependency_overrides[get_now] = lambda: NOW
    return app


@pytest.fixture
def client(app):
    return TestClient(app, follow_redirects=False)


def _params(**overrides):
    params = dict(VALID)
    params.update(overrides)
    return {k: v for k, v in params.items() if v is not None}


# --- HTTP surface ---


def test_create_app_keeps_injected_empty_store(app, store, rs256_signer):
    assert len(store) == 0
    assert app.state.code_store is store
    assert app.state.signer is rs256_signer


def test_authorize_redirects_with_code_and_state(client, store):
    r = client.get("/oauth2/authorize", params=VALID)
    assert r.status_code == 302
    location = urlparse(r.headers["location"])
    assert f"{location.scheme}://{location.netloc}{location.path}" == REDIRECT_URI
    query = parse_qs(location.query)
    assert query["state"] == ["xyz"]
    assert len(query["code"][0]) == 44
    assert len(store) == 1


def test_authorize_location_carries_literal_code(client):
    r = client.get("/oauth2/authorize", params=VALID)
    assert re.fullmatch(r"https://client\.example/cb\?code=[A-Za-z0-9_-]{43}=&state=xyz", r.headers["location"])


def test_authorize_post_form(client, store):
    r = client.post("/oauth2/authorize", data=VALID)
    assert r.status_code == 302
    assert "code=" in r.headers["location"]
    assert len(store) == 1


def test_authorize_missing_client_id(client, store):
    r = client.get("/oauth2/authorize", params=_params(client_id=None))
    assert r.status_code == 400
    assert r.text == "client_id is required"
    assert len(store) == 0


def test_authorize_missing_redirect_uri(client):
    r = client.get("/oauth2/authorize", params=_params(redirect_uri=None))
    assert r.status_code == 400
    assert r.text == "redirect_uri is required"


def test_authorize_unsupported_scope(client, store):
    r = client.get("/oauth2/authorize", params=_params(scope="profile"))
    assert r.status_code == 400
    assert r.text == "unsupported scope"
    assert len(store) == 0


def test_authorize_unsupported_response_type(client):
    r = client.get("/oauth2/authorize", params=_params(response_type="token"))
    assert r.status_code == 400
    assert r.text == "unsupported response_type"


def test_authorize_first_failure_wins(client):
    """Missing client_id is reported even when every other parameter is also wrong."""
    r = client.get("/oauth2/authorize", params={"scope": "profile", "response_type": "token"})
    assert r.status_code == 400
    assert r.text == "client_id is required"


def test_authorize_empty_state_passed_through(client):
    r = client.get("/oauth2/authorize", params=_params(state=None))
    assert r.status_code == 302
    query = parse_qs(urlparse(r.headers["location"]).query, keep_blank_values=True)
    assert query["state"] == [""]


def test_authorize_state_echoed_verbatim(client):
    r = client.get("/oauth2/authorize", params=_params(state="a b&c=d"))
    query = parse_qs(urlparse(r.headers["location"]).query)
    assert query["state"] == ["a b&c=d"]


def test_authorize_redirect_uri_with_existing_query(client):
    r = client.get("/oauth2/authorize", params=_params(redirect_uri="https://client.example/cb?tenant=1"))
    assert r.status_code == 302
    query = parse_qs(urlparse(r.headers["location"]).query)
    assert query["tenant"] == ["1"]
    assert "code" in query


def test_authorize_captures_client_and_subject(client, store):
    r = client.get("/oauth2/authorize", params=VALID, headers={"X-Authenticated-Subject": "alice"})
    code = parse_qs(urlparse(r.headers["location"]).query)["code"][0]
    record = store.take_if_valid(code, NOW)
    assert record.client_id == "abc"
    assert record.redirect_uri == REDIRECT_URI
    assert record.subject == "alice"
    assert record.issued_at == NOW
    assert record.expires_at == NOW + 600


def test_authorize_registered_client_enforced(store, rs256_signer):
    registry = ClientRegistry()
    registry.register("abc", [REDIRECT_URI])
    app = create_app(code_store=store, client_registry=registry, signer=rs256_signer)
    client = TestClient(app, follow_redirects=False)

    assert client.get("/oauth2/authorize", params=VALID).status_code == 302

    r = client.get("/oauth2/authorize", params=_params(redirect_uri="https://evil.example/cb"))
    assert r.status_code == 400
    assert r.text == "redirect_uri not allowed"

    r = client.get("/oauth2/authorize", params=_params(client_id="other"))
    assert r.status_code == 400
    assert r.text == "unknown client_id"


def test_authorize_random_failure_returns_500(store, rs256_signer, monkeypatch):
    from oidc_provider import authorize as authorize_module

    def broken():
        raise InternalError("random source unavailable")

    monkeypatch.setattr(authorize_module, "generate_token", broken)
    client = TestClient(create_app(code_store=store, signer=rs256_signer), follow_redirects=False)
    r = client.get("/oauth2/authorize", params=VALID)
    assert r.status_code == 500
    assert len(store) == 0


# --- CodeIssuer ---


@pytest.mark.parametrize(
    "overrides, error",
    [
        ({"client_id": ""}, MissingParameter),
        ({"redirect_uri": ""}, MissingParameter),
        ({"scope": "openid profile"}, UnsupportedScope),
        ({"response_type": "id_token"}, UnsupportedResponseType),
    ],
)
def test_issuer_validation_errors(store, overrides, error):
    req = AuthorizationRequest(**{**VALID, **overrides})
    with pytest.raises(error):
        CodeIssuer(store).issue(req, "user-1", NOW)
    assert len(store) == 0


def test_issuer_registry_errors(store):
    registry = ClientRegistry()
    registry.register("abc", [REDIRECT_URI])
    issuer = CodeIssuer(store, registry)
    with pytest.raises(UnknownClient):
        issuer.issue(AuthorizationRequest(**{**VALID, "client_id": "zzz"}), "u", NOW)
    with pytest.raises(RedirectURINotAllowed):
        issuer.issue(AuthorizationRequest(**{**VALID, "redirect_uri": REDIRECT_URI + "/x"}), "u", NOW)


def test_issuer_duplicate_code_is_internal_error(store):
    issuer = CodeIssuer(store, generate=lambda: "same-code")
    issuer.issue(AuthorizationRequest(**VALID), "u", NOW)
    with pytest.raises(InternalError):
        issuer.issue(AuthorizationRequest(**VALID), "u", NOW)
    assert len(store) == 1


def test_codes_unique_sequential(store):
    issuer = CodeIssuer(store)
    req = AuthorizationRequest(**VALID)
    codes = {issuer.issue(req, "u", NOW).code for _ in range(10_000)}
    assert len(codes) == 10_000
    assert len(store) == 10_000


def test_codes_unique_concurrent(store):
    issuer = CodeIssuer(store)
    req = AuthorizationRequest(**VALID)
    with ThreadPoolExecutor(max_workers=16) as pool:
        codes = list(pool.map(lambda _: issuer.issue(req, "u", NOW).code, range(10_000)))
    assert len(set(codes)) == 10_000
    assert len(store) == 10_000

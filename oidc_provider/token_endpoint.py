"""
Token endpoint (POST /oauth2/token). Authorization code exchange only; no refresh tokens.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from oidc_provider.audit import (
    EVENT_TOKEN_ISSUED,
    EVENT_TOKEN_REJECTED,
    get_client_ip,
    log_audit,
    OUTCOME_FAIL,
    OUTCOME_SUCCESS,
)
from oidc_provider.clients import ClientRegistry, parse_basic_auth
from oidc_provider.code_store import CodeStore
from oidc_provider.dependencies import get_client_registry, get_code_store, get_issuer, get_now, get_signer
from oidc_provider.errors import (
    ClientMismatch,
    InvalidClient,
    InvalidGrant,
    OIDCError,
    RedirectURIMismatch,
    UnsupportedGrantType,
)
from oidc_provider.keys import TokenSigner
from oidc_provider.metadata import SUPPORTED_GRANT_TYPES, TOKEN_ENDPOINT
from oidc_provider.minter import TokenMinter, TokenResponse

logger = logging.getLogger(__name__)
router = APIRouter()

_NO_STORE = {"Cache-Control": "no-store", "Pragma": "no-cache"}


class TokenExchangeRequest(BaseModel):
    grant_type: str = ""
    code: str = ""
    redirect_uri: str = ""
    client_id: str = ""
    client_secret: str | None = None


class TokenExchanger:
    def __init__(self, store: CodeStore, minter: TokenMinter):
        self.store = store
        self.minter = minter

    def exchange(self, req: TokenExchangeRequest, issuer: str, now: int) -> TokenResponse:
        """
        Consume the code and mint tokens. The code is taken from the store before the
        client and redirect_uri checks, so a misused code is burned.
        """
        if req.grant_type not in SUPPORTED_GRANT_TYPES:
            raise UnsupportedGrantType()
        record = self.store.take_if_valid(req.code, now)
        if record is None:
            raise InvalidGrant()
        if record.client_id != req.client_id:
            raise ClientMismatch()
        # RFC 6749 §4.1.3: redirect_uri must match the one used at authorization
        if record.redirect_uri != req.redirect_uri:
            raise RedirectURIMismatch()
        return self.minter.mint(record, req.client_id, issuer, now)


def authenticate_client(
    clients: ClientRegistry | None,
    req: TokenExchangeRequest,
    authorization: str | None,
) -> TokenExchangeRequest:
    """
    client_secret_post (body) or client_secret_basic (header). Returns the request with
    client_id filled from the Basic header when the body omits it.
    """
    basic = parse_basic_auth(authorization)
    client_id, client_secret = req.client_id, req.client_secret
    if basic is not None:
        if client_id and client_id != basic[0]:
            raise InvalidClient("client_id does not match credentials")
        client_id = basic[0]
        if client_secret is None:
            client_secret = basic[1]
    if clients is not None and not clients.authenticate(client_id, client_secret):
        raise InvalidClient()
    if client_id != req.client_id:
        req = req.model_copy(update={"client_id": client_id})
    return req


@router.post(TOKEN_ENDPOINT)
def token(
    body: TokenExchangeRequest,
    request: Request,
    store: CodeStore = Depends(get_code_store),
    clients: ClientRegistry | None = Depends(get_client_registry),
    signer: TokenSigner = Depends(get_signer),
    issuer: str = Depends(get_issuer),
    now: int = Depends(get_now),
):
    """Exchange an authorization code for access_token and id_token."""
    exchanger = TokenExchanger(store, TokenMinter(signer))
    try:
        req = authenticate_client(clients, body, request.headers.get("Authorization"))
        response = exchanger.exchange(req, issuer, now)
    except OIDCError as e:
        log_audit(
            EVENT_TOKEN_REJECTED,
            client_id=body.client_id or None,
            ip=get_client_ip(request),
            outcome=OUTCOME_FAIL,
            reason=e.description,
        )
        headers = dict(_NO_STORE)
        if isinstance(e, InvalidClient):
            headers["WWW-Authenticate"] = "Basic"
        raise HTTPException(
            status_code=e.status_code,
            detail={"error": e.error, "error_description": e.description},
            headers=headers,
        )
    log_audit(EVENT_TOKEN_ISSUED, client_id=req.client_id, ip=get_client_ip(request), outcome=OUTCOME_SUCCESS)
    return JSONResponse(response.to_dict(), headers=_NO_STORE)

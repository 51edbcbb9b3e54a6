"""
Authorization endpoint. GET (query) or POST (form): validate the request, issue a code, redirect.
The resource owner is assumed to be authenticated upstream.
ref: https://openid.net/specs/openid-connect-core-1_0.html#AuthRequest
"""
import logging
from dataclasses import dataclass
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import PlainTextResponse, RedirectResponse

from oidc_provider.audit import (
    EVENT_AUTHORIZE_REJECTED,
    EVENT_CODE_ISSUED,
    get_client_ip,
    log_audit,
    OUTCOME_FAIL,
    OUTCOME_SUCCESS,
)
from oidc_provider.clients import ClientRegistry
from oidc_provider.code_store import AuthorizationCodeRecord, CodeStore, generate_token
from oidc_provider.config import CODE_TTL_SECONDS
from oidc_provider.dependencies import get_client_registry, get_code_store, get_now, get_subject
from oidc_provider.errors import (
    DuplicateCodeError,
    InternalError,
    MissingParameter,
    OIDCError,
    RedirectURINotAllowed,
    UnknownClient,
    UnsupportedResponseType,
    UnsupportedScope,
)
from oidc_provider.metadata import AUTHORIZATION_ENDPOINT, SUPPORTED_RESPONSE_TYPES, SUPPORTED_SCOPES

logger = logging.getLogger(__name__)
router = APIRouter()


@dataclass(frozen=True)
class AuthorizationRequest:
    response_type: str = ""
    client_id: str = ""
    redirect_uri: str = ""
    scope: str = ""
    state: str = ""


@dataclass(frozen=True)
class RedirectResult:
    location: str
    code: str


def build_code_redirect(uri: str, code: str, state: str) -> str:
    """
    Append code and state. The code alphabet (base64url plus "=" padding) is left as is,
    so the query carries the 44-char value; state is URL-encoded.
    """
    sep = "&" if "?" in uri else "?"
    state_param = urlencode({"state": state})
    return f"{uri}{sep}code={code}&{state_param}"


class CodeIssuer:
    """
    Validates authorization requests and records a fresh code for each valid one.
    Without a client registry, redirect_uri registration is not checked.
    """

    def __init__(self, store: CodeStore, clients: ClientRegistry | None = None, generate=None):
        self.store = store
        self.clients = clients
        self._generate = generate or generate_token

    def validate(self, req: AuthorizationRequest) -> None:
        """Raise the first validation failure, in a fixed order."""
        if not req.client_id:
            raise MissingParameter("client_id")
        if not req.redirect_uri:
            raise MissingParameter("redirect_uri")
        if req.scope not in SUPPORTED_SCOPES:
            raise UnsupportedScope()
        if req.response_type not in SUPPORTED_RESPONSE_TYPES:
            raise UnsupportedResponseType()
        if self.clients is not None:
            client = self.clients.get(req.client_id)
            if client is None:
                raise UnknownClient()
            if not client.redirect_uri_allowed(req.redirect_uri):
                raise RedirectURINotAllowed()

    def issue(self, req: AuthorizationRequest, subject: str, now: int) -> RedirectResult:
        self.validate(req)
        code = self._generate()
        record = AuthorizationCodeRecord(
            code=code,
            client_id=req.client_id,
            redirect_uri=req.redirect_uri,
            subject=subject,
            issued_at=now,
            expires_at=now + CODE_TTL_SECONDS,
        )
        try:
            self.store.put(record)
        except DuplicateCodeError as e:
            logger.error("Generated authorization code collided with a live code")
            raise InternalError("failed to issue authorization code") from e
        # https://datatracker.ietf.org/doc/html/rfc6749#section-4.1.2
        # state is opaque to us and echoed verbatim, even when empty
        location = build_code_redirect(req.redirect_uri, code, req.state)
        return RedirectResult(location=location, code=code)


def _authorize(request: Request, req: AuthorizationRequest, store, clients, subject: str, now: int):
    issuer = CodeIssuer(store, clients)
    try:
        result = issuer.issue(req, subject, now)
    except OIDCError as e:
        log_audit(
            EVENT_AUTHORIZE_REJECTED,
            client_id=req.client_id or None,
            ip=get_client_ip(request),
            outcome=OUTCOME_FAIL,
            reason=e.description,
        )
        return PlainTextResponse(e.description, status_code=e.status_code)
    log_audit(EVENT_CODE_ISSUED, client_id=req.client_id, ip=get_client_ip(request), outcome=OUTCOME_SUCCESS)
    return RedirectResponse(url=result.location, status_code=302)


@router.get(AUTHORIZATION_ENDPOINT)
def authorize_get(
    request: Request,
    response_type: str = "",
    client_id: str = "",
    redirect_uri: str = "",
    scope: str = "",
    state: str = "",
    store: CodeStore = Depends(get_code_store),
    clients: ClientRegistry | None = Depends(get_client_registry),
    subject: str = Depends(get_subject),
    now: int = Depends(get_now),
):
    """Authorization request as query parameters."""
    req = AuthorizationRequest(response_type, client_id, redirect_uri, scope, state)
    return _authorize(request, req, store, clients, subject, now)


@router.post(AUTHORIZATION_ENDPOINT)
def authorize_post(
    request: Request,
    response_type: str = Form(""),
    client_id: str = Form(""),
    redirect_uri: str = Form(""),
    scope: str = Form(""),
    state: str = Form(""),
    store: CodeStore = Depends(get_code_store),
    clients: ClientRegistry | None = Depends(get_client_registry),
    subject: str = Depends(get_subject),
    now: int = Depends(get_now),
):
    """Authorization request as form parameters."""
    req = AuthorizationRequest(response_type, client_id, redirect_uri, scope, state)
    return _authorize(request, req, store, clients, subject, now)

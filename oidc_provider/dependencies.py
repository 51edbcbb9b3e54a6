"""
FastAPI dependencies: clock, shared components from app.state, request-derived values.
"""
import time

from fastapi import Request

from oidc_provider import config
from oidc_provider.clients import ClientRegistry
from oidc_provider.code_store import CodeStore
from oidc_provider.keys import TokenSigner
from oidc_provider.metadata import formal_url


def get_now() -> int:
    """Current Unix time. Overridden in tests to simulate clock advance."""
    return int(time.time())


def get_code_store(request: Request) -> CodeStore:
    return request.app.state.code_store


def get_client_registry(request: Request) -> ClientRegistry | None:
    return request.app.state.client_registry


def get_signer(request: Request) -> TokenSigner:
    return request.app.state.signer


def request_host(request: Request) -> str:
    return request.headers.get("host") or request.url.netloc


def get_issuer(request: Request) -> str:
    """Configured issuer, else https://<request host>."""
    return config.ISSUER or formal_url(request_host(request))


def get_subject(request: Request) -> str:
    """
    Resource owner already authenticated by the trusted upstream.
    Falls back to the configured development subject.
    """
    return request.headers.get(config.SUBJECT_HEADER) or config.DEFAULT_SUBJECT

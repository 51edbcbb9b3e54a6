"""
Discovery document and JWKS.
"""
from fastapi import APIRouter, Depends, Request

from oidc_provider.dependencies import get_signer, request_host
from oidc_provider.keys import TokenSigner
from oidc_provider.metadata import build_discovery_document, DISCOVERY_ENDPOINT, JWKS_ENDPOINT

router = APIRouter()


@router.get(DISCOVERY_ENDPOINT)
def openid_configuration(request: Request):
    """OpenID Connect discovery document; endpoint URLs follow the request host."""
    return build_discovery_document(request_host(request))


@router.get(JWKS_ENDPOINT)
def jwks_json(signer: TokenSigner = Depends(get_signer)):
    """JSON Web Key Set for ID token signature verification."""
    return signer.jwks()

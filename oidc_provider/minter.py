"""
Token minting: access token + ID token claims for a consumed authorization code.
"""
import logging
from dataclasses import dataclass

from oidc_provider.code_store import AuthorizationCodeRecord, generate_token
from oidc_provider.config import ACCESS_TOKEN_EXPIRES, ID_TOKEN_EXPIRES
from oidc_provider.errors import InternalError, OIDCError
from oidc_provider.keys import TokenSigner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenResponse:
    access_token: str
    id_token: str | dict
    token_type: str = "Bearer"
    expires_in: int = ACCESS_TOKEN_EXPIRES

    def to_dict(self) -> dict:
        # No refresh_token: offline access is not supported
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
            "id_token": self.id_token,
        }


def build_id_token_claims(issuer: str, subject: str, client_id: str, now: int) -> dict:
    # ref: https://openid.net/specs/openid-connect-core-1_0.html#IDToken
    return {
        "iss": issuer,
        "sub": subject,
        "aud": client_id,
        "iat": now,
        "exp": now + ID_TOKEN_EXPIRES,
    }


class TokenMinter:
    def __init__(self, signer: TokenSigner, generate=None):
        self.signer = signer
        self._generate = generate or generate_token

    def mint(self, record: AuthorizationCodeRecord, client_id: str, issuer: str, now: int) -> TokenResponse:
        access_token = self._generate()
        claims = build_id_token_claims(issuer, record.subject, client_id, now)
        try:
            id_token = self.signer.sign(claims)
        except OIDCError:
            raise
        except Exception as e:
            logger.exception("ID token signing failed for client_id=%s", client_id)
            raise InternalError("failed to generate ID token") from e
        return TokenResponse(access_token=access_token, id_token=id_token)

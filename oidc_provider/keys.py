"""
ID token signing. RS256 via PyJWT with an RSA key loaded from file or generated;
an explicitly unsigned signer exists for local development only.
"""
import base64
import logging
from pathlib import Path
from typing import Protocol

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import generate_private_key

logger = logging.getLogger(__name__)

_KEY_BITS = 2048
_KID = "oidc-provider-key"


class TokenSigner(Protocol):
    def sign(self, claims: dict) -> str | dict: ...

    def jwks(self) -> dict: ...


def _generate_key():
    return generate_private_key(public_exponent=65537, key_size=_KEY_BITS)


def _serialize_private(key) -> bytes:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def load_or_create_signing_key(path: str | None):
    """
    Load RSA private key from path, or generate one.
    Without a path the key is kept in memory only; with a path a generated key is saved there.
    """
    if not path:
        logger.info("No signing key path configured; using an ephemeral in-memory key")
        return _generate_key()
    p = Path(path)
    if p.exists():
        return serialization.load_pem_private_key(p.read_bytes(), password=None)
    key = _generate_key()
    try:
        p.write_bytes(_serialize_private(key))
        logger.info("Generated and saved signing key to %s", path)
    except OSError as e:
        logger.warning("Could not save signing key to %s: %s", path, e)
    return key


def _b64url_uint(value: int) -> str:
    raw = value.to_bytes((value.bit_length() + 7) // 8, "big")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def public_key_to_jwk(public_key, kid: str) -> dict:
    """Export an RSA public key as a JWK."""
    numbers = public_key.public_numbers()
    return {
        "kty": "RSA",
        "kid": kid,
        "alg": "RS256",
        "use": "sig",
        "n": _b64url_uint(numbers.n),
        "e": _b64url_uint(numbers.e),
    }


class RS256Signer:
    algorithm = "RS256"

    def __init__(self, private_key, kid: str = _KID):
        self._private_key = private_key
        self.kid = kid

    @property
    def public_key(self):
        return self._private_key.public_key()

    def sign(self, claims: dict) -> str:
        token = jwt.encode(
            claims,
            self._private_key,
            algorithm=self.algorithm,
            headers={"kid": self.kid, "typ": "JWT"},
        )
        if isinstance(token, bytes):
            token = token.decode("utf-8")
        return token

    def jwks(self) -> dict:
        return {"keys": [public_key_to_jwk(self.public_key, self.kid)]}


class UnsignedSigner:
    """
    Development only. Returns the claims wrapped in an object that says it is unsigned,
    so it can never be mistaken for a JWT.
    """

    algorithm = "none"

    def sign(self, claims: dict) -> dict:
        return {"alg": "none", "unsigned": True, "claims": dict(claims)}

    def jwks(self) -> dict:
        return {"keys": []}


def build_signer(mode: str, key_path: str | None) -> TokenSigner:
    """Signer for the configured mode: "RS256" or "none"."""
    if mode.lower() == "none":
        logger.warning("ID tokens are NOT signed (OIDC_ID_TOKEN_SIGNING=none); development use only")
        return UnsignedSigner()
    if mode != "RS256":
        raise ValueError(f"Unsupported ID token signing mode: {mode}")
    return RS256Signer(load_or_create_signing_key(key_path))

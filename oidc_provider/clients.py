"""
Client registry: registered redirect URIs per client_id, optional client secret.
In memory, seeded from the environment at startup. RFC 6749 §3.2.1 for client authentication.
"""
import base64
import binascii
import logging
import threading
from dataclasses import dataclass, field

import bcrypt

logger = logging.getLogger(__name__)


def hash_secret(secret: str) -> str:
    # Bcrypt has a 72-byte limit
    raw = secret.encode("utf-8")
    if len(raw) > 72:
        raw = raw[:72]
    return bcrypt.hashpw(raw, bcrypt.gensalt()).decode("utf-8")


def verify_secret(plain: str, hashed: str) -> bool:
    raw = plain.encode("utf-8")[:72]
    return bcrypt.checkpw(raw, hashed.encode("utf-8"))


@dataclass(frozen=True)
class RegisteredClient:
    client_id: str
    redirect_uris: tuple[str, ...] = field(default_factory=tuple)
    # None = public client
    client_secret_hash: str | None = None

    def redirect_uri_allowed(self, uri: str) -> bool:
        # Exact match only
        return uri in self.redirect_uris

    @property
    def is_confidential(self) -> bool:
        return bool(self.client_secret_hash)


class ClientRegistry:
    def __init__(self):
        self._clients: dict[str, RegisteredClient] = {}
        self._lock = threading.Lock()

    def register(
        self,
        client_id: str,
        redirect_uris: list[str] | tuple[str, ...],
        client_secret: str | None = None,
    ) -> RegisteredClient:
        client = RegisteredClient(
            client_id=client_id,
            redirect_uris=tuple(redirect_uris),
            client_secret_hash=hash_secret(client_secret) if client_secret else None,
        )
        with self._lock:
            self._clients[client_id] = client
        logger.info("Registered client: %s (confidential=%s)", client_id, client.is_confidential)
        return client

    def get(self, client_id: str) -> RegisteredClient | None:
        with self._lock:
            return self._clients.get(client_id)

    def authenticate(self, client_id: str, client_secret: str | None) -> bool:
        """
        True if the client may use the token endpoint with these credentials.
        Public and unknown clients pass; confidential clients need the right secret.
        """
        client = self.get(client_id)
        if client is None or not client.is_confidential:
            return True
        if not client_secret:
            return False
        return verify_secret(client_secret, client.client_secret_hash)

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)


def parse_basic_auth(header_value: str | None) -> tuple[str, str] | None:
    """Parse 'Basic <base64(client_id:client_secret)>'. Returns (client_id, client_secret) or None."""
    if not header_value or not header_value.strip().lower().startswith("basic "):
        return None
    encoded = header_value.strip()[6:].strip()
    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    if ":" not in decoded:
        return None
    client_id, _, client_secret = decoded.partition(":")
    return client_id.strip(), client_secret


def registry_from_env(
    client_id: str | None,
    redirect_uris: list[str],
    client_secret: str | None = None,
) -> ClientRegistry | None:
    """Registry holding the configured seed client, or None when no client is configured."""
    if not client_id or not redirect_uris:
        logger.warning(
            "No client configured (OIDC_CLIENT_ID / OIDC_REDIRECT_URIS); "
            "redirect_uri registration is NOT checked at /oauth2/authorize"
        )
        return None
    registry = ClientRegistry()
    registry.register(client_id, redirect_uris, client_secret)
    return registry

"""
Pytest configuration for oidc_provider. Fix the environment before the app is imported.
"""
import os

# No seed client, no persisted key, no background sweep during tests
for _var in ("OIDC_CLIENT_ID", "OIDC_REDIRECT_URIS", "OIDC_CLIENT_SECRET", "OIDC_SIGNING_KEY_PATH", "OIDC_ISSUER"):
    os.environ.pop(_var, None)
os.environ["OIDC_ID_TOKEN_SIGNING"] = "RS256"
os.environ["OIDC_SWEEP_INTERVAL_SECONDS"] = "0"

import pytest  # noqa: E402
from cryptography.hazmat.primitives.asymmetric.rsa import generate_private_key  # noqa: E402

from oidc_provider.keys import RS256Signer  # noqa: E402


@pytest.fixture(scope="session")
def rs256_signer():
    """One RSA key for the whole session; generation is slow."""
    return RS256Signer(generate_private_key(public_exponent=65537, key_size=2048))

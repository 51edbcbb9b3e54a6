"""
OpenID Provider configuration. Values come from the environment; no secrets in this file.
"""
import os

# Issuer URL. When unset, the issuer is derived from the request host (https://<host>).
ISSUER = os.environ.get("OIDC_ISSUER", "").strip().rstrip("/") or None

# Authorization code lifetime (seconds). Fixed: 10 minutes.
CODE_TTL_SECONDS = 600

# Access token and ID token lifetime (seconds). Fixed: 1 hour.
ACCESS_TOKEN_EXPIRES = 3600
ID_TOKEN_EXPIRES = 3600

# ID token signing: "RS256" (default) or "none" for an explicitly unsigned development payload.
ID_TOKEN_SIGNING = os.environ.get("OIDC_ID_TOKEN_SIGNING", "RS256").strip()

# Path to RSA private key PEM. Unset: ephemeral in-memory key. Set but missing: generated and saved there.
SIGNING_KEY_PATH = os.environ.get("OIDC_SIGNING_KEY_PATH", "").strip() or None

# Header the trusted upstream uses to pass the authenticated resource owner.
SUBJECT_HEADER = os.environ.get("OIDC_SUBJECT_HEADER", "X-Authenticated-Subject")
# Subject used when the header is absent (development only)
DEFAULT_SUBJECT = os.environ.get("OIDC_DEFAULT_SUBJECT", "1234567890")

# Optional seed client. Redirect URIs comma-separated; secret makes the client confidential.
CLIENT_ID = os.environ.get("OIDC_CLIENT_ID", "").strip() or None
REDIRECT_URIS = [u.strip() for u in os.environ.get("OIDC_REDIRECT_URIS", "").split(",") if u.strip()]
CLIENT_SECRET = os.environ.get("OIDC_CLIENT_SECRET") or None

# Background sweep of expired codes (seconds). 0 disables; expiry is enforced on lookup regardless.
SWEEP_INTERVAL_SECONDS = int(os.environ.get("OIDC_SWEEP_INTERVAL_SECONDS", "60"))

# Wall-clock budget per request (seconds)
REQUEST_TIMEOUT_SECONDS = float(os.environ.get("OIDC_REQUEST_TIMEOUT_SECONDS", "10"))

HOST = os.environ.get("OIDC_HOST", "127.0.0.1")
PORT = int(os.environ.get("OIDC_PORT", "8080"))
LOG_LEVEL = os.environ.get("OIDC_LOG_LEVEL", "INFO").upper()

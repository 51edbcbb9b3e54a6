"""
Supported values and endpoint paths. Single source of truth for request validation
and the discovery document.
"""
HEALTH_ENDPOINT = "/health"
DISCOVERY_ENDPOINT = "/.well-known/openid-configuration"
AUTHORIZATION_ENDPOINT = "/oauth2/authorize"
TOKEN_ENDPOINT = "/oauth2/token"
USERINFO_ENDPOINT = "/userinfo"
JWKS_ENDPOINT = "/jwks.json"

SUPPORTED_RESPONSE_TYPES = ("code",)
SUPPORTED_GRANT_TYPES = ("authorization_code",)
SUPPORTED_SCOPES = ("openid",)
SUPPORTED_TOKEN_ENDPOINT_AUTH_METHODS = ("client_secret_post", "client_secret_basic")
SUPPORTED_SUBJECT_TYPES = ("public",)
SUPPORTED_ID_TOKEN_SIGNING_ALGS = ("RS256",)
SUPPORTED_CLAIMS = ("aud", "exp", "iat", "iss", "sub")


def formal_url(host: str, path: str = "") -> str:
    """Absolute https URL for a path on the given host."""
    return f"https://{host}{path}"


def build_discovery_document(host: str) -> dict:
    # ref: https://openid.net/specs/openid-connect-discovery-1_0.html#ProviderMetadata
    return {
        "issuer": formal_url(host),
        "authorization_endpoint": formal_url(host, AUTHORIZATION_ENDPOINT),
        "token_endpoint": formal_url(host, TOKEN_ENDPOINT),
        "userinfo_endpoint": formal_url(host, USERINFO_ENDPOINT),
        "jwks_uri": formal_url(host, JWKS_ENDPOINT),
        "scopes_supported": list(SUPPORTED_SCOPES),
        "response_types_supported": list(SUPPORTED_RESPONSE_TYPES),
        "grant_types_supported": list(SUPPORTED_GRANT_TYPES),
        "subject_types_supported": list(SUPPORTED_SUBJECT_TYPES),
        "id_token_signing_alg_values_supported": list(SUPPORTED_ID_TOKEN_SIGNING_ALGS),
        "claims_supported": list(SUPPORTED_CLAIMS),
        "token_endpoint_auth_methods_supported": list(SUPPORTED_TOKEN_ENDPOINT_AUTH_METHODS),
    }

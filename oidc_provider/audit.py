"""
Audit logging. Security-relevant events only; never codes, tokens or secrets.
Events go to the "oidc_provider.audit" logger.
"""
import logging

from fastapi import Request

audit_logger = logging.getLogger("oidc_provider.audit")

EVENT_CODE_ISSUED = "code_issued"
EVENT_AUTHORIZE_REJECTED = "authorize_rejected"
EVENT_TOKEN_ISSUED = "token_issued"
EVENT_TOKEN_REJECTED = "token_rejected"

OUTCOME_SUCCESS = "success"
OUTCOME_FAIL = "fail"


def get_client_ip(request: Request | None) -> str | None:
    """Client IP if available. Forwarding headers are not trusted."""
    if request is None or request.client is None:
        return None
    return getattr(request.client, "host", None)


def log_audit(
    event_type: str,
    *,
    client_id: str | None = None,
    ip: str | None = None,
    outcome: str = OUTCOME_SUCCESS,
    reason: str | None = None,
) -> None:
    level = logging.INFO if outcome == OUTCOME_SUCCESS else logging.WARNING
    audit_logger.log(
        level,
        "event=%s outcome=%s client_id=%s ip=%s reason=%s",
        event_type,
        outcome,
        client_id or "-",
        ip or "-",
        reason or "-",
    )

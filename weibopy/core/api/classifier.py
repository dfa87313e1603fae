"""
Response classification.

The ``ajax`` endpoints have no stable error contract, so every response is
mapped onto one closed set of outcomes before anything reads its fields.
"""
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

NOT_FOUND_MARKER = '(20003)'
LOGIN_URL_MARKER = '/login.php?'
AUTH_REQUIRED_OK = -100


class ResponseKind(Enum):
    SUCCESS = 'success'
    USER_NOT_FOUND = 'user_not_found'
    ACCOUNT_PRIVATE = 'account_private'
    STALE_SESSION = 'stale_session'
    PARSE_ERROR = 'parse_error'
    UNKNOWN_STATUS = 'unknown_status'
    UNKNOWN_BODY = 'unknown_body'


@dataclass(frozen=True)
class ClassifiedResponse:
    """
    Outcome of one response.

    Attributes:
        kind: Which outcome matched
        data: Parsed body, only for ``SUCCESS``
        status: Raw status, kept for the unknown outcomes
        body: Raw body text, kept for the unknown outcomes
    """
    kind: ResponseKind
    data: Optional[Dict[str, Any]] = None
    status: Optional[int] = None
    body: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.kind is ResponseKind.SUCCESS

    @property
    def is_stale(self) -> bool:
        return self.kind is ResponseKind.STALE_SESSION

    @property
    def raw(self) -> Dict[str, Any]:
        return {'status': self.status, 'body': self.body}


def classify(status: int, body: str, required_field: str) -> ClassifiedResponse:
    """
    Classify a raw response.

    Predicates run in a fixed order and the first match wins: stale-session
    and not-found bodies can look like a malformed success, so they are
    recognized before ``required_field`` is read.

    Args:
        status: HTTP status
        body: Raw body text
        required_field: Top-level key a successful body must carry

    Returns:
        Exactly one ClassifiedResponse
    """
    try:
        parsed = json.loads(body)
    except (TypeError, ValueError):
        return ClassifiedResponse(ResponseKind.PARSE_ERROR, status=status, body=body)
    if not isinstance(parsed, dict):
        return ClassifiedResponse(ResponseKind.PARSE_ERROR, status=status, body=body)

    ok = parsed.get('ok')
    message = parsed.get('message')
    if status == 400 and _flag(ok, 0) and isinstance(message, str) and NOT_FOUND_MARKER in message:
        return ClassifiedResponse(ResponseKind.USER_NOT_FOUND, status=status, body=body)

    if status not in (200, 400):
        return ClassifiedResponse(ResponseKind.UNKNOWN_STATUS, status=status, body=body)

    url = parsed.get('url')
    if _flag(ok, AUTH_REQUIRED_OK) and isinstance(url, str) and LOGIN_URL_MARKER in url:
        return ClassifiedResponse(ResponseKind.STALE_SESSION, status=status, body=body)

    if _flag(ok, 1) and parsed.get(required_field) is not None:
        return ClassifiedResponse(ResponseKind.SUCCESS, data=parsed, status=status, body=body)

    if _flag(ok, 0) and _flag(parsed.get('statusCode'), 200) and _flag(parsed.get('relation_display'), 1):
        return ClassifiedResponse(ResponseKind.ACCOUNT_PRIVATE, status=status, body=body)

    return ClassifiedResponse(ResponseKind.UNKNOWN_BODY, status=status, body=body)


def _flag(value: Any, expected: int) -> bool:
    # JSON true == 1 in Python, only real numbers count
    return not isinstance(value, bool) and isinstance(value, (int, float)) and value == expected

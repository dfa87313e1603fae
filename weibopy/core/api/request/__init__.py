"""Endpoint request building."""
from .request_builder import (
    RequestBuilder,
    EndpointRequest,
    parse_since_id,
    BASE_URL,
    AJAX_URL,
    JSON_ACCEPT,
)

__all__ = [
    'RequestBuilder',
    'EndpointRequest',
    'parse_since_id',
    'BASE_URL',
    'AJAX_URL',
    'JSON_ACCEPT',
]

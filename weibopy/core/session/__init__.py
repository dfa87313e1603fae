"""
Session management module.

Provides versioned on-disk credential snapshots, the credential session
that lives on top of them, and the in-process session cache.
"""
from .protocols import HttpTransport, QRCodeCallback
from .models import CookieRecord, SessionIdentity, CredentialPayload
from .versioned_store import VersionedStore
from .credential_session import CredentialSession, SessionState
from .cache import SessionCache

__all__ = [
    'HttpTransport',
    'QRCodeCallback',
    'CookieRecord',
    'SessionIdentity',
    'CredentialPayload',
    'VersionedStore',
    'CredentialSession',
    'SessionState',
    'SessionCache',
]

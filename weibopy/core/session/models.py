"""
Session data models.

Contains the serialized form of a credential session: the cookie records that
authenticate requests and the identity that travels with them.
"""
from dataclasses import dataclass, field
from typing import Optional, List, Any, Dict
import json


@dataclass(frozen=True)
class CookieRecord:
    """
    One persisted cookie.

    Attributes:
        name: Cookie name
        value: Cookie value
        domain: Domain the cookie belongs to (no leading dot)
        path: Cookie path
        for_domain: True when subdomains receive it too, False for host-only
        max_age: Max-Age in seconds as received, if any
    """
    name: str
    value: str
    domain: str
    path: str = '/'
    for_domain: bool = True
    max_age: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'value': self.value,
            'domain': self.domain,
            'path': self.path,
            'for_domain': self.for_domain,
            'max_age': self.max_age,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CookieRecord':
        return cls(
            name=data['name'],
            value=data['value'],
            domain=data['domain'],
            path=data.get('path') or '/',
            for_domain=bool(data.get('for_domain', True)),
            max_age=data.get('max_age'),
        )


@dataclass(frozen=True)
class SessionIdentity:
    """The account's own uid, stored beside the cookies and never sent."""
    uid: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'uid': self.uid}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SessionIdentity':
        uid = data.get('uid')
        return cls(uid=str(uid) if uid is not None else None)


@dataclass(frozen=True)
class CredentialPayload:
    """
    Complete snapshot content for one account.

    Serialization is deterministic, so ``from_bytes(p.to_bytes())`` re-encodes
    to the same bytes.
    """
    identity: SessionIdentity = field(default_factory=SessionIdentity)
    cookies: List[CookieRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'identity': self.identity.to_dict(),
            'cookies': [cookie.to_dict() for cookie in self.cookies],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CredentialPayload':
        return cls(
            identity=SessionIdentity.from_dict(data.get('identity') or {}),
            cookies=[CookieRecord.from_dict(item) for item in data.get('cookies') or []],
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(',', ':'))

    @classmethod
    def from_json(cls, json_str: str) -> 'CredentialPayload':
        return cls.from_dict(json.loads(json_str))

    def to_bytes(self) -> bytes:
        return self.to_json().encode('utf-8')

    @classmethod
    def from_bytes(cls, data: bytes) -> 'CredentialPayload':
        return cls.from_json(data.decode('utf-8'))

"""
Authenticated credential session.

A session owns a cookie jar, the transport bound to it, and the account's uid.
It knows how to log in, check whether weibo.com still honors its cookies,
and renew them through the passport redirect chain.
"""
import json
from enum import Enum
from http.cookies import Morsel
from typing import Optional, List, Set, Tuple

import aiohttp
from yarl import URL

from .models import CookieRecord, CredentialPayload, SessionIdentity
from .protocols import HttpTransport, QRCodeCallback
from ..api.async_auth import QRLoginService
from ..api.async_client import AsyncHttpClient
from ..api.config import WeiboConfig
from ..api.request import RequestBuilder, BASE_URL
from ..exceptions import UnexpectedError
from ..logging import get_logger
from ..utils import simple_parse

RENEW_REDIRECT_START = 'location.replace("'
RENEW_REDIRECT_END = '");'
RENEW_REFERER = 'https://login.sina.com.cn/'


class SessionState(Enum):
    ANONYMOUS = 'anonymous'
    AUTHENTICATED = 'authenticated'
    ACTIVE = 'active'
    STALE = 'stale'
    RENEWING = 'renewing'
    FATAL = 'fatal'


class CredentialSession:
    """
    Cookie state plus identity for one account.

    Must be created inside a running event loop (aiohttp's cookie jar
    binds to it).

    Example:
        >>> session = CredentialSession(config)
        >>> session.load_payload(snapshot_bytes)
        >>> if not await session.is_active():
        ...     await session.renew(skip_initial_check=True)
    """

    def __init__(
        self,
        config: Optional[WeiboConfig] = None,
        transport: Optional[HttpTransport] = None,
        jar: Optional[aiohttp.CookieJar] = None
    ):
        """
        Initialize an anonymous session.

        Args:
            config: Client configuration for the default transport
            transport: Transport to use instead of an AsyncHttpClient
            jar: Cookie jar to use instead of a fresh one
        """
        self._jar = jar if jar is not None else aiohttp.CookieJar()
        self._transport = transport or AsyncHttpClient(self._jar, config)
        self._identity = SessionIdentity()
        self._state = SessionState.ANONYMOUS
        self._logger = get_logger('weibopy.session')

    @property
    def transport(self) -> HttpTransport:
        return self._transport

    @property
    def jar(self) -> aiohttp.CookieJar:
        return self._jar

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def uid(self) -> Optional[str]:
        return self._identity.uid

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def login(self, on_qrcode: QRCodeCallback, log=None,
                    poll_interval: float = 2.0, max_polls: int = 90) -> str:
        """
        Authenticate from scratch and remember the account's uid.

        Returns:
            The resolved uid
        """
        log = log or self._logger
        log.info("SESSION#login")
        auth = QRLoginService(self._transport, poll_interval=poll_interval, max_polls=max_polls)
        try:
            result = await auth.login(on_qrcode, log=log)
        except Exception:
            self._state = SessionState.FATAL
            raise
        self._identity = SessionIdentity(uid=result.uid)
        self._state = SessionState.ACTIVE
        return result.uid

    async def is_active(self, log=None) -> bool:
        """
        Check whether weibo.com still accepts the session.

        Requests the account's own profile; the session is active when the
        response names the same uid. Credential state is left untouched.

        Raises:
            UnexpectedError: If the uid is unknown, the status is not 200 or
                the body is not JSON
        """
        log = log or self._logger
        log.info("SESSION#is_active")

        uid = self.uid
        if uid is None:
            raise UnexpectedError('UNEXP00023', 'internal uid not found')

        request = RequestBuilder(uid).profile_info()
        response = await self._transport.get(request.url, headers=request.headers, log=log)
        if response.status != 200:
            raise UnexpectedError('UNEXP00024', f"status: {response.status}")

        try:
            body = json.loads(response.body)
        except ValueError:
            raise UnexpectedError('UNEXP00025')

        data = body.get('data') if isinstance(body, dict) else None
        user = data.get('user') if isinstance(data, dict) else None
        active = isinstance(user, dict) and user.get('id') is not None and str(user['id']) == str(uid)
        if self._state is not SessionState.RENEWING:
            self._state = SessionState.ACTIVE if active else SessionState.STALE
        return active

    async def renew(self, skip_initial_check: bool = False, log=None) -> bool:
        """
        Re-establish the session through the passport redirect chain.

        Args:
            skip_initial_check: Renew without checking first
            log: Optional logger or operation trace

        Returns:
            False if the session was already active, True once renewed

        Raises:
            UnexpectedError: If a step of the chain fails or the session is
                still inactive afterwards
        """
        log = log or self._logger
        log.info(f"SESSION#renew: skip_initial_check({skip_initial_check})")

        if not skip_initial_check and await self.is_active(log=log):
            return False

        self._state = SessionState.RENEWING
        try:
            response = await self._transport.get(BASE_URL, log=log)
            if response.status != 200:
                raise UnexpectedError('UNEXP00026', f"status: {response.status}")

            url = simple_parse(response.body, RENEW_REDIRECT_START, RENEW_REDIRECT_END)
            if url is None:
                raise UnexpectedError('UNEXP00027')

            response = await self._transport.get(url, headers={'referer': RENEW_REFERER}, log=log)
            if response.status != 200:
                raise UnexpectedError('UNEXP00028', f"status: {response.status}")

            if not await self.is_active(log=log):
                raise UnexpectedError('UNEXP00029', 'renewal produced an inactive session')
        except Exception:
            self._state = SessionState.FATAL
            raise

        self._state = SessionState.ACTIVE
        return True

    # =========================================================================
    # Serialization
    # =========================================================================

    def cookies(self) -> List[CookieRecord]:
        """Current jar content in jar order."""
        host_only = _host_only_keys(self._jar)
        records = []
        for morsel in self._jar:
            domain = morsel['domain']
            path = morsel['path'] or '/'
            records.append(CookieRecord(
                name=morsel.key,
                value=morsel.value,
                domain=domain,
                path=path,
                for_domain=(
                    (domain, path, morsel.key) not in host_only
                    and (domain, morsel.key) not in host_only
                ),
                max_age=_parse_max_age(morsel['max-age']),
            ))
        return records

    def to_payload(self) -> bytes:
        payload = CredentialPayload(identity=self._identity, cookies=self.cookies())
        return payload.to_bytes()

    def load_payload(self, data: bytes) -> 'CredentialSession':
        """
        Replace jar content and identity with a snapshot.

        Returns:
            self, for chaining
        """
        payload = CredentialPayload.from_bytes(data)
        self._jar.clear()
        for record in payload.cookies:
            morsel: Morsel = Morsel()
            morsel.set(record.name, record.value, record.value)
            morsel['path'] = record.path
            if record.for_domain:
                morsel['domain'] = record.domain
            # Max-Age counts from this load, not from when the cookie was
            # issued; every renewal rewrites the snapshot with fresh values
            if record.max_age is not None:
                morsel['max-age'] = str(record.max_age)
            self._jar.update_cookies({record.name: morsel}, URL(f"https://{record.domain}/"))
        self._identity = payload.identity
        self._state = SessionState.AUTHENTICATED
        return self


def _host_only_keys(jar: aiohttp.CookieJar) -> Set[Tuple[str, ...]]:
    """
    Host-only cookie keys of ``jar``.

    aiohttp keys them by ``(domain, path, name)`` in current releases and by
    ``(domain, name)`` in older ones; callers check both shapes.
    """
    keys = getattr(jar, 'host_only_cookies', None)
    if keys is None:
        keys = getattr(jar, '_host_only_cookies', ())
    return set(keys)


def _parse_max_age(value) -> Optional[int]:
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None

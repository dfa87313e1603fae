"""
Async authentication service.

Handles the weibo.com QR-code login asynchronously.
"""
import asyncio
import inspect
import json
import re
from dataclasses import dataclass
from typing import Optional, Dict, Any
from urllib.parse import urlencode

from .request import BASE_URL
from ..exceptions import AuthenticationError, UnexpectedError

PASSPORT_URL = 'https://passport.weibo.com/sso/v2/qrcode'

RETCODE_OK = 20000000
RETCODE_WAITING = 50114001
RETCODE_SCANNED = 50114002
RETCODE_EXPIRED = 50114004

UID_PATTERNS = (
    re.compile(r"\$CONFIG\['uid'\]\s*=\s*'([0-9]+)'"),
    re.compile(r'"uid"\s*:\s*"?([0-9]+)'),
)


@dataclass
class AuthResult:
    """Authentication result."""
    uid: str


class QRLoginService:
    """
    Asynchronous QR-code login.

    Drives the passport endpoints until the account holder confirms the login
    on their phone, then resolves the account's uid. Cookies set along the way
    land in the transport's jar.
    """

    def __init__(
        self,
        transport,
        poll_interval: float = 2.0,
        max_polls: int = 90
    ):
        """
        Initialize auth service.

        Args:
            transport: HTTP transport bound to the session's cookie jar
            poll_interval: Seconds between status checks
            max_polls: Checks before giving up
        """
        self._transport = transport
        self._poll_interval = poll_interval
        self._max_polls = max_polls

    async def login(self, on_qrcode, log=None) -> AuthResult:
        """
        Login with a QR code.

        Args:
            on_qrcode: Callback receiving the QR image URL (sync or async)
            log: Optional logger or operation trace

        Returns:
            AuthResult with the resolved uid

        Raises:
            AuthenticationError: If the code expires or the login is refused
            UnexpectedError: If the uid cannot be resolved afterwards
        """
        # Step 1: Request a QR code
        params = urlencode({'entry': 'miniblog', 'size': 180})
        data = await self._get_json(f"{PASSPORT_URL}/image?{params}", log)
        if data.get('retcode') != RETCODE_OK or not isinstance(data.get('data'), dict):
            raise AuthenticationError(f"unable to obtain a login QR code (retcode: {data.get('retcode')})")
        qrid = data['data'].get('qrid')
        image = data['data'].get('image')
        if not qrid or not image:
            raise UnexpectedError('UNEXP00010', 'qrcode response without qrid or image')

        # Step 2: Show it
        result = on_qrcode(image)
        if inspect.isawaitable(result):
            await result

        # Step 3: Wait for confirmation
        crossdomain_url = await self._wait_for_confirmation(qrid, log)

        # Step 4: Follow the cross-domain login to collect cookies
        response = await self._transport.get(crossdomain_url, log=log)
        if response.status != 200:
            raise UnexpectedError('UNEXP00011', f"status: {response.status}")

        # Step 5: Resolve the uid
        response = await self._transport.get(BASE_URL, log=log)
        if response.status != 200:
            raise UnexpectedError('UNEXP00012', f"status: {response.status}")
        uid = extract_uid(response.body)
        if uid is None:
            raise UnexpectedError('UNEXP00013', 'uid not found after login')

        return AuthResult(uid=uid)

    async def _wait_for_confirmation(self, qrid: str, log=None) -> str:
        params = urlencode({'entry': 'miniblog', 'source': 'cross_domain', 'qrid': qrid})
        url = f"{PASSPORT_URL}/check?{params}"

        for _ in range(self._max_polls):
            data = await self._get_json(url, log)
            retcode = data.get('retcode')
            if retcode == RETCODE_OK:
                target = (data.get('data') or {}).get('url')
                if not target:
                    raise UnexpectedError('UNEXP00014', 'confirmed login without a redirect url')
                return target
            if retcode == RETCODE_EXPIRED:
                raise AuthenticationError("the login QR code expired before it was confirmed")
            if retcode not in (RETCODE_WAITING, RETCODE_SCANNED):
                raise AuthenticationError(f"login refused (retcode: {retcode}, msg: {data.get('msg')})")
            await asyncio.sleep(self._poll_interval)

        raise AuthenticationError("timed out waiting for the login QR code to be confirmed")

    async def _get_json(self, url: str, log=None) -> Dict[str, Any]:
        response = await self._transport.get(url, log=log)
        if response.status != 200:
            raise UnexpectedError('UNEXP00015', f"status: {response.status}")
        try:
            data = json.loads(response.body)
        except ValueError:
            raise UnexpectedError('UNEXP00016', f"invalid JSON from {url}")
        if not isinstance(data, dict):
            raise UnexpectedError('UNEXP00016', f"invalid JSON from {url}")
        return data


def extract_uid(page: str) -> Optional[str]:
    for pattern in UID_PATTERNS:
        match = pattern.search(page)
        if match:
            return match.group(1)
    return None

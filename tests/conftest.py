"""Pytest fixtures for weibopy tests."""
import json
from typing import Dict, List, Optional, Tuple

import pytest

from weibopy import WeiboClient, WeiboConfig, CredentialSession, DataDirectory, VersionedStore
from weibopy.core.api.async_client import HttpResponse
from weibopy.core.session import CredentialPayload, CookieRecord, SessionIdentity

STALE_BODY = {'ok': -100, 'url': 'https://weibo.com/login.php?url=https%3A%2F%2Fweibo.com%2F'}
RENEW_PAGE = '<script>location.replace("https://login.sina.com.cn/crossdomain2.php?action=login");</script>'


class FakeTransport:
    """
    Scripted stand-in for AsyncHttpClient.

    Each route is a URL prefix with a queue of responses. The longest matching
    prefix answers; its queue is consumed in order and the last response
    repeats once the queue runs out.
    """

    def __init__(self):
        self.routes: Dict[str, List[HttpResponse]] = {}
        self.calls: List[Tuple[str, Optional[Dict[str, str]]]] = []

    def add(self, prefix: str, status: int, body: str):
        self.routes.setdefault(prefix, []).append(HttpResponse(status=status, body=body, url=prefix))
        return self

    def add_json(self, prefix: str, data, status: int = 200):
        return self.add(prefix, status, json.dumps(data))

    def urls(self, prefix: str = '') -> List[str]:
        return [url for url, _ in self.calls if url.startswith(prefix)]

    async def get(self, url, headers=None, log=None):
        self.calls.append((url, headers))
        matches = [prefix for prefix in self.routes if url.startswith(prefix)]
        if not matches:
            raise AssertionError(f"unexpected request to {url}")
        queue = self.routes[max(matches, key=len)]
        return queue.pop(0) if len(queue) > 1 else queue[0]


def info_url(uid) -> str:
    return f"https://weibo.com/ajax/profile/info?uid={uid}"


def detail_url(uid) -> str:
    return f"https://weibo.com/ajax/profile/detail?uid={uid}"


def active_body(uid) -> dict:
    return {'ok': 1, 'data': {'user': {'id': int(uid), 'screen_name': f'user{uid}'}}}


def make_payload(uid: str = '42') -> bytes:
    return CredentialPayload(
        identity=SessionIdentity(uid=uid),
        cookies=[CookieRecord(name='SUB', value=f'sub-{uid}', domain='weibo.com')],
    ).to_bytes()


@pytest.fixture
def transport():
    """Returns an empty scripted transport."""
    return FakeTransport()


@pytest.fixture
def renewable(transport):
    """Scripts the redirect chain used to renew a session."""
    def script(uid: str = '42'):
        transport.add('https://weibo.com', 200, RENEW_PAGE)
        transport.add('https://login.sina.com.cn/crossdomain2.php', 200, 'ok')
        transport.add_json(info_url(uid), active_body(uid))
        return transport
    return script


@pytest.fixture
def config(tmp_path):
    """Returns a default configuration rooted in a temp directory."""
    return WeiboConfig(config_path=tmp_path / 'config.yaml')


@pytest.fixture
def data(tmp_path):
    """Returns a fresh data directory."""
    return DataDirectory(tmp_path / 'data')


@pytest.fixture
def provision(data):
    """Writes a first snapshot for an account and returns its version."""
    def write(name: str = 'main', uid: str = '42') -> int:
        return VersionedStore(data.account_path(name)).write(make_payload(uid))
    return write


@pytest.fixture
def session_factory(transport):
    """Creates sessions bound to the scripted transport."""
    return lambda: CredentialSession(transport=transport)


@pytest.fixture
def client(config, data, session_factory):
    """Returns a client with 'main' as its default account."""
    return WeiboClient(config, 'main', data=data, session_factory=session_factory)

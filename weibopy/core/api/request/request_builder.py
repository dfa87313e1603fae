"""Request builder for the weibo.com ajax endpoints."""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple
from urllib.parse import urlencode

from ...exceptions import ValidationError
from ...utils import SINCE_ID_PATTERN

BASE_URL = 'https://weibo.com'
AJAX_URL = f'{BASE_URL}/ajax'
JSON_ACCEPT = 'application/json, text/plain, */*'


@dataclass(frozen=True)
class EndpointRequest:
    """A fully built GET plus the field a successful body must carry."""
    url: str
    headers: Dict[str, str]
    required_field: str


def parse_since_id(since_id: Optional[str]) -> Tuple[str, str]:
    """
    Split a statuses cursor into ``(prefix, page)``.

    ``"123kp2"`` gives ``("123", "2")``; no cursor means page one.
    """
    if since_id is None:
        return '', '1'
    match = SINCE_ID_PATTERN.match(since_id)
    if match is None:
        raise ValidationError("argument 'since_id' is not in the expected format")
    return match.group(1), match.group(2)


class RequestBuilder:
    """Builds endpoint URLs and headers addressed to one uid."""

    def __init__(self, uid: int):
        self.uid = uid

    def build_headers(self) -> Dict[str, str]:
        return {
            'referer': f'{BASE_URL}/u/{self.uid}',
            'accept': JSON_ACCEPT,
        }

    def _build(self, path: str, params: Dict[str, object], required_field: str) -> EndpointRequest:
        url = f"{AJAX_URL}/{path}?{urlencode(params)}"
        return EndpointRequest(url=url, headers=self.build_headers(), required_field=required_field)

    def profile_info(self) -> EndpointRequest:
        return self._build('profile/info', {'uid': self.uid}, 'data')

    def profile_detail(self) -> EndpointRequest:
        return self._build('profile/detail', {'uid': self.uid}, 'data')

    def friends(self, page: int) -> EndpointRequest:
        return self._build('friendships/friends', {'page': page, 'uid': self.uid}, 'users')

    def fans(self, page: int) -> EndpointRequest:
        params = {'relate': 'fans', 'page': page, 'uid': self.uid, 'type': 'fans'}
        return self._build('friendships/friends', params, 'users')

    def statuses(self, since_id: Optional[str] = None) -> EndpointRequest:
        prefix, page = parse_since_id(since_id)
        params = {'uid': self.uid, 'page': page, 'feature': 0}
        if prefix:
            params['since_id'] = since_id
        return self._build('statuses/mymblog', params, 'data')

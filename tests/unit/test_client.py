"""Tests for WeiboClient request orchestration."""
import json

import pytest

from weibopy import (
    WeiboClient,
    ValidationError,
    UserNotFoundError,
    UnexpectedError,
    UnknownResponseBodyError,
    UnknownResponseStatusError,
    VersionedStore,
)

from conftest import STALE_BODY, active_body, detail_url, info_url

FRIENDS_URL = 'https://weibo.com/ajax/friendships/friends?page=1&uid=123'
FANS_URL = 'https://weibo.com/ajax/friendships/friends?relate=fans&page=1&uid=123'
STATUSES_URL = 'https://weibo.com/ajax/statuses/mymblog?uid=123'
PRIVATE_BODY = {'ok': 0, 'statusCode': 200, 'relation_display': 1}


class TestProfile:
    """Tests for WeiboClient.profile."""

    @pytest.mark.asyncio
    async def test_profile(self, client, provision, transport):
        """Test info and detail are combined."""
        provision('main', '42')
        transport.add_json(info_url(123), {'ok': 1, 'data': {'user': {'id': '123'}}})
        transport.add_json(detail_url(123), {'ok': 1, 'data': {'level': 1}})

        result = await client.profile('123')

        assert result == {'info': {'user': {'id': '123'}}, 'detail': {'level': 1}}

    @pytest.mark.asyncio
    async def test_profile_sends_referer(self, client, provision, transport):
        """Test ajax requests carry the target's page as referer."""
        provision('main', '42')
        transport.add_json(info_url(123), {'ok': 1, 'data': {}})
        transport.add_json(detail_url(123), {'ok': 1, 'data': {}})

        await client.profile(123)

        for _, headers in transport.calls:
            assert headers['referer'] == 'https://weibo.com/u/123'

    @pytest.mark.asyncio
    async def test_stale_then_success(self, client, provision, data, transport, renewable):
        """Test a stale answer renews once and retries."""
        old = provision('main', '42')
        renewable('42')
        transport.add_json(info_url(123), STALE_BODY)
        transport.add_json(info_url(123), {'ok': 1, 'data': {'user': {'id': '123'}}})
        transport.add_json(detail_url(123), STALE_BODY)
        transport.add_json(detail_url(123), {'ok': 1, 'data': {'level': 1}})

        result = await client.profile('123')

        assert result == {'info': {'user': {'id': '123'}}, 'detail': {'level': 1}}
        assert len(transport.urls(detail_url(123))) == 2
        assert transport.urls().count('https://weibo.com') == 1
        assert VersionedStore(data.account_path('main')).current_version() > old

    @pytest.mark.asyncio
    async def test_stale_twice(self, client, provision, data, transport, renewable):
        """Test a second stale answer gives up without another renewal."""
        provision('main', '42')
        renewable('42')
        transport.add_json(info_url(123), STALE_BODY)
        transport.add_json(detail_url(123), {'ok': 1, 'data': {}})

        with pytest.raises(UnexpectedError) as exc_info:
            await client.profile('123')

        assert exc_info.value.code == 'UNEXP00032'
        assert transport.urls().count('https://weibo.com') == 1
        logs = [p.name for p in data.logs_path.iterdir()]
        assert len(logs) == 1
        assert logs[0].endswith('-WeiboClient.profile-UnexpectedError.log')

    @pytest.mark.asyncio
    async def test_user_not_found(self, client, provision, transport):
        """Test the not-found shape raises UserNotFoundError."""
        provision('main', '42')
        transport.add_json(info_url(999), {'ok': 0, 'message': '用户不存在(20003)'}, status=400)
        transport.add_json(detail_url(999), {'ok': 0, 'message': '用户不存在(20003)'}, status=400)

        with pytest.raises(UserNotFoundError) as exc_info:
            await client.profile('999')

        assert exc_info.value.uid == 999

    @pytest.mark.asyncio
    async def test_unknown_status(self, client, provision, transport):
        """Test an unexpected status is reported with the raw response."""
        provision('main', '42')
        transport.add_json(info_url(123), {'ok': 0, 'msg': 'upstream'}, status=502)
        transport.add_json(detail_url(123), {'ok': 1, 'data': {}})

        with pytest.raises(UnknownResponseStatusError) as exc_info:
            await client.profile('123')

        assert exc_info.value.response['status'] == 502
        assert json.loads(exc_info.value.response['body']) == {'ok': 0, 'msg': 'upstream'}

    @pytest.mark.asyncio
    async def test_unknown_status_non_json(self, client, provision, transport):
        """Test a non-JSON body is a parse error whatever the status."""
        provision('main', '42')
        transport.add(info_url(123), 502, 'bad gateway')
        transport.add_json(detail_url(123), {'ok': 1, 'data': {}})

        with pytest.raises(UnexpectedError) as exc_info:
            await client.profile('123')

        assert exc_info.value.code == 'UNEXP00030'

    @pytest.mark.asyncio
    async def test_detail_parse_error(self, client, provision, transport):
        """Test a non-JSON detail body maps to its own code."""
        provision('main', '42')
        transport.add_json(info_url(123), {'ok': 1, 'data': {}})
        transport.add(detail_url(123), 200, '<html>')

        with pytest.raises(UnexpectedError) as exc_info:
            await client.profile('123')

        assert exc_info.value.code == 'UNEXP00031'

    @pytest.mark.asyncio
    async def test_private_shape_outside_relations(self, client, provision, transport):
        """Test the hidden-relations shape is unknown for profiles."""
        provision('main', '42')
        transport.add_json(info_url(123), PRIVATE_BODY)
        transport.add_json(detail_url(123), {'ok': 1, 'data': {}})

        with pytest.raises(UnknownResponseBodyError):
            await client.profile('123')

    @pytest.mark.asyncio
    async def test_transform(self, client, provision, transport):
        """Test the transform's return value replaces the result."""
        provision('main', '42')
        transport.add_json(info_url(123), {'ok': 1, 'data': {'user': {'id': '123'}}})
        transport.add_json(detail_url(123), {'ok': 1, 'data': {}})

        result = await client.profile('123', transform=lambda r: r['info']['user']['id'])

        assert result == '123'

    @pytest.mark.asyncio
    async def test_async_transform(self, client, provision, transport):
        """Test a coroutine transform is awaited."""
        provision('main', '42')
        transport.add_json(info_url(123), {'ok': 1, 'data': {}})
        transport.add_json(detail_url(123), {'ok': 1, 'data': {'level': 3}})

        async def level(result):
            return result['detail']['level']

        assert await client.profile('123', transform=level) == 3


class TestRelations:
    """Tests for WeiboClient.friends and WeiboClient.fans."""

    @pytest.mark.asyncio
    async def test_friends(self, client, provision, transport):
        """Test the ok flag is dropped from the result."""
        provision('main', '42')
        transport.add_json(FRIENDS_URL, {'ok': 1, 'users': [{'id': 1}], 'total_number': 1, 'next_cursor': 2})

        result = await client.friends('123')

        assert result == {'users': [{'id': 1}], 'total_number': 1, 'next_cursor': 2}

    @pytest.mark.asyncio
    async def test_friends_private(self, client, provision, transport):
        """Test hidden relations give the private result."""
        provision('main', '42')
        transport.add_json(FRIENDS_URL, PRIVATE_BODY)

        assert await client.friends('123') == {'users': [], 'total_number': 0, 'private': True}

    @pytest.mark.asyncio
    async def test_fans_private(self, client, provision, transport):
        """Test hidden fans give the private result."""
        provision('main', '42')
        transport.add_json(FANS_URL, PRIVATE_BODY)

        assert await client.fans('123') == {'users': [], 'total_number': 0, 'private': True}

    @pytest.mark.asyncio
    async def test_fans_page(self, client, provision, transport):
        """Test the page is sent."""
        provision('main', '42')
        url = 'https://weibo.com/ajax/friendships/friends?relate=fans&page=3&uid=123'
        transport.add_json(url, {'ok': 1, 'users': [], 'total_number': 0})

        assert await client.fans('123', 3) == {'users': [], 'total_number': 0}

    @pytest.mark.asyncio
    async def test_friends_parse_error(self, client, provision, transport):
        """Test a non-JSON friends body."""
        provision('main', '42')
        transport.add(FRIENDS_URL, 200, 'oops')

        with pytest.raises(UnexpectedError) as exc_info:
            await client.friends('123')

        assert exc_info.value.code == 'UNEXP00035'

    @pytest.mark.asyncio
    async def test_fans_stale_twice(self, client, provision, transport, renewable):
        """Test exhaustion has a code per endpoint."""
        provision('main', '42')
        renewable('42')
        transport.add_json(FANS_URL, STALE_BODY)

        with pytest.raises(UnexpectedError) as exc_info:
            await client.fans('123')

        assert exc_info.value.code == 'UNEXP00034'

    @pytest.mark.asyncio
    async def test_invalid_page(self, client):
        """Test pages start at one."""
        with pytest.raises(ValidationError):
            await client.friends('123', 0)
        with pytest.raises(ValidationError):
            await client.fans('123', True)


class TestStatuses:
    """Tests for WeiboClient.statuses."""

    @pytest.mark.asyncio
    async def test_first_page(self, client, provision, transport):
        """Test the first page has no cursor."""
        provision('main', '42')
        transport.add_json(STATUSES_URL, {'ok': 1, 'data': {'list': [{'id': 1}], 'since_id': '5kp2'}})

        result = await client.statuses('123')

        assert result == {'list': [{'id': 1}], 'since_id': '5kp2'}
        assert transport.urls() == [STATUSES_URL + '&page=1&feature=0']

    @pytest.mark.asyncio
    async def test_next_page(self, client, provision, transport):
        """Test a cursor selects its page."""
        provision('main', '42')
        transport.add_json(STATUSES_URL, {'ok': 1, 'data': {'list': [], 'since_id': ''}})

        await client.statuses('123', '5kp2')

        assert transport.urls() == [STATUSES_URL + '&page=2&feature=0&since_id=5kp2']

    @pytest.mark.asyncio
    async def test_bad_cursor(self, client):
        """Test a malformed cursor is rejected before any request."""
        with pytest.raises(ValidationError):
            await client.statuses('123', 'abc')


class TestAccounts:
    """Tests for account handling on WeiboClient."""

    @pytest.mark.asyncio
    async def test_missing_account_name(self, config, data, session_factory):
        """Test a client without a default account."""
        client = WeiboClient(config, data=data, session_factory=session_factory)

        with pytest.raises(ValidationError):
            await client.profile('123')

    @pytest.mark.asyncio
    async def test_unknown_account(self, client):
        """Test requesting with an account that does not exist."""
        with pytest.raises(ValidationError):
            await client.profile('123', account_name='ghost')

    @pytest.mark.asyncio
    async def test_invalid_uid(self, client):
        """Test uids must be positive integers."""
        for uid in ('abc', '0', '-1', 0, None):
            with pytest.raises(ValidationError):
                await client.profile(uid)

    @pytest.mark.asyncio
    async def test_my_uid(self, client, provision):
        """Test the account's own uid."""
        provision('main', '42')

        assert await client.my_uid() == '42'

    @pytest.mark.asyncio
    async def test_accounts(self, client, provision):
        """Test accounts are listed by name."""
        provision('b')
        provision('a')

        assert client.accounts() == ['a', 'b']

    @pytest.mark.asyncio
    async def test_keep_alive(self, client, provision, transport, renewable):
        """Test only the stale account is renewed."""
        provision('a', '1')
        provision('b', '2')
        provision('c', '3')
        transport.add_json(info_url(1), active_body(1))
        transport.add_json(info_url(2), STALE_BODY)
        transport.add_json(info_url(3), active_body(3))
        renewable('2')

        assert await client.keep_alive() == ['b']
        assert transport.urls().count('https://weibo.com') == 1

    @pytest.mark.asyncio
    async def test_keep_alive_nothing_stale(self, client, provision, transport):
        """Test all active accounts renew nothing."""
        provision('a', '1')
        transport.add_json(info_url(1), active_body(1))

        assert await client.keep_alive() == []

    @pytest.mark.asyncio
    async def test_close_forgets_sessions(self, client, provision, transport):
        """Test close drops cached sessions."""
        provision('main', '42')
        await client.my_uid()

        await client.close()

        assert client.sessions.cached('main') is None

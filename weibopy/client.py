"""
WeiboClient - High-level async client for the weibo.com ajax endpoints.

Example:
    >>> async with WeiboClient(account_name="main") as weibo:
    ...     profile = await weibo.profile("2125613987")
    ...     page = await weibo.friends("2125613987", 2)
"""
import asyncio
import inspect
import traceback
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, List, Dict, Any, Union, Callable, Sequence, Tuple

from .core.api import (
    WeiboConfig,
    RequestBuilder,
    EndpointRequest,
    ClassifiedResponse,
    ResponseKind,
    classify,
    UnknownResponseStatusError,
    UnknownResponseBodyError,
)
from .core.exceptions import UserNotFoundError, UnexpectedError
from .core.logging import OperationTrace
from .core.session import CredentialSession, SessionCache, QRCodeCallback
from .core.storage import DataDirectory
from .core.utils import (
    SINCE_ID_PATTERN,
    validate_account_name,
    validate_positive_int,
    validate_positive_int_string,
    validate_matches,
)

# One detection plus one renew-and-retry; a protocol constant, not a setting
STALE_SESSION_ATTEMPTS = 2

Transform = Callable[[Any], Any]


def private_account_result() -> Dict[str, Any]:
    """Result of friends/fans for an account whose relations are hidden."""
    return {'users': [], 'total_number': 0, 'private': True}


class WeiboClient:
    """
    High-level async client with transparent session renewal.

    Every request method gets the account's current session from the
    session cache. When weibo.com answers with a stale-session body, the
    session is renewed from the version that was used and the request is
    sent once more; a second stale answer is an UnexpectedError.

    Private accounts:
        ``friends`` and ``fans`` return
        ``{"users": [], "total_number": 0, "private": True}`` for users whose
        relations are hidden. The ``private`` key is absent otherwise.

    Example:
        >>> weibo = WeiboClient(config_path="~/.weibopy/config.yaml")
        >>> statuses = await weibo.statuses("2125613987", account_name="main")
        >>> if statuses["since_id"]:
        ...     more = await weibo.statuses("2125613987", statuses["since_id"], account_name="main")
    """

    def __init__(
        self,
        config: Optional[WeiboConfig] = None,
        account_name: Optional[str] = None,
        *,
        config_path: Optional[Union[str, Path]] = None,
        data: Optional[DataDirectory] = None,
        session_factory: Optional[Callable[[], CredentialSession]] = None
    ):
        """
        Initialize the client.

        Args:
            config: Configuration (loaded from ``config_path`` when omitted)
            account_name: Default account for every call
            config_path: Configuration file, see ``WeiboConfig.load``
            data: Data directory (derived from the config when omitted)
            session_factory: Creates anonymous sessions, mostly for tests
        """
        self._config = config or WeiboConfig.load(config_path)
        self._account_name = account_name
        self._data = data or DataDirectory(self._config.data_path)
        self._session_factory = session_factory or (lambda: CredentialSession(self._config))
        self._sessions = SessionCache(self._data, self._session_factory)

    @property
    def config(self) -> WeiboConfig:
        return self._config

    @property
    def data(self) -> DataDirectory:
        return self._data

    @property
    def sessions(self) -> SessionCache:
        return self._sessions

    async def __aenter__(self) -> 'WeiboClient':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Forget cached sessions; snapshots on disk are kept."""
        self._sessions = SessionCache(self._data, self._session_factory)

    # =========================================================================
    # Accounts
    # =========================================================================

    def accounts(self) -> List[str]:
        return self._data.accounts()

    async def add_account(self, name: str, on_qrcode: QRCodeCallback, **login_options) -> Path:
        """
        Log in a new account with a QR code.

        Args:
            name: Account name (letters, digits, ``.``, ``_``, ``-``)
            on_qrcode: Receives the QR image URL to show to the account holder

        Returns:
            The account directory
        """
        trace = OperationTrace('weibopy.client')
        trace.info(f"WeiboClient#add_account: name({name})")
        async with self._reporting('WeiboClient.add_account', trace):
            return await self._sessions.add_account(name, on_qrcode, log=trace, **login_options)

    async def my_uid(self, account_name: Optional[str] = None) -> str:
        """Returns the uid of the selected account."""
        account_name = self._resolve_account(account_name)
        _, session = await self._sessions.get_session(account_name)
        return session.uid

    async def keep_alive(self) -> List[str]:
        """
        Renew every account whose session went stale.

        Sessions stale about a day after they were created or renewed, and
        request methods renew them on demand. Accounts that are never used
        should still be kept alive now and then, e.g. from a cron job.

        Returns:
            Names of the renewed accounts, in name order
        """
        trace = OperationTrace('weibopy.client')
        trace.info("WeiboClient#keep_alive")
        async with self._reporting('WeiboClient.keep_alive', trace):
            renewed = []
            for name in self._data.accounts():
                version, session = await self._sessions.get_session(name, log=trace)
                if not await session.is_active(log=trace):
                    await self._sessions.get_session(name, renew_from=version, log=trace)
                    renewed.append(name)
            return renewed

    # =========================================================================
    # Requests
    # =========================================================================

    async def profile(
        self,
        uid: Union[int, str],
        account_name: Optional[str] = None,
        transform: Optional[Transform] = None
    ) -> Any:
        """
        Get a user's ``profile/info`` and ``profile/detail``, fetched together.

        Args:
            uid: User id as int or digit string
            account_name: Overrides the default account
            transform: Optional callable whose return value replaces the result

        Returns:
            ``{'info': {...}, 'detail': {...}}``

        Raises:
            ValidationError: If an argument is malformed
            UserNotFoundError: If the uid does not exist
            UnknownResponseError: If weibo.com answers in an unknown way
        """
        uid = validate_positive_int_string(uid, 'uid')
        account_name = self._resolve_account(account_name)

        trace = OperationTrace('weibopy.client')
        trace.info(f"WeiboClient#profile: uid({uid}) account_name({account_name})")

        async with self._reporting('WeiboClient.profile', trace):
            builder = RequestBuilder(uid)
            info, detail = await self._fetch(
                account_name, uid,
                [builder.profile_info(), builder.profile_detail()],
                parse_error_codes=('UNEXP00030', 'UNEXP00031'),
                exhausted_code='UNEXP00032',
                trace=trace
            )
            result = {'info': info.data['data'], 'detail': detail.data['data']}
            return await self._apply(transform, result)

    async def friends(
        self,
        uid: Union[int, str],
        page: int = 1,
        account_name: Optional[str] = None,
        transform: Optional[Transform] = None
    ) -> Any:
        """
        Get one page of the users a user follows.

        Returns:
            ``{'users': [...], 'total_number': ..., 'previous_cursor': ...,
            'next_cursor': ...}`` or the private-account result
        """
        uid = validate_positive_int_string(uid, 'uid')
        page = validate_positive_int(page, 'page')
        account_name = self._resolve_account(account_name)

        trace = OperationTrace('weibopy.client')
        trace.info(f"WeiboClient#friends: uid({uid}) page({page}) account_name({account_name})")

        async with self._reporting('WeiboClient.friends', trace):
            result = await self._fetch_relations(
                account_name, uid, RequestBuilder(uid).friends(page),
                parse_error_code='UNEXP00035', exhausted_code='UNEXP00036', trace=trace
            )
            return await self._apply(transform, result)

    async def fans(
        self,
        uid: Union[int, str],
        page: int = 1,
        account_name: Optional[str] = None,
        transform: Optional[Transform] = None
    ) -> Any:
        """
        Get one page of a user's fans.

        Same result shape as ``friends``.
        """
        uid = validate_positive_int_string(uid, 'uid')
        page = validate_positive_int(page, 'page')
        account_name = self._resolve_account(account_name)

        trace = OperationTrace('weibopy.client')
        trace.info(f"WeiboClient#fans: uid({uid}) page({page}) account_name({account_name})")

        async with self._reporting('WeiboClient.fans', trace):
            result = await self._fetch_relations(
                account_name, uid, RequestBuilder(uid).fans(page),
                parse_error_code='UNEXP00033', exhausted_code='UNEXP00034', trace=trace
            )
            return await self._apply(transform, result)

    async def statuses(
        self,
        uid: Union[int, str],
        since_id: Optional[str] = None,
        account_name: Optional[str] = None,
        transform: Optional[Transform] = None
    ) -> Any:
        """
        Get one page of a user's statuses.

        Pass the ``since_id`` of a result to get the next page; an empty
        ``since_id`` marks the last page. weibo.com answers an unknown uid
        with an empty list here rather than an error.

        Returns:
            ``{'list': [...], 'since_id': '...'}``
        """
        uid = validate_positive_int_string(uid, 'uid')
        since_id = validate_matches(since_id, SINCE_ID_PATTERN, 'since_id', optional=True)
        account_name = self._resolve_account(account_name)

        trace = OperationTrace('weibopy.client')
        trace.info(f"WeiboClient#statuses: uid({uid}) since_id({since_id}) account_name({account_name})")

        async with self._reporting('WeiboClient.statuses', trace):
            (response,) = await self._fetch(
                account_name, uid, [RequestBuilder(uid).statuses(since_id)],
                parse_error_codes=('UNEXP00037',),
                exhausted_code='UNEXP00038',
                trace=trace
            )
            return await self._apply(transform, response.data['data'])

    # =========================================================================
    # Internals
    # =========================================================================

    def _resolve_account(self, account_name: Optional[str]) -> str:
        return validate_account_name(account_name or self._account_name)

    async def _fetch_relations(
        self,
        account_name: str,
        uid: int,
        endpoint: EndpointRequest,
        parse_error_code: str,
        exhausted_code: str,
        trace: OperationTrace
    ) -> Dict[str, Any]:
        responses = await self._fetch(
            account_name, uid, [endpoint],
            parse_error_codes=(parse_error_code,),
            exhausted_code=exhausted_code,
            trace=trace,
            private_ok=True
        )
        if responses is None:
            return private_account_result()
        data = dict(responses[0].data)
        data.pop('ok', None)
        return data

    async def _fetch(
        self,
        account_name: str,
        uid: int,
        endpoints: Sequence[EndpointRequest],
        parse_error_codes: Tuple[str, ...],
        exhausted_code: str,
        trace: OperationTrace,
        private_ok: bool = False
    ) -> Optional[List[ClassifiedResponse]]:
        """
        Send ``endpoints`` with at most one renewal in between.

        Returns:
            One successful response per endpoint, or None when ``private_ok``
            and a response says the account's relations are hidden
        """
        version, session = await self._sessions.get_session(account_name, log=trace)

        for attempt in range(1, STALE_SESSION_ATTEMPTS + 1):
            responses = await self._send_all(session, endpoints, trace)

            for response, code in zip(responses, parse_error_codes):
                self._raise_for(response, uid, code)

            if private_ok and any(r.kind is ResponseKind.ACCOUNT_PRIVATE for r in responses):
                return None

            if any(r.is_stale for r in responses):
                trace.info(f"stale session at version({version}), attempt {attempt} of {STALE_SESSION_ATTEMPTS}")
                if attempt < STALE_SESSION_ATTEMPTS:
                    version, session = await self._sessions.get_session(
                        account_name, renew_from=version, log=trace
                    )
                continue

            for response in responses:
                if not response.is_success:
                    # hidden relations are only meaningful for friends/fans
                    raise UnknownResponseBodyError(response.raw)
            return responses

        raise UnexpectedError(exhausted_code)

    async def _send_all(
        self,
        session: CredentialSession,
        endpoints: Sequence[EndpointRequest],
        trace: OperationTrace
    ) -> List[ClassifiedResponse]:
        if len(endpoints) == 1:
            return [await self._send(session, endpoints[0], trace)]
        return list(await asyncio.gather(*(
            self._send(session, endpoint, trace.child()) for endpoint in endpoints
        )))

    @staticmethod
    async def _send(session: CredentialSession, endpoint: EndpointRequest, trace: OperationTrace) -> ClassifiedResponse:
        response = await session.transport.get(endpoint.url, headers=endpoint.headers, log=trace)
        result = classify(response.status, response.body, endpoint.required_field)
        trace.info(f"classified {endpoint.url} as {result.kind.value}")
        return result

    @staticmethod
    def _raise_for(response: ClassifiedResponse, uid: int, parse_error_code: str) -> None:
        kind = response.kind
        if kind is ResponseKind.USER_NOT_FOUND:
            raise UserNotFoundError(uid)
        if kind is ResponseKind.UNKNOWN_STATUS:
            raise UnknownResponseStatusError(response.raw)
        if kind is ResponseKind.UNKNOWN_BODY:
            raise UnknownResponseBodyError(response.raw)
        if kind is ResponseKind.PARSE_ERROR:
            raise UnexpectedError(parse_error_code)

    @staticmethod
    async def _apply(transform: Optional[Transform], result: Any) -> Any:
        if transform is None:
            return result
        value = transform(result)
        if inspect.isawaitable(value):
            value = await value
        return value

    @asynccontextmanager
    async def _reporting(self, operation: str, trace: OperationTrace):
        """Persist the trace of a failed operation, then re-raise unchanged."""
        try:
            yield
        except Exception as e:
            trace.error(f"{type(e).__name__}: {e}")
            trace.error(traceback.format_exc())
            try:
                self._data.create_log(e, operation, trace.text())
            except Exception as log_error:
                trace.logger.warning(f"Unable to write diagnostic log for {operation}: {log_error!r}")
            raise

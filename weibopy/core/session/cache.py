"""
Session cache with optimistic renewal.

Keeps the latest CredentialSession per account in memory, keyed by the
snapshot version it was loaded from. The on-disk version is the source of
truth: an entry whose version no longer matches is reloaded.
"""
import asyncio
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from .credential_session import CredentialSession
from .protocols import QRCodeCallback
from .versioned_store import VersionedStore
from ..exceptions import ValidationError
from ..logging import get_logger
from ..storage.data_directory import DataDirectory
from ..utils import validate_account_name

SessionFactory = Callable[[], CredentialSession]


class SessionCache:
    """
    Process-wide cache of ``account -> (version, CredentialSession)``.

    Read-check-then-write on an account's entry runs under that account's
    lock, so concurrent callers in one process never interleave a renewal.

    Example:
        >>> cache = SessionCache(DataDirectory(config.data_path), lambda: CredentialSession(config))
        >>> version, session = await cache.get_session("main")
        >>> # after seeing a stale response at `version`:
        >>> version, session = await cache.get_session("main", renew_from=version)
    """

    def __init__(self, data: DataDirectory, session_factory: SessionFactory):
        """
        Initialize the cache.

        Args:
            data: Data directory holding the account stores
            session_factory: Creates an anonymous CredentialSession
        """
        self._data = data
        self._session_factory = session_factory
        self._entries: Dict[str, Tuple[int, CredentialSession]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._logger = get_logger('weibopy.session.cache')

    def _lock_for(self, name: str) -> asyncio.Lock:
        # No await between lookup and insert, so this is atomic for the loop
        lock = self._locks.get(name)
        if lock is None:
            lock = self._locks[name] = asyncio.Lock()
        return lock

    def cached(self, name: str) -> Optional[Tuple[int, CredentialSession]]:
        return self._entries.get(name)

    async def add_account(self, name: str, on_qrcode: QRCodeCallback, log=None, **login_options) -> Path:
        """
        Log in a new account and write its first snapshot.

        The cache is left alone; the first ``get_session`` loads from disk.

        Returns:
            The account directory
        """
        name = validate_account_name(name)
        account_path = self._data.account_path(name)
        session = self._session_factory()
        await session.login(on_qrcode, log=log, **login_options)
        VersionedStore(account_path).write(session.to_payload())
        return account_path

    async def get_session(
        self,
        name: str,
        renew_from: Optional[int] = None,
        log=None
    ) -> Tuple[int, CredentialSession]:
        """
        Return the current ``(version, session)`` for an account.

        Args:
            name: Account name
            renew_from: Version at which the caller saw a stale session. If it
                is still the current version, the session is renewed and a new
                snapshot is written. Otherwise it is ignored: someone already
                moved past it.
            log: Optional logger or operation trace

        Raises:
            ValidationError: If the account does not exist
        """
        log = log or self._logger
        account_path = self._data.account_path(name)
        if not VersionedStore.is_provisioned(account_path):
            raise ValidationError(f"account '{name}' not found")

        async with self._lock_for(name):
            store = VersionedStore(account_path)
            version = store.current_version()
            if version is None:
                raise ValidationError(f"account '{name}' not found")

            if renew_from is not None and renew_from == version:
                return await self._renew(name, store, version, log)

            entry = self._entries.get(name)
            if entry is not None and entry[0] == version:
                return entry

            log.info(f"SESSION_CACHE: loading account({name}) version({version})")
            session = self._session_factory().load_payload(store.read_version(version))
            self._entries[name] = (version, session)
            return version, session

    async def _renew(self, name: str, store: VersionedStore, version: int, log) -> Tuple[int, CredentialSession]:
        log.info(f"SESSION_CACHE: renewing account({name}) from version({version})")
        session = self._session_factory().load_payload(store.read_version(version))
        await session.renew(skip_initial_check=True, log=log)
        new_version = store.write(session.to_payload())
        self._entries[name] = (new_version, session)
        return new_version, session

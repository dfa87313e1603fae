"""
Data directory layout.

    <data_path>/accounts/<account_name>/<version>.content
    <data_path>/logs/<timestamp>-<operation>-<ErrorClass>.log
"""
from datetime import datetime
from pathlib import Path
from typing import List, Union

from ..exceptions import StorageIOError
from ..logging import get_logger
from ..session.versioned_store import VersionedStore
from ..utils import ACCOUNT_NAME_PATTERN

logger = get_logger('weibopy.storage')


class DataDirectory:
    """Account stores and diagnostic logs under one data path."""

    def __init__(self, data_path: Union[str, Path]):
        self._data_path = Path(data_path).expanduser().resolve()
        self._accounts_path = self._data_path / 'accounts'
        self._logs_path = self._data_path / 'logs'

        try:
            self._accounts_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError("the configured data path is invalid - unable to create the accounts directory") from e
        try:
            self._logs_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError("the configured data path is invalid - unable to create the logs directory") from e

    @property
    def data_path(self) -> Path:
        return self._data_path

    @property
    def accounts_path(self) -> Path:
        return self._accounts_path

    @property
    def logs_path(self) -> Path:
        return self._logs_path

    def accounts(self) -> List[str]:
        """Provisioned account names, sorted."""
        return sorted(
            entry.name for entry in self._accounts_path.iterdir()
            if ACCOUNT_NAME_PATTERN.match(entry.name) and VersionedStore.is_provisioned(entry)
        )

    def account_path(self, name: str) -> Path:
        return self._accounts_path / name

    def log_path(self, name: str) -> Path:
        return self._logs_path / name

    def create_log(self, error: BaseException, operation: str, content: str) -> Path:
        """
        Persist the diagnostic text of a failed operation.

        Raises:
            OSError: If the file cannot be written; callers treat this as
                best effort
        """
        stamp = datetime.now().astimezone().isoformat().replace(':', '-')
        path = self.log_path(f"{stamp}-{operation}-{type(error).__name__}.log")
        path.write_text(content, encoding='utf-8')
        logger.debug(f"Wrote diagnostic log {path}")
        return path

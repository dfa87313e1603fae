"""
Versioned snapshot storage.

Each account directory holds append-only snapshots named ``<ms>.content``.
A write lands in a temporary file first and is renamed into place, so
readers in other processes only ever see complete snapshots.
"""
import os
import re
import time
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from ..exceptions import StorageIOError
from ..logging import get_logger
from ..utils import gen_random_key

SNAPSHOT_SUFFIX = '.content'
SNAPSHOT_PATTERN = re.compile(r'^([0-9]+)\.content$')
KEEP_NEWEST = 2
GRACE_SECONDS = 3.0

logger = get_logger('weibopy.session.store')


def now_ms() -> int:
    return time.time_ns() // 1_000_000


class VersionedStore:
    """
    Append-only snapshot store for one account.

    There is no locking: rename atomicity is the only write guarantee, and
    old snapshots are deleted only after a grace window so a reader that
    just picked a version can still open it.

    Example:
        >>> store = VersionedStore(Path("data/accounts/main"))
        >>> version = store.write(b"...")
        >>> store.read()
        (1700000000000, b'...')
    """

    def __init__(self, path: Union[str, Path], clock: Callable[[], int] = now_ms):
        """
        Initialize the store, creating its directory if needed.

        Args:
            path: Account directory
            clock: Millisecond clock, replaceable in tests

        Raises:
            StorageIOError: If the directory cannot be created
        """
        self._path = Path(path).expanduser().resolve()
        self._clock = clock
        try:
            self._path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(
                f"unable to create versioned store '{self._path}', could not create containing directory"
            ) from e

    @property
    def path(self) -> Path:
        return self._path

    @staticmethod
    def is_provisioned(path: Union[str, Path]) -> bool:
        """True iff ``path`` is a directory holding at least one snapshot."""
        return bool(VersionedStore._list_versions(Path(path).expanduser()))

    @staticmethod
    def _list_versions(path: Path) -> List[int]:
        """Snapshot versions in ``path``, newest first."""
        try:
            entries = list(os.scandir(path))
        except (FileNotFoundError, NotADirectoryError):
            return []
        except OSError as e:
            raise StorageIOError(f"unable to list versioned store '{path}'") from e

        versions = []
        for entry in entries:
            match = SNAPSHOT_PATTERN.match(entry.name)
            if match and entry.is_file():
                versions.append(int(match.group(1)))
        versions.sort(reverse=True)
        return versions

    def versions(self) -> List[int]:
        return self._list_versions(self._path)

    def current_version(self) -> Optional[int]:
        versions = self.versions()
        return versions[0] if versions else None

    def snapshot_path(self, version: int) -> Path:
        return self._path / f"{version}{SNAPSHOT_SUFFIX}"

    def read_version(self, version: int) -> bytes:
        path = self.snapshot_path(version)
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageIOError(f"unable to read from versioned store '{path}'") from e

    def read(self) -> Optional[Tuple[int, bytes]]:
        version = self.current_version()
        if version is None:
            return None
        return version, self.read_version(version)

    def write(self, data: bytes) -> int:
        """
        Write a new snapshot and return its version.

        Raises:
            StorageIOError: If the temp file cannot be written or renamed
        """
        temp_path = self._create_temp_file(data)

        current = self.current_version()
        version = self._clock()
        if current is not None and version <= current:
            version = current + 1
        target = self.snapshot_path(version)

        try:
            os.replace(temp_path, target)
        except OSError as e:
            raise StorageIOError(
                f"unable to move temp file '{temp_path}' to '{target}', could not write to disk"
            ) from e

        logger.debug(f"Wrote snapshot {target}")
        self.cleanup()
        return version

    def _create_temp_file(self, data: bytes) -> Path:
        while True:
            temp_path = self._path / gen_random_key()
            try:
                with open(temp_path, 'xb') as f:
                    f.write(data)
                return temp_path
            except FileExistsError:
                continue
            except OSError as e:
                raise StorageIOError(
                    f"unable to create temp file '{temp_path}', could not write to disk"
                ) from e

    def cleanup(self) -> List[int]:
        """
        Delete all but the two newest snapshots once the second newest is
        older than the grace window.

        Returns:
            Versions that were deleted
        """
        versions = self.versions()
        if len(versions) < KEEP_NEWEST + 1:
            return []

        age_seconds = (self._clock() - versions[1]) / 1000
        if age_seconds < GRACE_SECONDS:
            return []

        removed = []
        for version in versions[KEEP_NEWEST:]:
            try:
                self.snapshot_path(version).unlink()
            except FileNotFoundError:
                # another process cleaned up first
                pass
            except OSError as e:
                raise StorageIOError(f"unable to delete snapshot '{self.snapshot_path(version)}'") from e
            removed.append(version)

        if removed:
            logger.debug(f"Pruned {len(removed)} snapshot(s) from {self._path}")
        return removed

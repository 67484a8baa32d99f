"""JSON-file persistence with optimistic versioning.

Each repository owns one JSON array file. ``load()`` returns the records
together with a version, the SHA-256 fingerprint of the raw file bytes.
``save()`` re-reads the fingerprint and refuses to write if it no longer
matches (compare-and-swap), then replaces the file atomically. Within one
process the check and the replace run under a per-file lock, so request
threads cannot both pass the check.

A missing file is an empty collection with version ``""``.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from dutch_payroll.calculators.tax_configuration import TaxConfigurationProvider, utcnow
from dutch_payroll.errors import ConcurrentModificationError, PersistenceError

logger = logging.getLogger(__name__)

ADJUSTMENTS_FILE = "adjustments.json"
PAYROLL_RUNS_FILE = "payroll-runs.json"
EMPLOYEES_FILE = "employees.json"


@dataclass
class Snapshot:
    """Records as loaded, plus the version they were loaded at."""

    records: list[dict[str, Any]] = field(default_factory=list)
    version: str = ""


def _fingerprint(raw: bytes) -> str:
    return hashlib.sha256(raw).hexdigest()


_path_locks: dict[Path, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    # Serializes check-then-replace per file within this process
    key = path.resolve()
    with _path_locks_guard:
        return _path_locks.setdefault(key, threading.Lock())


class JsonFileRepository:
    """Load/save a JSON array file under compare-and-swap versioning."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _read_raw(self) -> bytes | None:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error("Failed to read %s: %s", self.path, e)
            raise PersistenceError(str(self.path), "read", str(e)) from e

    def current_version(self) -> str:
        raw = self._read_raw()
        return "" if raw is None else _fingerprint(raw)

    def load(self) -> Snapshot:
        """Read all records.

        Raises:
            PersistenceError: If the file cannot be read or is not a JSON array.
        """
        raw = self._read_raw()
        if raw is None:
            return Snapshot()
        try:
            records = json.loads(raw.decode("utf-8")) if raw.strip() else []
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error("Malformed JSON in %s: %s", self.path, e)
            raise PersistenceError(str(self.path), "parse", str(e)) from e
        if not isinstance(records, list):
            raise PersistenceError(str(self.path), "parse", "expected a JSON array")
        return Snapshot(records=records, version=_fingerprint(raw))

    def save(self, records: list[dict[str, Any]], expected_version: str) -> str:
        """Write ``records`` if the file is still at ``expected_version``.

        Returns the new version.

        Raises:
            ConcurrentModificationError: If another writer saved in between.
            PersistenceError: If the write fails.
        """
        with _lock_for(self.path):
            return self._save_locked(records, expected_version)

    def _save_locked(self, records: list[dict[str, Any]], expected_version: str) -> str:
        actual = self.current_version()
        if actual != expected_version:
            logger.warning(
                "Version conflict on %s: expected %s, found %s",
                self.path,
                expected_version or "<empty>",
                actual or "<empty>",
            )
            raise ConcurrentModificationError(str(self.path), expected_version, actual)

        payload = json.dumps(records, indent=2, ensure_ascii=False).encode("utf-8")
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            logger.error("Failed to write %s: %s", self.path, e)
            raise PersistenceError(str(self.path), "write", str(e)) from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
        return _fingerprint(payload)


class PayrollStore:
    """Store context: the persisted collections plus the tax configuration cache.

    Construct one per data directory; tests construct one per ``tmp_path``
    and call ``reset()`` to start from a clean slate.
    """

    def __init__(self, data_dir: Path | str, clock: Callable[[], datetime] = utcnow):
        self.data_dir = Path(data_dir)
        self.clock = clock
        self.adjustments = JsonFileRepository(self.data_dir / ADJUSTMENTS_FILE)
        self.payroll_runs = JsonFileRepository(self.data_dir / PAYROLL_RUNS_FILE)
        self.tax_configurations = TaxConfigurationProvider(clock=clock)

    def reset(self) -> None:
        """Delete persisted adjustments and runs and drop cached configurations."""
        for repository in (self.adjustments, self.payroll_runs):
            try:
                repository.path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                raise PersistenceError(str(repository.path), "delete", str(e)) from e
        self.tax_configurations.reset()
        logger.info("Reset payroll store at %s", self.data_dir)

"""Fraud Ring Store - persistence for detected rings.

Decouples ring persistence from detection. The dedup check and the insert
run under one lock, so two concurrent detections cannot both insert the same
ring.

Backends:
- InMemoryFraudRingStore for tests and single-process runs
- FileFraudRingStore: one JSON file, atomic replace, fcntl locking
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence
import fcntl
import json
import logging
import os
import tempfile
import threading

from pydantic import ValidationError

from lunar_graph.common.config import Config, RingStoreType, get_config, get_thresholds
from lunar_graph.common.constants import StoreConstants
from lunar_graph.common.exceptions import RingStoreError
from lunar_graph.detection.rings.schema import FraudRing, RingStatus


logger = logging.getLogger(__name__)


class FraudRingStore(ABC):
    """Abstract base class for ring storage backends.

    Subclasses provide loading, persisting and a transaction lock; the
    dedup and query logic lives here.
    """

    def __init__(self, dedup_entity_prefix: int = StoreConstants.DEDUP_ENTITY_PREFIX):
        self.dedup_entity_prefix = dedup_entity_prefix

    @abstractmethod
    def _load(self) -> Dict[str, FraudRing]:
        """Read every stored ring keyed by id."""
        pass

    @abstractmethod
    def _persist(self, rings: Dict[str, FraudRing]) -> None:
        """Replace the stored rings."""
        pass

    @abstractmethod
    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Exclusive section for read-modify-write."""
        pass

    # ------------------------------------------------------------------ #

    @staticmethod
    def _find_overlapping(
        rings: Dict[str, FraudRing],
        entities: Sequence[str],
    ) -> Optional[FraudRing]:
        wanted = set(entities)
        for ring in rings.values():
            if ring.is_active and wanted.issubset(ring.entities):
                return ring
        return None

    def find_active_overlapping(self, entities: Sequence[str]) -> Optional[FraudRing]:
        """An active ring containing every given entity, if any."""
        with self._transaction():
            return self._find_overlapping(self._load(), entities)

    def save_if_new(self, ring: FraudRing) -> bool:
        """Insert unless an active ring already holds the ring's leading entities.

        Returns:
            True if inserted, False for a duplicate
        """
        key = ring.dedup_key(self.dedup_entity_prefix)
        with self._transaction():
            rings = self._load()
            existing = self._find_overlapping(rings, key)
            if existing is not None:
                logger.info(
                    f"Ring already exists, skipping: {ring.name}",
                    extra={"ring_id": ring.id, "existing_ring_id": existing.id},
                )
                return False
            if ring.id in rings:
                return False
            rings[ring.id] = ring
            self._persist(rings)

        logger.info(
            f"Saved fraud ring: {ring.name}",
            extra={"ring_id": ring.id, "entities": len(ring.entities)},
        )
        return True

    def list_active(self, limit: int = StoreConstants.DEFAULT_LOAD_LIMIT) -> List[FraudRing]:
        """Active rings, newest first."""
        with self._transaction():
            rings = [r for r in self._load().values() if r.is_active]
        rings.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        return rings[:limit]

    def get(self, ring_id: str) -> Optional[FraudRing]:
        with self._transaction():
            return self._load().get(ring_id)

    def update_status(self, ring_id: str, status: RingStatus) -> FraudRing:
        """Move a ring through the investigation lifecycle.

        Raises:
            RingStoreError: If the ring does not exist
        """
        with self._transaction():
            rings = self._load()
            ring = rings.get(ring_id)
            if ring is None:
                raise RingStoreError(
                    f"Fraud ring not found: {ring_id}",
                    details={"ring_id": ring_id},
                )
            updated = ring.model_copy(update={
                "status": RingStatus(status),
                "updated_at": datetime.now(timezone.utc),
            })
            rings[ring_id] = updated
            self._persist(rings)
        return updated

    def clear(self) -> None:
        """Remove every stored ring."""
        with self._transaction():
            self._persist({})


class InMemoryFraudRingStore(FraudRingStore):
    """Process-local store guarded by a lock."""

    def __init__(self, dedup_entity_prefix: int = StoreConstants.DEDUP_ENTITY_PREFIX):
        super().__init__(dedup_entity_prefix)
        self._rings: Dict[str, FraudRing] = {}
        self._lock = threading.RLock()

    def _load(self) -> Dict[str, FraudRing]:
        return dict(self._rings)

    def _persist(self, rings: Dict[str, FraudRing]) -> None:
        self._rings = dict(rings)

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        with self._lock:
            yield


class FileFraudRingStore(FraudRingStore):
    """JSON file store with atomic writes and cross-process locking.

    Features:
    - Whole-file rewrite through a temp file and os.replace
    - fcntl lock on a sidecar lock file for cross-process safety
    """

    LOCK_SUFFIX = ".lock"

    def __init__(
        self,
        store_dir: str,
        filename: str = StoreConstants.RING_FILE_NAME,
        dedup_entity_prefix: int = StoreConstants.DEDUP_ENTITY_PREFIX,
    ):
        """Initialize file ring store.

        Args:
            store_dir: Directory holding the ring file
            filename: Ring file name
            dedup_entity_prefix: Leading entities compared on save
        """
        super().__init__(dedup_entity_prefix)
        self.store_dir = Path(store_dir)
        self.path = self.store_dir / filename
        self._lock_path = self.path.with_suffix(self.path.suffix + self.LOCK_SUFFIX)

        # Thread safety
        self._lock = threading.RLock()
        self._depth = 0

        self.store_dir.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        with self._lock:
            # flock is per open file; re-entry must not take it twice
            if self._depth:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            fd = os.open(str(self._lock_path), os.O_RDWR | os.O_CREAT, 0o600)
            try:
                fcntl.flock(fd, fcntl.LOCK_EX)
                self._depth = 1
                try:
                    yield
                finally:
                    self._depth = 0
                    fcntl.flock(fd, fcntl.LOCK_UN)
            finally:
                os.close(fd)

    def _load(self) -> Dict[str, FraudRing]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise RingStoreError(
                f"Cannot read ring store: {self.path}",
                details={"path": str(self.path), "error": str(e)},
            ) from e

        rings: Dict[str, FraudRing] = {}
        for item in raw:
            try:
                ring = FraudRing.model_validate(item)
            except ValidationError as e:
                logger.warning(f"Skipped malformed stored ring: {e}")
                continue
            rings[ring.id] = ring
        return rings

    def _persist(self, rings: Dict[str, FraudRing]) -> None:
        payload = [ring.to_dict() for ring in rings.values()]
        fd, tmp_path = tempfile.mkstemp(dir=str(self.store_dir), suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(payload, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise RingStoreError(
                f"Cannot write ring store: {self.path}",
                details={"path": str(self.path), "error": str(e)},
            ) from e


def create_ring_store(config: Optional[Config] = None) -> FraudRingStore:
    """Build the store selected by Config.ring_store_type."""
    config = config or get_config()
    prefix = get_thresholds().rings.dedup_entity_prefix
    if config.ring_store_type == RingStoreType.FILE:
        return FileFraudRingStore(str(config.ring_store_dir), dedup_entity_prefix=prefix)
    return InMemoryFraudRingStore(dedup_entity_prefix=prefix)

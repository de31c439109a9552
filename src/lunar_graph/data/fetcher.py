"""Record Fetcher - concurrent, independent reads of the four feeds.

Each feed is a zero-argument callable returning an iterable of records. A
feed that raises or exceeds the timeout degrades to an empty collection; it
never blocks or fails the others.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from lunar_graph.common.config import get_config
from lunar_graph.common.constants import FetchConstants
from lunar_graph.common.exceptions import FeedError


logger = logging.getLogger(__name__)

Feed = Callable[[], Iterable[Any]]

FEED_NAMES = (
    FetchConstants.FEED_AFFILIATES,
    FetchConstants.FEED_CLIENTS,
    FetchConstants.FEED_TRADES,
    FetchConstants.FEED_TRACKING,
)


@dataclass
class RecordSnapshot:
    """One consistent pull of all four feeds."""
    affiliates: List[Any] = field(default_factory=list)
    clients: List[Any] = field(default_factory=list)
    trades: List[Any] = field(default_factory=list)
    tracking: List[Any] = field(default_factory=list)
    failed_feeds: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed_feeds


class RecordFetcher:
    """Fetch record feeds in parallel.

    Features:
    - One worker per feed
    - Per-fetch timeout, treated as feed failure
    - Unknown feed names are rejected at construction
    """

    def __init__(
        self,
        feeds: Mapping[str, Feed],
        timeout_seconds: Optional[float] = None,
        max_workers: int = FetchConstants.MAX_WORKERS,
    ):
        """Initialize fetcher.

        Args:
            feeds: Feed name -> callable; names from FEED_NAMES
            timeout_seconds: Per-fetch timeout. Uses config if not provided.
            max_workers: Thread pool size
        """
        unknown = set(feeds) - set(FEED_NAMES)
        if unknown:
            raise ValueError(f"Unknown feeds: {sorted(unknown)}")

        self.feeds = dict(feeds)
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None
            else get_config().fetch_timeout_seconds
        )
        self.max_workers = max_workers

    def fetch_all(self) -> RecordSnapshot:
        """Fetch every feed concurrently.

        Returns:
            RecordSnapshot; failed or timed-out feeds are empty and named in
            failed_feeds
        """
        snapshot = RecordSnapshot()
        results: Dict[str, List[Any]] = {}

        executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="FeedWorker",
        )
        try:
            futures = {
                executor.submit(self._fetch_one, name, fetch): name
                for name, fetch in self.feeds.items()
            }
            done, not_done = wait(futures, timeout=self.timeout_seconds)

            for future in done:
                name = futures[future]
                try:
                    results[name] = future.result()
                except Exception as e:
                    logger.warning(
                        f"Feed {name} failed: {type(e).__name__}: {e}",
                        extra={"feed": name},
                    )
                    snapshot.failed_feeds.append(name)

            for future in not_done:
                name = futures[future]
                future.cancel()
                logger.warning(
                    f"Feed {name} timed out after {self.timeout_seconds}s",
                    extra={"feed": name, "timeout_seconds": self.timeout_seconds},
                )
                snapshot.failed_feeds.append(name)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        snapshot.affiliates = results.get(FetchConstants.FEED_AFFILIATES, [])
        snapshot.clients = results.get(FetchConstants.FEED_CLIENTS, [])
        snapshot.trades = results.get(FetchConstants.FEED_TRADES, [])
        snapshot.tracking = results.get(FetchConstants.FEED_TRACKING, [])
        snapshot.failed_feeds.sort()

        logger.info(
            f"Fetched {len(snapshot.affiliates)} affiliates, {len(snapshot.clients)} clients, "
            f"{len(snapshot.trades)} trades, {len(snapshot.tracking)} tracking records",
            extra={"failed_feeds": snapshot.failed_feeds},
        )
        return snapshot

    @staticmethod
    def _fetch_one(name: str, fetch: Feed) -> List[Any]:
        try:
            records = fetch()
        except Exception as e:
            raise FeedError(f"Feed {name} unavailable: {e}", feed_name=name) from e
        return list(records) if records is not None else []

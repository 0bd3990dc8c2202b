from __future__ import annotations

import bisect
import logging
import threading
from typing import Iterable, Optional, Protocol

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    def exists(self, key: str) -> bool: ...

    def put(self, key: str, content: bytes, content_type: str = "image/jpeg") -> str: ...

    def list_all_keys(self) -> Iterable[str]: ...


class ListingBlobIndex:
    """Answer existence queries from a sorted snapshot of the bucket listing.

    The listing is fetched once, by the first caller, under a lock. Later
    callers search the snapshot with bisect. Keys uploaded through this
    index are added to the snapshot; objects written by anyone else after
    the listing are not seen until the next run.
    """

    def __init__(self, store: BlobStore):
        self.store = store
        self._keys: Optional[list[str]] = None
        self._populate_lock = threading.Lock()
        self._keys_lock = threading.Lock()
        self.listing_calls = 0

    def _snapshot(self) -> list[str]:
        keys = self._keys
        if keys is not None:
            return keys
        with self._populate_lock:
            if self._keys is None:
                logger.info("Retrieving existing object keys from blob store")
                self.listing_calls += 1
                listed = sorted(set(self.store.list_all_keys()))
                self._keys = listed
                logger.info("%d existing objects retrieved", len(listed))
            return self._keys

    def exists(self, key: str) -> bool:
        keys = self._snapshot()
        with self._keys_lock:
            i = bisect.bisect_left(keys, key)
            return i < len(keys) and keys[i] == key

    def put(self, key: str, content: bytes, content_type: str = "image/jpeg") -> str:
        url = self.store.put(key, content, content_type)
        with self._keys_lock:
            keys = self._keys
            if keys is None:
                return url
            i = bisect.bisect_left(keys, key)
            if i == len(keys) or keys[i] != key:
                keys.insert(i, key)
        return url

    def list_all_keys(self) -> list[str]:
        keys = self._snapshot()
        with self._keys_lock:
            return list(keys)

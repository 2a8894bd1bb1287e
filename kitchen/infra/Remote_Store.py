"""Remote document stores used to mirror local collections across devices.

A remote store keeps documents per collection, keyed by id, and tells
subscribers about changes by handing them the full current collection.
"""
import copy
import logging
from typing import Callable, Dict, List, Optional

import httpx

from kitchen.domain.errors import KitchenError
from kitchen.utilities import config

logger = logging.getLogger(__name__)

Snapshot = Dict[str, dict]
Listener = Callable[[str, Snapshot], None]


class RemoteStoreError(KitchenError):
    code = "remote_store_error"


class RemoteStore:
    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {}

    def put(self, collection: str, doc_id: str, doc: dict) -> None:
        raise NotImplementedError

    def delete(self, collection: str, doc_id: str) -> None:
        raise NotImplementedError

    def fetch_all(self, collection: str) -> Snapshot:
        raise NotImplementedError

    def subscribe(self, collection: str, callback: Listener) -> Callable[[], None]:
        '''Register `callback(collection, snapshot)`; returns a function that unsubscribes.'''
        self._listeners.setdefault(collection, []).append(callback)

        def unsubscribe():
            if callback in self._listeners.get(collection, []):
                self._listeners[collection].remove(callback)
        return unsubscribe

    def _notify(self, collection: str, snapshot: Snapshot):
        for callback in list(self._listeners.get(collection, [])):
            try:
                callback(collection, copy.deepcopy(snapshot))
            except Exception as e:
                logger.error(f"Remote listener for '{collection}' failed: {e}")


class InMemoryRemoteStore(RemoteStore):
    """Process-local store; listeners are called synchronously after every write."""

    def __init__(self):
        super().__init__()
        self.collections: Dict[str, Snapshot] = {}

    def put(self, collection: str, doc_id: str, doc: dict) -> None:
        self.collections.setdefault(collection, {})[doc_id] = copy.deepcopy(doc)
        self._notify(collection, self.fetch_all(collection))

    def delete(self, collection: str, doc_id: str) -> None:
        self.collections.setdefault(collection, {}).pop(doc_id, None)
        self._notify(collection, self.fetch_all(collection))

    def fetch_all(self, collection: str) -> Snapshot:
        return copy.deepcopy(self.collections.get(collection, {}))


class HttpRemoteStore(RemoteStore):
    """REST document store: PUT/DELETE/GET `{base}/{collection}/{id}` and GET `{base}/{collection}`.

    There is no push channel, so `poll()` fetches each subscribed collection
    and hands the snapshot to its listeners.
    """

    def __init__(self, base_url: str = config.REMOTE_STORE_URL, token: str = config.REMOTE_STORE_TOKEN,
                 timeout: float = config.REMOTE_TIMEOUT_SECONDS, transport: Optional[httpx.BaseTransport] = None):
        super().__init__()
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.Client(base_url=base_url.rstrip("/"), headers=headers, timeout=timeout,
                                    transport=transport)

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
            if method == "DELETE" and response.status_code == 404:
                return response
            response.raise_for_status()
            return response
        except httpx.HTTPError as e:
            raise RemoteStoreError(f"{method} {path} failed: {e}") from e

    def put(self, collection: str, doc_id: str, doc: dict) -> None:
        self._request("PUT", f"/{collection}/{doc_id}", json=doc)

    def delete(self, collection: str, doc_id: str) -> None:
        self._request("DELETE", f"/{collection}/{doc_id}")

    def fetch_all(self, collection: str) -> Snapshot:
        data = self._request("GET", f"/{collection}").json()
        if isinstance(data, list):
            return {str(doc.get("id")): doc for doc in data if isinstance(doc, dict) and doc.get("id") is not None}
        if isinstance(data, dict):
            return {str(k): v for k, v in data.items() if isinstance(v, dict)}
        raise RemoteStoreError(f"Unexpected payload for collection '{collection}'")

    def poll(self) -> int:
        '''Fetch every subscribed collection once; returns how many were delivered.'''
        delivered = 0
        for collection in list(self._listeners):
            try:
                snapshot = self.fetch_all(collection)
            except RemoteStoreError as e:
                logger.warning(f"Polling '{collection}' failed: {e}")
                continue
            self._notify(collection, snapshot)
            delivered += 1
        return delivered

    def close(self):
        self._client.close()

"""In-memory token cache for Graph OAuth (graphoauth)."""

import threading


class InMemoryTokenCache:
    """Thread-safe token store keyed by AppConfig.cache_id."""

    def __init__(self):
        self._lock = threading.Lock()
        self._tokens = {}

    def store(self, key, token):
        with self._lock:
            self._tokens[key] = token

    def get(self, key):
        with self._lock:
            return self._tokens.get(key)

    def evict(self, key):
        """Remove and return the token under key, if any."""
        with self._lock:
            return self._tokens.pop(key, None)

    def clear(self):
        with self._lock:
            self._tokens.clear()

    def __contains__(self, key):
        with self._lock:
            return key in self._tokens

    def __len__(self):
        with self._lock:
            return len(self._tokens)

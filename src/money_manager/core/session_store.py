# src/money_manager/core/session_store.py
"""
Persistent cookie storage for the upstream session.

The Money Manager web app keeps its state in a session cookie. The store
owns one requests cookie jar, shares it with the HTTP session and mirrors
it to a JSON file so the session survives restarts.
"""
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from requests.cookies import RequestsCookieJar, create_cookie

from .config import DEFAULT_COOKIE_FILE

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Cookie jar with JSON file persistence.

    Features:
        - Load on construction (corrupt file -> warning, empty jar)
        - Atomic save (temp file + os.replace) under a lock
        - Expired cookies dropped on load
        - clear() empties the jar in place, so sessions sharing it see the change

    Example:
        >>> store = SessionStore(".session-cookies.json")
        >>> session.cookies = store.jar
        >>> store.save()  # after a successful exchange
    """

    def __init__(self, cookie_file: str = DEFAULT_COOKIE_FILE, persist: bool = True):
        """
        Args:
            cookie_file: Path to the cookie file (relative to cwd)
            persist: Mirror the jar to disk
        """
        self.cookie_file = Path(cookie_file).expanduser()
        self.persist = persist
        self.jar = RequestsCookieJar()
        self._lock = threading.Lock()

        if self.persist:
            self.load()

    def load(self) -> int:
        """
        Load cookies from disk into the jar.

        Returns:
            Number of cookies loaded
        """
        if not self.cookie_file.exists():
            return 0

        try:
            with open(self.cookie_file, encoding="utf-8") as fh:
                entries = json.load(fh)
            cookies = [_cookie_from_dict(entry) for entry in entries]
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"Failed to load cookies from {self.cookie_file}: {e}")
            return 0

        loaded = 0
        with self._lock:
            for cookie in cookies:
                if cookie.is_expired():
                    continue
                self.jar.set_cookie(cookie)
                loaded += 1

        logger.debug(f"Loaded {loaded} cookie(s) from {self.cookie_file}")
        return loaded

    def save(self):
        """
        Write the whole jar to disk.

        A failed write is logged and does not fail the request that
        triggered it.
        """
        if not self.persist:
            return

        with self._lock:
            entries = [_cookie_to_dict(cookie) for cookie in self.jar]
            try:
                self._write_atomic(entries)
            except OSError as e:
                logger.warning(f"Failed to save cookies to {self.cookie_file}: {e}")

    def clear(self):
        """Drop all cookies and delete the cookie file."""
        with self._lock:
            self.jar.clear()
            if self.persist:
                try:
                    self.cookie_file.unlink()
                except FileNotFoundError:
                    pass
                except OSError as e:
                    logger.warning(f"Failed to delete cookie file {self.cookie_file}: {e}")

        logger.info("Session cleared")

    def _write_atomic(self, entries: List[Dict[str, Any]]):
        directory = self.cookie_file.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.cookie_file.name}.", suffix=".tmp", dir=str(directory)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(entries, fh, indent=2)
            os.replace(tmp_path, self.cookie_file)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def __len__(self) -> int:
        return len(self.jar)

    def __bool__(self) -> bool:
        return len(self.jar) > 0

    def __repr__(self) -> str:
        return f"SessionStore(cookie_file={str(self.cookie_file)!r}, persist={self.persist}, cookies={len(self)})"


def _cookie_to_dict(cookie) -> Dict[str, Any]:
    return {
        "name": cookie.name,
        "value": cookie.value,
        "domain": cookie.domain,
        "path": cookie.path,
        "expires": cookie.expires,
        "secure": cookie.secure,
        "httpOnly": cookie.has_nonstandard_attr("HttpOnly"),
        "version": cookie.version,
    }


def _cookie_from_dict(entry: Dict[str, Any]):
    rest: Dict[str, Optional[str]] = {}
    if entry.get("httpOnly"):
        rest["HttpOnly"] = None
    return create_cookie(
        name=entry["name"],
        value=entry.get("value", ""),
        domain=entry.get("domain", ""),
        path=entry.get("path", "/"),
        expires=entry.get("expires"),
        secure=bool(entry.get("secure", False)),
        version=entry.get("version", 0) or 0,
        rest=rest,
    )

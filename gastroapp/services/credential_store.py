from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from http.cookiejar import Cookie, CookieJar, LWPCookieJar
from pathlib import Path
from typing import Optional, Protocol

from requests.cookies import RequestsCookieJar, create_cookie

from gastroapp.config import settings

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    def get(self, name: str) -> Optional[str]: ...

    def set(self, name: str, value: str, expires: Optional[datetime] = None) -> None: ...

    def clear(self, name: str) -> None: ...


def _to_epoch(expires: Optional[datetime]) -> Optional[int]:
    if expires is None:
        return None
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    return int(expires.timestamp())


class MemoryCredentialStore:
    """Dict-backed store. Entries past their expiry read as absent."""

    def __init__(self) -> None:
        self._items: dict[str, tuple[str, Optional[int]]] = {}

    def get(self, name: str) -> Optional[str]:
        item = self._items.get(name)
        if item is None:
            return None
        value, expires = item
        if expires is not None and expires <= time.time():
            self._items.pop(name, None)
            return None
        return value

    def set(self, name: str, value: str, expires: Optional[datetime] = None) -> None:
        self._items[name] = (value, _to_epoch(expires))

    def clear(self, name: str) -> None:
        self._items.pop(name, None)


class CookieCredentialStore:
    """Keeps credentials as cookies, so expiry is the cookie jar's own."""

    def __init__(self, jar: Optional[CookieJar] = None, domain: str = "") -> None:
        self.jar = jar if jar is not None else RequestsCookieJar()
        self.domain = domain

    def _find(self, name: str) -> Optional[Cookie]:
        for cookie in self.jar:
            if cookie.name == name and cookie.domain == self.domain:
                return cookie
        return None

    def get(self, name: str) -> Optional[str]:
        self.jar.clear_expired_cookies()
        cookie = self._find(name)
        return cookie.value if cookie is not None else None

    def set(self, name: str, value: str, expires: Optional[datetime] = None) -> None:
        self._remove(name)
        self.jar.set_cookie(
            create_cookie(name, value, domain=self.domain, expires=_to_epoch(expires))
        )

    def clear(self, name: str) -> None:
        self._remove(name)

    def _remove(self, name: str) -> None:
        if self._find(name) is not None:
            self.jar.clear(self.domain, "/", name)


class FileCredentialStore(CookieCredentialStore):
    """Cookie store persisted to disk in LWP format between runs."""

    def __init__(self, path: Path | str, domain: str = "") -> None:
        self.path = Path(path)
        super().__init__(jar=LWPCookieJar(str(self.path)), domain=domain)
        if self.path.exists():
            # Expired entries are dropped on load.
            self.jar.load(ignore_discard=True)
            logger.info("Loaded credentials from %s", self.path)

    def set(self, name: str, value: str, expires: Optional[datetime] = None) -> None:
        super().set(name, value, expires=expires)
        try:
            self._save()
        except OSError:
            self._remove(name)
            raise

    def clear(self, name: str) -> None:
        super().clear(name)
        self._save()

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.jar.save(ignore_discard=True)


def default_credential_store() -> CredentialStore:
    if settings.credentials_file:
        return FileCredentialStore(settings.credentials_file)
    return CookieCredentialStore()

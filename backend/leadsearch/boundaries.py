# backend/leadsearch/boundaries.py
"""
Interfaces for the collaborators the search code consumes but does not own:
label translation (:class:`Localizer`) and permission checks
(:class:`Authorizer`). The concrete classes here are the small in-process
versions used by the app factory, the tools and the tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, Mapping, Optional, Union

DEFAULT_LOCALE = "en_US"


class Localizer(ABC):
    """Translate message keys into user-facing labels."""

    locale: str = DEFAULT_LOCALE

    @abstractmethod
    def trans(self, key: str, locale: Optional[str] = None) -> str:
        """Return the label for ``key`` in ``locale`` (the active locale when omitted)."""


class CatalogLocalizer(Localizer):
    """Localizer backed by ``{locale: {key: label}}`` catalogs.

    Missing labels fall back to the fallback locale and finally to the key itself.
    """

    def __init__(
        self,
        catalogs: Optional[Mapping[str, Mapping[str, str]]] = None,
        locale: str = DEFAULT_LOCALE,
        fallback_locale: str = DEFAULT_LOCALE,
    ):
        self.catalogs: Dict[str, Dict[str, str]] = {
            str(loc): dict(entries) for loc, entries in (catalogs or {}).items()
        }
        self.locale = locale
        self.fallback_locale = fallback_locale

    def add_catalog(self, locale: str, entries: Mapping[str, str]) -> None:
        self.catalogs.setdefault(locale, {}).update(entries)

    def trans(self, key: str, locale: Optional[str] = None) -> str:
        for candidate in (locale or self.locale, self.fallback_locale):
            label = self.catalogs.get(candidate, {}).get(key)
            if label:
                return label
        return key


class Authorizer(ABC):
    """Answer permission questions for the current user."""

    MATCH_ONE = "MATCH_ONE"
    MATCH_ALL = "MATCH_ALL"
    RETURN_ARRAY = "RETURN_ARRAY"

    @abstractmethod
    def is_granted(
        self, permissions: Union[str, Iterable[str]], mode: str = MATCH_ALL
    ) -> Union[bool, Dict[str, bool]]:
        """Check ``permissions``; ``RETURN_ARRAY`` yields a per-permission mapping."""


class StaticAuthorizer(Authorizer):
    """Authorizer granting a fixed set of permissions to a fixed user."""

    def __init__(self, granted: Iterable[str] = (), user_id: Optional[int] = None):
        self.granted = set(granted)
        self.user_id = user_id

    def is_granted(self, permissions, mode=Authorizer.MATCH_ALL):
        if isinstance(permissions, str):
            permissions = [permissions]
        results = {permission: permission in self.granted for permission in permissions}
        if mode == self.RETURN_ARRAY:
            return results
        if mode == self.MATCH_ONE:
            return any(results.values())
        return bool(results) and all(results.values())

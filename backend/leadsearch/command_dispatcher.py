# backend/leadsearch/command_dispatcher.py
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Mapping, Optional

from .boundaries import DEFAULT_LOCALE, Localizer
from .search_context import QueryContext

log = logging.getLogger(__name__)

TRANSLATION_PREFIX = "lead.searchcommand."

Handler = Callable[[QueryContext], None]


def translation_key(command: str) -> str:
    return f"{TRANSLATION_PREFIX}{command}"


def normalize_token(token: Optional[str]) -> str:
    if not isinstance(token, str):
        return ""
    return token.strip().casefold()


class CommandDispatcher:
    """
    Resolve search command tokens to handlers.

    Each command is reachable under two labels: its label in the active
    locale and its canonical ``en_US`` label. Lookup tables are built per
    locale on first use. When two commands share a label the one registered
    first wins.
    """

    def __init__(
        self,
        localizer: Localizer,
        handlers: Mapping[str, Handler],
        canonical_locale: str = DEFAULT_LOCALE,
    ):
        self.localizer = localizer
        self.handlers: Dict[str, Handler] = dict(handlers)
        self.canonical_locale = canonical_locale
        self._tables: Dict[str, Dict[str, str]] = {}

    def _table(self) -> Dict[str, str]:
        locale = getattr(self.localizer, "locale", None) or self.canonical_locale
        table = self._tables.get(locale)
        if table is None:
            table = {}
            for command in self.handlers:
                key = translation_key(command)
                for label in (self.localizer.trans(key), self.localizer.trans(key, self.canonical_locale)):
                    normalized = normalize_token(label)
                    if normalized:
                        table.setdefault(normalized, command)
            self._tables[locale] = table
        return table

    def resolve(self, token: Optional[str]) -> Optional[str]:
        """Return the canonical command name for ``token`` or None."""
        return self._table().get(normalize_token(token))

    def dispatch(self, context: QueryContext) -> bool:
        """Run the handler for ``context.command``; returns False for unknown tokens."""
        command = self.resolve(context.command)
        if command is None:
            log.debug("No search command handler for %r", context.command)
            return False
        self.handlers[command](context)
        return True

    def labels(self) -> List[str]:
        """Labels for every command in the active locale, in registration order."""
        return [self.localizer.trans(translation_key(command)) for command in self.handlers]

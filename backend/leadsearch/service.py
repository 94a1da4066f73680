# backend/leadsearch/service.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .boundaries import Authorizer, CatalogLocalizer, Localizer
from .config_loader import get_global_search_limit, get_locale, get_search_command_translations, get_table_prefix
from .email_repository import EmailRepository
from .lead_repository import LeadRepository
from .search_subscriber import DEFAULT_COMMAND_LABELS, SearchSubscriber

log = logging.getLogger(__name__)


def build_localizer(cfg: Optional[Mapping[str, Any]] = None) -> CatalogLocalizer:
    """Localizer seeded with the en_US command labels plus any configured catalogs."""
    localizer = CatalogLocalizer({"en_US": DEFAULT_COMMAND_LABELS}, locale=get_locale(cfg or {}))
    for locale, entries in get_search_command_translations(cfg or {}).items():
        localizer.add_catalog(locale, entries)
    return localizer


class LeadSearch:
    """
    Entry point a host application keeps for the lifetime of the process.

    Repositories are bound to a session, so they are created per request
    through :meth:`repository`; this object only keeps the configuration
    and the collaborators.
    """

    def __init__(
        self,
        localizer: Localizer,
        authorizer: Optional[Authorizer] = None,
        *,
        table_prefix: str = "",
        global_search_limit: int = 5,
    ):
        self.localizer = localizer
        self.authorizer = authorizer
        self.table_prefix = table_prefix
        self.global_search_limit = global_search_limit

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any], authorizer: Optional[Authorizer] = None) -> "LeadSearch":
        return cls(
            build_localizer(cfg),
            authorizer,
            table_prefix=get_table_prefix(cfg),
            global_search_limit=get_global_search_limit(cfg),
        )

    def _wire(self, session: Any, current_user_id: Optional[int] = None) -> Tuple[LeadRepository, SearchSubscriber]:
        if current_user_id is None:
            current_user_id = getattr(self.authorizer, "user_id", None)
        leads = LeadRepository(session, table_prefix=self.table_prefix, current_user_id=current_user_id)
        subscriber = self.subscriber(leads, session)
        leads.add_search_subscriber(subscriber)
        return leads, subscriber

    def repository(self, session: Any, current_user_id: Optional[int] = None) -> LeadRepository:
        return self._wire(session, current_user_id)[0]

    def subscriber(self, leads: LeadRepository, session: Any) -> SearchSubscriber:
        return SearchSubscriber(
            leads,
            EmailRepository(session, table_prefix=self.table_prefix),
            self.localizer,
            self.authorizer,
            global_search_limit=self.global_search_limit,
        )

    def search(
        self, session: Any, search_string: str, *, limit: Optional[int] = None, offset: int = 0
    ) -> Dict[str, Any]:
        return self.repository(session).get_entities(search_string, limit=limit, offset=offset, with_total_count=True)

    def global_search(self, session: Any, search_string: str) -> Optional[Dict[str, Any]]:
        return self._wire(session)[1].on_global_search(search_string)

    def command_list(self, session: Any) -> Optional[Dict[str, List[str]]]:
        return self._wire(session)[1].on_build_command_list()

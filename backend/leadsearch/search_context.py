# backend/leadsearch/search_context.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence

from .query_builder import Expression, SqlQueryBuilder

log = logging.getLogger(__name__)

LEAD_ALIAS = "l"

_ALIAS_REFERENCE = re.compile(r"\b([A-Za-z_][A-Za-z0-9_]*)\.[A-Za-z_]")


@dataclass(frozen=True)
class JoinSpecification:
    """One table join: ``<table> <alias> ON <condition>``, attached to ``from_alias``."""

    from_alias: str
    table: str
    alias: str
    condition: str

    def referenced_aliases(self) -> set[str]:
        return set(_ALIAS_REFERENCE.findall(self.condition or ""))


@dataclass(frozen=True)
class FilterSpecification:
    """Primary column matched against the search argument plus fixed equality filters."""

    column: Optional[str]
    params: Mapping[str, Any] = field(default_factory=dict)


def validate_join_chain(base_alias: str, joins: Sequence[JoinSpecification]) -> bool:
    """Return True when every join only refers to aliases that are already bound."""
    bound = {base_alias}
    for join in joins:
        if join.from_alias not in bound:
            log.debug("Join %r hangs off unbound alias %r", join.alias, join.from_alias)
            return False
        unknown = join.referenced_aliases() - bound - {join.alias}
        if unknown:
            log.debug("Join %r condition %r references unbound aliases %s", join.alias, join.condition, sorted(unknown))
            return False
        bound.add(join.alias)
    return True


class QueryContext:
    """
    State shared between the lead repository and a search command handler.

    The handler reads ``string``/``command``/``alias`` and mutates ``query``.
    It reports back through three flags:

    - ``strict``: the argument must match exactly (no LIKE wrapping)
    - ``return_parameters``: the caller binds ``string`` under ``alias``
    - ``search_status``: the command was handled, stop dispatching
    """

    def __init__(
        self,
        string: str,
        command: str,
        alias: str,
        query: SqlQueryBuilder,
        *,
        negate: bool = False,
        strict: bool = False,
        base_alias: str = LEAD_ALIAS,
    ):
        self.string = string if string is not None else ""
        self.command = command
        self.alias = alias
        self.query = query
        self.negate = negate
        self.base_alias = base_alias
        self.strict = strict
        self.return_parameters = False
        self.search_status = False
        self.sub_query: Optional[Expression] = None

    def set_sub_query(self, sub_query: Expression) -> None:
        self.sub_query = sub_query
        self.search_status = True

    def is_search_done(self) -> bool:
        return self.search_status

    def flags(self) -> Dict[str, bool]:
        return {
            "strict": self.strict,
            "return_parameters": self.return_parameters,
            "search_status": self.search_status,
        }

    def __repr__(self) -> str:
        return (
            f"QueryContext(command={self.command!r}, string={self.string!r}, "
            f"alias={self.alias!r}, flags={self.flags()!r})"
        )

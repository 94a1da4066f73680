# backend/leadsearch/lead_repository.py
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from .helpers import like_pattern
from .query_builder import Expression, SqlQueryBuilder
from .search_context import LEAD_ALIAS, JoinSpecification, QueryContext
from .search_expression import CommandUnit, SearchQuery

log = logging.getLogger(__name__)

FREE_TEXT_COLUMNS = ("firstname", "lastname", "email", "company")

BUILTIN_COMMANDS = [
    "is:anonymous",
    "is:unowned",
    "is:mine",
    "name",
    "email",
    "company",
]


class LeadRepository:
    """
    Builds and runs lead searches.

    A search string is split into ``command:argument`` units and free text
    (see :class:`SearchQuery`). Built-in commands filter ``leads`` columns
    directly; other commands are offered to the registered search
    subscribers through a :class:`QueryContext`. Commands nobody handles
    are searched as free text.
    """

    def __init__(
        self,
        session: Any,
        table_prefix: str = "",
        current_user_id: Optional[int] = None,
        search_subscribers: Iterable[Any] = (),
    ):
        self.session = session
        self.table_prefix = table_prefix
        self.current_user_id = current_user_id
        self.search_subscribers: List[Any] = list(search_subscribers)
        self._param_counter = 0

    def add_search_subscriber(self, subscriber: Any) -> None:
        self.search_subscribers.append(subscriber)

    def table(self, name: str) -> str:
        return f"{self.table_prefix}{name}"

    def create_query_builder(self) -> SqlQueryBuilder:
        q = SqlQueryBuilder()
        q.select(f"{LEAD_ALIAS}.*").from_(self.table("leads"), LEAD_ALIAS)
        return q

    def _new_param_alias(self) -> str:
        name = f"lsq_param_{self._param_counter}"
        self._param_counter += 1
        return name

    # ---------------- relationship joins ----------------
    def apply_search_query_relationship(
        self,
        q: SqlQueryBuilder,
        tables: Sequence[JoinSpecification],
        inner_join: bool,
        where_expression: Optional[Expression] = None,
        having: Optional[Expression] = None,
    ) -> None:
        """
        Join ``tables`` in order and AND ``where_expression`` into the query.

        Leads are grouped by id so a lead matching several joined rows comes
        back once. When the first table's alias is already joined the joins
        are not repeated but the predicate is still added.
        """
        if not tables:
            return
        primary = tables[0]
        if q.has_join_alias(primary.alias):
            log.debug("Alias %r already joined; reusing it", primary.alias)
        else:
            join = q.inner_join if inner_join else q.left_join
            for t in tables:
                join(t.from_alias, self.table(t.table), t.alias, t.condition)
        if where_expression is not None:
            q.and_where(where_expression)
        if having is not None:
            q.and_having(having)
        q.add_group_by(f"{LEAD_ALIAS}.id")

    # ---------------- search string -> query ----------------
    def get_search_commands(self) -> List[str]:
        return list(BUILTIN_COMMANDS)

    def parse_search_string(self, search_string: Optional[str]) -> SearchQuery:
        return SearchQuery(search_string)

    def build_search_query(self, search_string: Optional[str], q: Optional[SqlQueryBuilder] = None) -> SqlQueryBuilder:
        if q is None:
            q = self.create_query_builder()
        parsed = self.parse_search_string(search_string)
        for unit in parsed.commands:
            self._add_command(q, unit)
        for term in parsed.terms:
            self._add_free_text(q, term.string, term.negated)
        return q

    def _add_command(self, q: SqlQueryBuilder, unit: CommandUnit) -> None:
        alias = self._new_param_alias()
        if self._add_builtin_command(q, unit, alias):
            return

        context = QueryContext(unit.string, unit.command, alias, q, negate=unit.negated)
        for subscriber in self.search_subscribers:
            subscriber.on_build_search_commands(context)
            if context.is_search_done():
                break

        if not context.is_search_done():
            log.debug("Command %r not handled; searching %r as free text", unit.command, unit.raw)
            self._add_free_text(q, unit.raw.lstrip("!"), unit.negated)
            return

        if context.return_parameters:
            q.set_parameter(alias, context.string if context.strict else like_pattern(context.string))
        if context.sub_query is not None:
            sub_query = q.expr().not_(context.sub_query) if unit.negated else context.sub_query
            q.and_where(sub_query)

    def _add_builtin_command(self, q: SqlQueryBuilder, unit: CommandUnit, alias: str) -> bool:
        e = q.expr()
        command = (unit.command or "").casefold()
        argument = unit.string.strip().casefold()
        expr: Optional[Expression] = None

        if command == "is":
            if argument == "anonymous":
                expr = e.is_null(f"{LEAD_ALIAS}.date_identified")
            elif argument == "unowned":
                expr = e.is_null(f"{LEAD_ALIAS}.owner_id")
            elif argument == "mine":
                if self.current_user_id is None:
                    expr = "1 = 0"
                else:
                    q.set_parameter(alias, int(self.current_user_id))
                    expr = e.eq(f"{LEAD_ALIAS}.owner_id", f":{alias}")
        elif command == "name":
            q.set_parameter(alias, like_pattern(unit.string))
            expr = e.or_x(
                e.like(f"{LEAD_ALIAS}.firstname", f":{alias}"),
                e.like(f"{LEAD_ALIAS}.lastname", f":{alias}"),
            )
        elif command in ("email", "company"):
            q.set_parameter(alias, like_pattern(unit.string))
            expr = e.like(f"{LEAD_ALIAS}.{command}", f":{alias}")

        if expr is None:
            return False
        q.and_where(e.not_(expr) if unit.negated else expr)
        return True

    def _add_free_text(self, q: SqlQueryBuilder, string: str, negated: bool = False) -> None:
        if not string or not string.strip():
            return
        alias = self._new_param_alias()
        q.set_parameter(alias, like_pattern(string.strip()))
        e = q.expr()
        expr = e.or_x(*(e.like(f"{LEAD_ALIAS}.{column}", f":{alias}") for column in FREE_TEXT_COLUMNS))
        q.and_where(e.not_(expr) if negated else expr)

    # ---------------- execution ----------------
    def get_entities(
        self,
        search_string: Optional[str] = "",
        *,
        limit: Optional[int] = None,
        offset: int = 0,
        with_total_count: bool = False,
    ) -> Dict[str, Any]:
        """Run a search; returns ``{"results": [row dicts], "count": int | None}``."""
        q = self.build_search_query(search_string)
        q.order_by(f"{LEAD_ALIAS}.id", "ASC")
        if limit:
            q.set_max_results(limit).set_first_result(offset or None)

        count: Optional[int] = None
        try:
            if with_total_count:
                count_q = q.clone()
                count_q.select(f"COUNT(DISTINCT {LEAD_ALIAS}.id)")
                count_q.reset_query_part("group_by").reset_query_part("order_by").reset_query_part("limit")
                count = int(count_q.execute(self.session).scalar() or 0)
            rows = [dict(r) for r in q.execute(self.session).mappings().all()]
        except SQLAlchemyError:
            log.exception("Lead search failed for %r", search_string)
            raise
        return {"results": rows, "count": count}

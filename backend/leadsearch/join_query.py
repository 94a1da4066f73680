# backend/leadsearch/join_query.py
from __future__ import annotations

import logging
from typing import Any, Sequence

from .query_builder import CompositeExpression
from .search_context import FilterSpecification, JoinSpecification, QueryContext, validate_join_chain

log = logging.getLogger(__name__)


def primary_conjunction(context: QueryContext, column: str) -> CompositeExpression:
    """``<column> = :<alias>``; the caller binds the raw argument under ``alias`` later."""
    return context.query.expr().and_x(f"{column} = :{context.alias}")


def apply_join_predicate(
    context: QueryContext,
    joins: Sequence[JoinSpecification],
    predicate: CompositeExpression,
    lead_repository: Any,
) -> None:
    """Attach ``joins`` plus ``predicate`` to the query and mark the command as handled."""
    lead_repository.apply_search_query_relationship(context.query, joins, True, predicate)
    context.return_parameters = True  # bind the search string as a parameter
    context.strict = True  # exact match, no LIKE
    context.search_status = True  # stop dispatching


def build_join_query(
    context: QueryContext,
    joins: Sequence[JoinSpecification],
    filter_spec: FilterSpecification,
    lead_repository: Any,
) -> None:
    """
    Join the activity tables in ``joins`` and filter them by ``filter_spec``.

    The primary column is compared with the parameter named after the
    context alias; every fixed filter gets its own generated parameter.
    Empty joins, a missing column, or a join chain that references
    unbound aliases leave the context untouched.
    """
    if not filter_spec.column or not joins:
        log.debug("Skipping %r: join query needs a column and at least one join", context.command)
        return
    if not validate_join_chain(context.base_alias, joins):
        log.debug("Skipping %r: join chain is not ordered from %r", context.command, context.base_alias)
        return

    q = context.query
    expr = primary_conjunction(context, filter_spec.column)
    for name, value in filter_spec.params.items():
        param = q.create_named_parameter(value)
        expr.add(f"{name} = {param}")

    apply_join_predicate(context, joins, expr, lead_repository)

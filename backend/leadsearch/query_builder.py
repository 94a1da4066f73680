# backend/leadsearch/query_builder.py
"""
Text SQL builder used by the lead search.

The builder accumulates query parts (select, from, joins, where, ...) and
named parameters, then renders a single SQL string that is executed through
SQLAlchemy's ``text()`` with the collected parameters. Expressions are plain
strings; :class:`CompositeExpression` joins them with AND/OR.
"""

from __future__ import annotations

import copy
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy import text

log = logging.getLogger(__name__)

Expression = Union[str, "CompositeExpression"]


class CompositeExpression:
    """A list of predicates joined by the same boolean operator."""

    TYPE_AND = "AND"
    TYPE_OR = "OR"

    def __init__(self, type_: str, parts: Iterable[Expression] = ()):
        self.type = type_
        self.parts: List[Expression] = []
        self.add_multiple(parts)

    def add_multiple(self, parts: Iterable[Expression]) -> "CompositeExpression":
        for part in parts:
            self.add(part)
        return self

    def add(self, part: Optional[Expression]) -> "CompositeExpression":
        if part is None:
            return self
        if isinstance(part, CompositeExpression) and part.count() == 0:
            return self
        if isinstance(part, str) and not part.strip():
            return self
        self.parts.append(part)
        return self

    def count(self) -> int:
        return len(self.parts)

    def __str__(self) -> str:
        if self.count() == 1:
            return str(self.parts[0])
        return "(" + f") {self.type} (".join(str(part) for part in self.parts) + ")"

    def __repr__(self) -> str:
        return f"CompositeExpression(type={self.type!r}, parts={self.parts!r})"


class ExpressionBuilder:
    """Helpers that render SQL predicate fragments."""

    EQ = "="
    NEQ = "<>"

    def and_x(self, *parts: Expression) -> CompositeExpression:
        return CompositeExpression(CompositeExpression.TYPE_AND, parts)

    def or_x(self, *parts: Expression) -> CompositeExpression:
        return CompositeExpression(CompositeExpression.TYPE_OR, parts)

    def comparison(self, x: Any, operator: str, y: Any) -> str:
        return f"{x} {operator} {y}"

    def eq(self, x: Any, y: Any) -> str:
        return self.comparison(x, self.EQ, y)

    def neq(self, x: Any, y: Any) -> str:
        return self.comparison(x, self.NEQ, y)

    def is_null(self, x: Any) -> str:
        return f"{x} IS NULL"

    def like(self, x: Any, y: Any) -> str:
        return self.comparison(x, "LIKE", y)

    def in_(self, x: Any, y: Union[str, Iterable[Any]]) -> str:
        """``x IN (...)``; ``y`` is either a rendered list/sub-select or an iterable of raw SQL values."""
        return self.comparison(x, "IN", f"({self._join_values(y)})")

    def not_(self, x: Expression) -> str:
        return f"NOT ({x})"

    def exists(self, sub_sql: str) -> str:
        return f"EXISTS ({sub_sql})"

    def not_exists(self, sub_sql: str) -> str:
        return f"NOT EXISTS ({sub_sql})"

    @staticmethod
    def literal(value: Any) -> str:
        """Render a Python value as an inline SQL literal."""
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (int, float)):
            return str(value)
        escaped = str(value).replace("'", "''")
        return f"'{escaped}'"

    @staticmethod
    def _join_values(values: Union[str, Iterable[Any]]) -> str:
        if isinstance(values, str):
            return values
        return ", ".join(str(v) for v in values)


_EXPR = ExpressionBuilder()


class SqlQueryBuilder:
    """Accumulates the parts of a SELECT statement plus its named parameters."""

    JOIN_INNER = "INNER"
    JOIN_LEFT = "LEFT"

    def __init__(self) -> None:
        self._select: List[str] = []
        self._from: List[Dict[str, Optional[str]]] = []
        self._joins: List[Dict[str, Optional[str]]] = []
        self._where: Optional[Expression] = None
        self._group_by: List[str] = []
        self._having: Optional[Expression] = None
        self._order_by: List[str] = []
        self._first_result: Optional[int] = None
        self._max_results: Optional[int] = None
        self._params: Dict[str, Any] = {}
        self._bound_counter = 0

    # ---------------- expressions / parameters ----------------
    def expr(self) -> ExpressionBuilder:
        return _EXPR

    def create_named_parameter(self, value: Any, placeholder: Optional[str] = None) -> str:
        """Bind ``value`` and return its ``:placeholder`` for use in SQL text."""
        if placeholder is None:
            self._bound_counter += 1
            placeholder = f":dcValue{self._bound_counter}"
        self.set_parameter(placeholder.lstrip(":"), value)
        return placeholder

    def set_parameter(self, key: str, value: Any) -> "SqlQueryBuilder":
        self._params[key] = value
        return self

    def get_parameters(self) -> Dict[str, Any]:
        return dict(self._params)

    # ---------------- select / from ----------------
    def select(self, *columns: str) -> "SqlQueryBuilder":
        self._select = [c for c in columns if c]
        return self

    def from_(self, table: str, alias: Optional[str] = None) -> "SqlQueryBuilder":
        self._from.append({"table": table, "alias": alias})
        return self

    # ---------------- joins ----------------
    def inner_join(self, from_alias: str, table: str, alias: str, condition: Optional[str] = None) -> "SqlQueryBuilder":
        return self._add_join(self.JOIN_INNER, from_alias, table, alias, condition)

    def left_join(self, from_alias: str, table: str, alias: str, condition: Optional[str] = None) -> "SqlQueryBuilder":
        return self._add_join(self.JOIN_LEFT, from_alias, table, alias, condition)

    def _add_join(
        self, join_type: str, from_alias: str, table: str, alias: str, condition: Optional[str]
    ) -> "SqlQueryBuilder":
        self._joins.append(
            {
                "type": join_type,
                "from_alias": from_alias,
                "table": table,
                "alias": alias,
                "condition": condition,
            }
        )
        return self

    def get_joins(self) -> List[Dict[str, Optional[str]]]:
        return [dict(j) for j in self._joins]

    def has_join_alias(self, alias: str) -> bool:
        return any(j["alias"] == alias for j in self._joins)

    # ---------------- where / group / having / order ----------------
    def where(self, *predicates: Expression) -> "SqlQueryBuilder":
        if len(predicates) == 1 and isinstance(predicates[0], CompositeExpression):
            self._where = predicates[0]
        elif predicates:
            self._where = _EXPR.and_x(*predicates)
        else:
            self._where = None
        return self

    def and_where(self, *predicates: Expression) -> "SqlQueryBuilder":
        self._where = self._append_composite(self._where, CompositeExpression.TYPE_AND, predicates)
        return self

    def add_group_by(self, *columns: str) -> "SqlQueryBuilder":
        for column in columns:
            if column and column not in self._group_by:
                self._group_by.append(column)
        return self

    def and_having(self, *predicates: Expression) -> "SqlQueryBuilder":
        self._having = self._append_composite(self._having, CompositeExpression.TYPE_AND, predicates)
        return self

    def order_by(self, column: str, direction: str = "ASC") -> "SqlQueryBuilder":
        self._order_by = [f"{column} {direction}"]
        return self

    def set_first_result(self, first_result: Optional[int]) -> "SqlQueryBuilder":
        self._first_result = first_result
        return self

    def set_max_results(self, max_results: Optional[int]) -> "SqlQueryBuilder":
        self._max_results = max_results
        return self

    @staticmethod
    def _append_composite(
        current: Optional[Expression], type_: str, predicates: Iterable[Expression]
    ) -> Optional[Expression]:
        if isinstance(current, CompositeExpression) and current.type == type_:
            return current.add_multiple(predicates)
        parts: List[Expression] = [] if current is None else [current]
        parts.extend(predicates)
        composite = CompositeExpression(type_, parts)
        return composite if composite.count() else None

    def reset_query_part(self, name: str) -> "SqlQueryBuilder":
        if name == "group_by":
            self._group_by = []
        elif name == "having":
            self._having = None
        elif name == "order_by":
            self._order_by = []
        elif name == "limit":
            self._first_result = None
            self._max_results = None
        else:
            raise ValueError(f"Unknown query part: {name!r}")
        return self

    # ---------------- rendering / execution ----------------
    def get_sql(self) -> str:
        if not self._from:
            raise ValueError("A FROM table is required to render the query")
        columns = ", ".join(self._select) if self._select else "*"
        sql = "SELECT " + columns
        from_parts = []
        for entry in self._from:
            alias = entry["alias"]
            from_parts.append(f"{entry['table']} {alias}" if alias else str(entry["table"]))
        sql += " FROM " + ", ".join(from_parts)
        for join in self._joins:
            sql += f" {join['type']} JOIN {join['table']} {join['alias']}"
            if join["condition"]:
                sql += f" ON {join['condition']}"
        if self._where is not None and str(self._where):
            sql += f" WHERE {self._where}"
        if self._group_by:
            sql += " GROUP BY " + ", ".join(self._group_by)
        if self._having is not None and str(self._having):
            sql += f" HAVING {self._having}"
        if self._order_by:
            sql += " ORDER BY " + ", ".join(self._order_by)
        if self._max_results is not None:
            sql += f" LIMIT {int(self._max_results)}"
            # OFFSET is only rendered together with LIMIT
            if self._first_result:
                sql += f" OFFSET {int(self._first_result)}"
        return sql

    def get_inlined_sql(self) -> str:
        """SQL with every ``:name`` placeholder replaced by its literal value."""
        sql = self.get_sql()
        for key in sorted(self._params, key=len, reverse=True):
            literal = _EXPR.literal(self._params[key])
            sql = re.sub(rf":{re.escape(key)}\b", lambda _m: literal, sql)
        return sql

    def execute(self, session: Any):
        sql = self.get_sql()
        log.debug("Executing search SQL: %s params=%r", sql, self._params)
        return session.execute(text(sql), self.get_parameters())

    def clone(self) -> "SqlQueryBuilder":
        return copy.deepcopy(self)

    def __str__(self) -> str:
        return self.get_sql()

    def __repr__(self) -> str:
        try:
            return f"SqlQueryBuilder({self.get_sql()!r}, params={self._params!r})"
        except ValueError:
            return "SqlQueryBuilder(<incomplete>)"

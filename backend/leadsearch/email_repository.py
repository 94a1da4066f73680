# backend/leadsearch/email_repository.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .errors import LookupFailure
from .query_builder import SqlQueryBuilder
from .schema import MessageQueueStatus

log = logging.getLogger(__name__)

# primary keys are signed 64-bit integers
MAX_ID = 2**63 - 1


@dataclass(frozen=True)
class Email:
    id: int
    name: str = ""
    variant_parent_id: Optional[int] = None
    translation_parent_id: Optional[int] = None

    @property
    def variant_root_id(self) -> int:
        return self.variant_parent_id or self.id

    @property
    def translation_root_id(self) -> int:
        return self.translation_parent_id or self.id


class EmailRepository:
    """Reads on the ``emails`` table and the pending-recipient query for an email."""

    def __init__(self, session: Any, table_prefix: str = ""):
        self.session = session
        self.table_prefix = table_prefix

    def _table(self, name: str) -> str:
        return f"{self.table_prefix}{name}"

    def get_entity(self, email_id: Any) -> Optional[Email]:
        """Return the email with primary key ``email_id`` or None."""
        try:
            pk = int(email_id)
        except (TypeError, ValueError):
            return None
        if not -MAX_ID - 1 <= pk <= MAX_ID:
            log.debug("Email id %s is out of range", pk)
            return None
        sql = text(
            f"""
            SELECT id, name, variant_parent_id, translation_parent_id
            FROM {self._table('emails')}
            WHERE id = :id
            """
        )
        try:
            row = self.session.execute(sql, {"id": pk}).mappings().first()
        except SQLAlchemyError as e:
            raise LookupFailure("email", pk) from e
        if row is None:
            return None
        return Email(
            id=int(row["id"]),
            name=row["name"] or "",
            variant_parent_id=row["variant_parent_id"],
            translation_parent_id=row["translation_parent_id"],
        )

    def get_related_entity_ids(self, email: Email) -> List[int]:
        """
        Ids of the email's A/B variants and translations, excluding the email itself.

        Both families are taken from their root: the root itself plus every
        email whose parent is the root.
        """
        sql = text(
            f"""
            SELECT id
            FROM {self._table('emails')}
            WHERE id = :variant_root
               OR variant_parent_id = :variant_root
               OR id = :translation_root
               OR translation_parent_id = :translation_root
            """
        )
        params = {"variant_root": email.variant_root_id, "translation_root": email.translation_root_id}
        try:
            rows = self.session.execute(sql, params).scalars().all()
        except SQLAlchemyError as e:
            raise LookupFailure("email", email.id) from e
        return sorted({int(r) for r in rows if r is not None and int(r) != email.id})

    def get_segment_ids(self, email_id: int) -> List[int]:
        sql = text(f"SELECT el.leadlist_id FROM {self._table('email_list_xref')} el WHERE el.email_id = :email_id")
        try:
            rows = self.session.execute(sql, {"email_id": int(email_id)}).scalars().all()
        except SQLAlchemyError as e:
            raise LookupFailure("email", email_id) from e
        return [int(r) for r in rows if r is not None]

    def get_email_pending_query(
        self,
        email_id: Any,
        variant_ids: Optional[Iterable[Any]] = None,
        list_ids: Optional[Any] = None,
        limit: Optional[int] = None,
    ) -> Optional[SqlQueryBuilder]:
        """
        Build the query for leads that are still due to receive ``email_id``.

        A lead is pending when it belongs to one of the email's segments
        (and was not manually removed), is not do-not-contact for email,
        has no stat row for the email family, and has no unsent email in
        the message queue for the family. Returns None when the email is
        not attached to any segment.
        """
        email_id = int(email_id)

        dnc = SqlQueryBuilder()
        e = dnc.expr()
        dnc.select("null").from_(self._table("lead_donotcontact"), "dnc").where(
            e.eq("dnc.lead_id", "l.id"), e.eq("dnc.channel", e.literal("email"))
        )

        mq = SqlQueryBuilder()
        mq.select("null").from_(self._table("message_queue"), "mq").where(
            e.eq("mq.lead_id", "l.id"),
            e.neq("mq.status", e.literal(MessageQueueStatus.SENT)),
            e.eq("mq.channel", e.literal("email")),
        )

        stat = SqlQueryBuilder()
        stat.select("null").from_(self._table("email_stats"), "stat").where(e.eq("stat.lead_id", "l.id"))

        family = [int(v) for v in (variant_ids or [])]
        if family:
            if email_id not in family:
                family.append(email_id)
            stat.and_where(e.in_("stat.email_id", family))
            mq.and_where(e.in_("mq.channel_id", family))
        else:
            stat.and_where(e.eq("stat.email_id", email_id))
            mq.and_where(e.eq("mq.channel_id", email_id))

        if list_ids is None:
            list_ids = self.get_segment_ids(email_id)
            if not list_ids:
                log.debug("Email %s is not attached to any segment; no pending query", email_id)
                return None
        elif isinstance(list_ids, (int, str)):
            list_ids = [list_ids]
        list_ids = [int(v) for v in list_ids]
        if not list_ids:
            return None

        segment = SqlQueryBuilder()
        segment.select("null").from_(self._table("lead_lists_leads"), "ll").where(
            e.in_("ll.leadlist_id", list_ids),
            e.eq("ll.lead_id", "l.id"),
            e.eq("ll.manually_removed", 0),
        )

        q = SqlQueryBuilder()
        q.select("l.*").from_(self._table("leads"), "l").and_where(
            e.exists(segment.get_sql()),
            e.not_exists(dnc.get_sql()),
            e.not_exists(stat.get_sql()),
            e.not_exists(mq.get_sql()),
        )
        if limit:
            q.set_first_result(0).set_max_results(limit)
        return q

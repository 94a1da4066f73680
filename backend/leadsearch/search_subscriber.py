# backend/leadsearch/search_subscriber.py
from __future__ import annotations

import logging
from functools import partial
from typing import Any, Dict, List, Optional, Tuple

from .boundaries import Authorizer, Localizer
from .command_dispatcher import CommandDispatcher
from .helpers import leading_int
from .join_query import apply_join_predicate, build_join_query, primary_conjunction
from .schema import MessageQueueStatus
from .search_context import LEAD_ALIAS, FilterSpecification, JoinSpecification, QueryContext

log = logging.getLogger(__name__)

VIEW_PERMISSIONS = ["lead:leads:viewown", "lead:leads:viewother"]
COMMAND_LIST_GROUP = "lead.leads"

Joins = Tuple[JoinSpecification, ...]


def _lead_join(table: str, alias: str) -> JoinSpecification:
    return JoinSpecification(LEAD_ALIAS, table, alias, f"{LEAD_ALIAS}.id = {alias}.lead_id")


EMAIL_STATS_JOIN: Joins = (_lead_join("email_stats", "es"),)
MESSAGE_QUEUE_JOIN: Joins = (_lead_join("message_queue", "mq"),)
PAGE_HITS_JOIN: Joins = (_lead_join("page_hits", "ph"),)
EVENT_LOG_JOIN: Joins = (_lead_join("lead_event_log", "lel"),)
SMS_STATS_JOIN: Joins = (_lead_join("sms_message_stats", "ss"),)
PUSH_NOTIFICATION_JOINS: Joins = (
    _lead_join("push_notification_stats", "ns"),
    JoinSpecification("ns", "push_notifications", "pn", "pn.id = ns.notification_id"),
)

# Commands answered by a plain join + equality filters.
JOIN_COMMANDS: Dict[str, Tuple[Joins, FilterSpecification]] = {
    "email_read": (EMAIL_STATS_JOIN, FilterSpecification("es.email_id", {"es.is_read": 1})),
    "email_sent": (EMAIL_STATS_JOIN, FilterSpecification("es.email_id")),
    "page_source": (PAGE_HITS_JOIN, FilterSpecification("ph.source")),
    "page_source_id": (PAGE_HITS_JOIN, FilterSpecification("ph.source_id")),
    "import_id": (EVENT_LOG_JOIN, FilterSpecification("lel.object_id", {"lel.object": "import"})),
    "import_action": (EVENT_LOG_JOIN, FilterSpecification("lel.action")),
    "page_id": (PAGE_HITS_JOIN, FilterSpecification("ph.redirect_id")),
    "sms_sent": (SMS_STATS_JOIN, FilterSpecification("ss.sms_id")),
    "web_sent": (PUSH_NOTIFICATION_JOINS, FilterSpecification("pn.id", {"pn.mobile": 0})),
    "mobile_sent": (PUSH_NOTIFICATION_JOINS, FilterSpecification("pn.id", {"pn.mobile": 1})),
}

EMAIL_PENDING_FALLBACK: Tuple[Joins, FilterSpecification] = (
    MESSAGE_QUEUE_JOIN,
    FilterSpecification("mq.channel_id", {"mq.channel": "email", "mq.status": MessageQueueStatus.PENDING}),
)

SEARCH_COMMANDS: Tuple[str, ...] = (
    "email_read",
    "email_sent",
    "email_queued",
    "email_pending",
    "page_source",
    "page_source_id",
    "import_id",
    "import_action",
    "page_id",
    "sms_sent",
    "web_sent",
    "mobile_sent",
)

# en_US labels; other locales come from config
DEFAULT_COMMAND_LABELS: Dict[str, str] = {f"lead.searchcommand.{c}": c for c in SEARCH_COMMANDS}


class SearchSubscriber:
    """
    Lead search commands backed by activity tables (emails, pages,
    imports, SMS and push notifications).

    ``on_build_search_commands`` is called by the lead repository for each
    ``command:argument`` unit it does not handle itself.
    """

    def __init__(
        self,
        lead_repository: Any,
        email_repository: Any,
        localizer: Localizer,
        authorizer: Optional[Authorizer] = None,
        global_search_limit: int = 5,
    ):
        self.lead_repository = lead_repository
        self.email_repository = email_repository
        self.localizer = localizer
        self.authorizer = authorizer
        self.global_search_limit = global_search_limit

        handlers = {}
        for command in SEARCH_COMMANDS:
            if command == "email_pending":
                handlers[command] = self.build_email_pending_query
            elif command == "email_queued":
                handlers[command] = self.build_email_queued_query
            else:
                handlers[command] = partial(self.build_join_command, command)
        self.dispatcher = CommandDispatcher(localizer, handlers)

    # ---------------- search commands ----------------
    def on_build_search_commands(self, context: QueryContext) -> None:
        self.dispatcher.dispatch(context)

    def build_join_command(self, command: str, context: QueryContext) -> None:
        joins, filter_spec = JOIN_COMMANDS[command]
        build_join_query(context, joins, filter_spec, self.lead_repository)

    def build_email_pending_query(self, context: QueryContext) -> None:
        email_id = leading_int(context.string)
        email = self.email_repository.get_entity(email_id) if email_id is not None else None
        if email is not None:
            variant_ids = self.email_repository.get_related_entity_ids(email)
            nq = self.email_repository.get_email_pending_query(email.id, variant_ids)
            if nq is None:
                return
            nq.select(f"{LEAD_ALIAS}.id")
            context.set_sub_query(context.query.expr().in_(f"{LEAD_ALIAS}.id", nq.get_inlined_sql()))
            return

        joins, filter_spec = EMAIL_PENDING_FALLBACK
        build_join_query(context, joins, filter_spec, self.lead_repository)

    def build_email_queued_query(self, context: QueryContext) -> None:
        q = context.query
        expr = primary_conjunction(context, "mq.channel_id")
        expr.add(f"mq.channel = {q.create_named_parameter('email')}")
        expr.add(
            "mq.status IN ({}, {})".format(
                q.create_named_parameter(MessageQueueStatus.PENDING),
                q.create_named_parameter(MessageQueueStatus.RESCHEDULED),
            )
        )
        apply_join_predicate(context, MESSAGE_QUEUE_JOIN, expr, self.lead_repository)

    # ---------------- command list / global search ----------------
    def get_command_list(self) -> List[str]:
        return list(self.lead_repository.get_search_commands()) + self.dispatcher.labels()

    def on_build_command_list(self) -> Optional[Dict[str, List[str]]]:
        if self.authorizer is None:
            return None
        if not self.authorizer.is_granted(VIEW_PERMISSIONS, Authorizer.MATCH_ONE):
            return None
        return {COMMAND_LIST_GROUP: self.get_command_list()}

    def on_global_search(self, search_string: Optional[str]) -> Optional[Dict[str, Any]]:
        """
        Summary of matching leads for the global search box.

        Anonymous leads are hidden unless the search asks for them; users
        without ``viewother`` only see their own leads.
        """
        if not search_string or self.authorizer is None:
            return None

        force = ""
        if "is:anonymous" not in search_string:
            force = " !is:anonymous"

        permissions = self.authorizer.is_granted(VIEW_PERMISSIONS, Authorizer.RETURN_ARRAY)
        if not (permissions.get("lead:leads:viewown") or permissions.get("lead:leads:viewother")):
            return None
        if not permissions.get("lead:leads:viewother"):
            force += " is:mine"

        found = self.lead_repository.get_entities(
            search_string + force,
            limit=self.global_search_limit,
            with_total_count=True,
        )
        count = found["count"]
        if not count:
            return None
        log.debug("Global search %r matched %d leads", search_string, count)
        return {
            "count": count,
            "results": found["results"],
            "remaining": max(0, count - self.global_search_limit),
        }

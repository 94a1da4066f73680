# backend/leadsearch/schema.py
"""SQLAlchemy Core tables for leads and the activity tables the search commands join."""

from __future__ import annotations

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    SmallInteger,
    String,
    Table,
)


class MessageQueueStatus:
    PENDING = "pending"
    RESCHEDULED = "rescheduled"
    SENT = "sent"
    CANCELLED = "cancelled"


def build_metadata(prefix: str = "") -> MetaData:
    """Return a MetaData holding every table, each name prefixed with ``prefix``."""
    md = MetaData()

    def name(table: str) -> str:
        return f"{prefix}{table}"

    Table(
        name("leads"),
        md,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("firstname", String(191)),
        Column("lastname", String(191)),
        Column("email", String(191), index=True),
        Column("company", String(191)),
        Column("owner_id", Integer, nullable=True, index=True),
        Column("date_identified", DateTime, nullable=True),
    )
    Table(
        name("emails"),
        md,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("name", String(191), nullable=False, default="", server_default=""),
        Column("variant_parent_id", Integer, ForeignKey(f"{name('emails')}.id"), nullable=True),
        Column("translation_parent_id", Integer, ForeignKey(f"{name('emails')}.id"), nullable=True),
    )
    Table(
        name("email_stats"),
        md,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("email_id", Integer, index=True),
        Column("lead_id", Integer, index=True),
        Column("is_read", SmallInteger, nullable=False, default=0, server_default="0"),
        Column("date_sent", DateTime, nullable=True),
    )
    Table(
        name("message_queue"),
        md,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("channel", String(191), nullable=False),
        Column("channel_id", Integer, nullable=False),
        Column("lead_id", Integer, index=True),
        Column("status", String(191), nullable=False, default=MessageQueueStatus.PENDING),
        Column("scheduled_date", DateTime, nullable=True),
    )
    Table(
        name("page_hits"),
        md,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("lead_id", Integer, index=True),
        Column("redirect_id", Integer, nullable=True),
        Column("source", String(191), nullable=True),
        Column("source_id", Integer, nullable=True),
        Column("url", String(2048), nullable=True),
    )
    Table(
        name("lead_event_log"),
        md,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("lead_id", Integer, index=True),
        Column("bundle", String(191), nullable=True),
        Column("object", String(191), nullable=True),
        Column("action", String(191), nullable=True),
        Column("object_id", Integer, nullable=True),
    )
    Table(
        name("sms_message_stats"),
        md,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("sms_id", Integer, index=True),
        Column("lead_id", Integer, index=True),
    )
    Table(
        name("push_notifications"),
        md,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("name", String(191), nullable=False, default="", server_default=""),
        Column("mobile", SmallInteger, nullable=False, default=0, server_default="0"),
    )
    Table(
        name("push_notification_stats"),
        md,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("notification_id", Integer, ForeignKey(f"{name('push_notifications')}.id")),
        Column("lead_id", Integer, index=True),
    )
    Table(
        name("email_list_xref"),
        md,
        Column("email_id", Integer, primary_key=True),
        Column("leadlist_id", Integer, primary_key=True),
    )
    Table(
        name("lead_lists_leads"),
        md,
        Column("leadlist_id", Integer, primary_key=True),
        Column("lead_id", Integer, primary_key=True),
        Column("manually_removed", SmallInteger, nullable=False, default=0, server_default="0"),
    )
    Table(
        name("lead_donotcontact"),
        md,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("lead_id", Integer, index=True),
        Column("channel", String(191), nullable=False),
        Column("reason", Integer, nullable=False, default=0),
    )
    return md


metadata = build_metadata()

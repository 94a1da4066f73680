"""
Shared fixtures: an in-memory SQLite database with the lead and activity
tables, seeded with a handful of leads and their email/page/import/SMS/push
history.
"""
from datetime import datetime

import pytest
from sqlalchemy import create_engine, insert
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from leadsearch.boundaries import CatalogLocalizer, StaticAuthorizer
from leadsearch.email_repository import EmailRepository
from leadsearch.lead_repository import LeadRepository
from leadsearch.schema import MessageQueueStatus, metadata
from leadsearch.search_subscriber import DEFAULT_COMMAND_LABELS, SearchSubscriber
from leadsearch.service import LeadSearch

GERMAN_LABELS = {
    "lead.searchcommand.email_read": "email_gelesen",
    "lead.searchcommand.email_sent": "email_gesendet",
    "lead.searchcommand.email_queued": "email_eingereiht",
    "lead.searchcommand.email_pending": "email_ausstehend",
    "lead.searchcommand.page_source": "seiten_quelle",
    "lead.searchcommand.page_source_id": "seiten_quelle_id",
    "lead.searchcommand.import_id": "import_nummer",
    "lead.searchcommand.import_action": "import_aktion",
    "lead.searchcommand.page_id": "seiten_id",
    "lead.searchcommand.sms_sent": "sms_gesendet",
    "lead.searchcommand.web_sent": "web_gesendet",
    "lead.searchcommand.mobile_sent": "mobil_gesendet",
}

ALL_PERMISSIONS = ["lead:leads:viewown", "lead:leads:viewother"]


@pytest.fixture
def engine():
    """Single shared in-memory SQLite connection with every table created."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def seeded_session(session):
    """
    Leads:
      1 Jane Doe (Acme, owner 1)      read email 5, page hits, web push
      2 John Smith (Globex, owner 2)  queued email 9, SMS 8, do-not-contact
      3 anonymous                     queued email 7 (variant of 5)
      4 Mary Major (Acme, owner 1)    imported, rescheduled emails 9 and 42, mobile push
      5 Pat Pending (Initech)         only in the segment of email 5
    """
    t = metadata.tables
    identified = datetime(2024, 1, 15, 10, 0, 0)
    session.execute(
        insert(t["leads"]),
        [
            {"id": 1, "firstname": "Jane", "lastname": "Doe", "email": "jane@example.com",
             "company": "Acme", "owner_id": 1, "date_identified": identified},
            {"id": 2, "firstname": "John", "lastname": "Smith", "email": "john@example.com",
             "company": "Globex", "owner_id": 2, "date_identified": identified},
            {"id": 3, "firstname": None, "lastname": None, "email": None,
             "company": None, "owner_id": None, "date_identified": None},
            {"id": 4, "firstname": "Mary", "lastname": "Major", "email": "mary@example.com",
             "company": "Acme", "owner_id": 1, "date_identified": identified},
            {"id": 5, "firstname": "Pat", "lastname": "Pending", "email": "pat@example.com",
             "company": "Initech", "owner_id": None, "date_identified": identified},
        ],
    )
    session.execute(
        insert(t["emails"]),
        [
            {"id": 5, "name": "Newsletter", "variant_parent_id": None, "translation_parent_id": None},
            {"id": 7, "name": "Newsletter B", "variant_parent_id": 5, "translation_parent_id": None},
            {"id": 9, "name": "Welcome", "variant_parent_id": None, "translation_parent_id": None},
        ],
    )
    session.execute(insert(t["email_list_xref"]), [{"email_id": 5, "leadlist_id": 1}])
    session.execute(
        insert(t["lead_lists_leads"]),
        [
            {"leadlist_id": 1, "lead_id": 1, "manually_removed": 0},
            {"leadlist_id": 1, "lead_id": 2, "manually_removed": 0},
            {"leadlist_id": 1, "lead_id": 3, "manually_removed": 0},
            {"leadlist_id": 1, "lead_id": 4, "manually_removed": 1},
            {"leadlist_id": 1, "lead_id": 5, "manually_removed": 0},
        ],
    )
    session.execute(insert(t["lead_donotcontact"]), [{"lead_id": 2, "channel": "email", "reason": 1}])
    session.execute(
        insert(t["email_stats"]),
        [
            {"email_id": 5, "lead_id": 1, "is_read": 1},
            {"email_id": 9, "lead_id": 2, "is_read": 0},
        ],
    )
    session.execute(
        insert(t["message_queue"]),
        [
            {"channel": "email", "channel_id": 7, "lead_id": 3, "status": MessageQueueStatus.PENDING},
            {"channel": "email", "channel_id": 9, "lead_id": 2, "status": MessageQueueStatus.PENDING},
            {"channel": "email", "channel_id": 9, "lead_id": 4, "status": MessageQueueStatus.RESCHEDULED},
            {"channel": "email", "channel_id": 42, "lead_id": 1, "status": MessageQueueStatus.PENDING},
            {"channel": "email", "channel_id": 42, "lead_id": 4, "status": MessageQueueStatus.RESCHEDULED},
            {"channel": "email", "channel_id": 9, "lead_id": 5, "status": MessageQueueStatus.SENT},
        ],
    )
    session.execute(
        insert(t["page_hits"]),
        [
            {"lead_id": 1, "redirect_id": 11, "source": "email", "source_id": 5},
            {"lead_id": 1, "redirect_id": 11, "source": "email", "source_id": 5},
            {"lead_id": 2, "redirect_id": 12, "source": "form", "source_id": 3},
        ],
    )
    session.execute(
        insert(t["lead_event_log"]),
        [
            {"lead_id": 4, "bundle": "lead", "object": "import", "action": "inserted", "object_id": 3},
            {"lead_id": 2, "bundle": "form", "object": "form", "action": "inserted", "object_id": 3},
        ],
    )
    session.execute(insert(t["sms_message_stats"]), [{"sms_id": 8, "lead_id": 2}])
    session.execute(
        insert(t["push_notifications"]),
        [
            {"id": 1, "name": "Web promo", "mobile": 0},
            {"id": 2, "name": "App promo", "mobile": 1},
        ],
    )
    session.execute(
        insert(t["push_notification_stats"]),
        [
            {"notification_id": 1, "lead_id": 1},
            {"notification_id": 2, "lead_id": 4},
        ],
    )
    session.commit()
    return session


@pytest.fixture
def localizer():
    return CatalogLocalizer({"en_US": DEFAULT_COMMAND_LABELS, "de_DE": GERMAN_LABELS})


@pytest.fixture
def german_localizer():
    return CatalogLocalizer({"en_US": DEFAULT_COMMAND_LABELS, "de_DE": GERMAN_LABELS}, locale="de_DE")


@pytest.fixture
def authorizer():
    return StaticAuthorizer(ALL_PERMISSIONS, user_id=1)


def make_repository(session, localizer, authorizer=None, current_user_id=None):
    """LeadRepository with one SearchSubscriber attached, the way LeadSearch wires it."""
    leads = LeadRepository(session, current_user_id=current_user_id)
    leads.add_search_subscriber(
        SearchSubscriber(leads, EmailRepository(session), localizer, authorizer, global_search_limit=2)
    )
    return leads


@pytest.fixture
def repository(seeded_session, localizer, authorizer):
    return make_repository(seeded_session, localizer, authorizer, current_user_id=1)


@pytest.fixture
def offline_repository(localizer):
    """Repository without a database; fine for every command except email_pending."""
    return make_repository(None, localizer)


@pytest.fixture
def lead_search(authorizer):
    return LeadSearch.from_config(
        {"locale": "de_DE", "search_command_translations": {"de_DE": GERMAN_LABELS}, "global_search_limit": 2},
        authorizer,
    )


def lead_ids(found):
    return [row["id"] for row in found["results"]]

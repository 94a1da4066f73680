"""Tests for locale-aware command resolution."""
from leadsearch.boundaries import CatalogLocalizer
from leadsearch.command_dispatcher import CommandDispatcher, normalize_token, translation_key
from leadsearch.search_context import QueryContext


def catalogs():
    return {
        "en_US": {translation_key("email_read"): "email_read", translation_key("page_id"): "page_id"},
        "fr_FR": {translation_key("email_read"): "email_lu"},
    }


def recording_handlers(calls):
    return {
        "email_read": lambda context: calls.append(("email_read", context.string)),
        "page_id": lambda context: calls.append(("page_id", context.string)),
    }


def test_normalize_token():
    assert normalize_token("  Email_READ ") == "email_read"
    assert normalize_token(None) == ""


def test_resolves_localized_and_canonical_labels():
    dispatcher = CommandDispatcher(CatalogLocalizer(catalogs(), locale="fr_FR"), recording_handlers([]))
    assert dispatcher.resolve("email_lu") == "email_read"
    assert dispatcher.resolve("EMAIL_READ") == "email_read"
    # no French label: falls back to en_US
    assert dispatcher.resolve("page_id") == "page_id"
    assert dispatcher.resolve("unknown") is None


def test_dispatch_calls_handler():
    calls = []
    dispatcher = CommandDispatcher(CatalogLocalizer(catalogs()), recording_handlers(calls))
    assert dispatcher.dispatch(QueryContext("7", "page_id", "p", None))
    assert not dispatcher.dispatch(QueryContext("7", "nothing", "p", None))
    assert calls == [("page_id", "7")]


def test_tables_follow_locale_changes():
    localizer = CatalogLocalizer(catalogs())
    dispatcher = CommandDispatcher(localizer, recording_handlers([]))
    assert dispatcher.resolve("email_lu") is None
    localizer.locale = "fr_FR"
    assert dispatcher.resolve("email_lu") == "email_read"


def test_first_registered_command_wins_shared_label():
    localizer = CatalogLocalizer(
        {"en_US": {translation_key("email_read"): "read", translation_key("page_id"): "read"}}
    )
    dispatcher = CommandDispatcher(localizer, recording_handlers([]))
    assert dispatcher.resolve("read") == "email_read"


def test_labels_in_registration_order():
    dispatcher = CommandDispatcher(CatalogLocalizer(catalogs(), locale="fr_FR"), recording_handlers([]))
    assert dispatcher.labels() == ["email_lu", "page_id"]

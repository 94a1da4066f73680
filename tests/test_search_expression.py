"""Tests for splitting search strings into commands and free text."""
from leadsearch.helpers import leading_int, like_pattern
from leadsearch.search_expression import CommandUnit, SearchQuery


def test_commands_and_terms():
    q = SearchQuery('email_read:5 acme !is:anonymous "jane doe"')
    assert [(c.command, c.string, c.negated) for c in q.commands] == [
        ("email_read", "5", False),
        ("is", "anonymous", True),
    ]
    assert [t.string for t in q.terms] == ["acme", "jane doe"]
    assert q.text == "acme jane doe"


def test_quoted_command_argument():
    q = SearchQuery('page_source:"spring campaign" x')
    assert q.commands[0].string == "spring campaign"
    assert [t.string for t in q.terms] == ["x"]


def test_empty_argument_is_kept():
    q = SearchQuery("email_read:")
    assert q.commands[0].command == "email_read"
    assert q.commands[0].string == ""


def test_not_a_command():
    assert not CommandUnit.looks_like_command(":5")
    assert [t.string for t in SearchQuery(":5").terms] == [":5"]


def test_negated_term():
    term = SearchQuery("!spam").terms[0]
    assert term.negated
    assert term.string == "spam"


def test_none_search():
    q = SearchQuery(None)
    assert q.commands == [] and q.terms == []


def test_has_command():
    q = SearchQuery("IS:Anonymous email_read:5")
    assert q.has_command("is", "anonymous")
    assert q.has_command("email_read")
    assert not q.has_command("is", "mine")


def test_leading_int():
    assert leading_int("12abc") == 12
    assert leading_int(" -3") == -3
    assert leading_int(7) == 7
    assert leading_int("abc") is None
    assert leading_int("") is None
    assert leading_int(True) is None
    assert leading_int(None) is None


def test_like_pattern():
    assert like_pattern("acme") == "%acme%"

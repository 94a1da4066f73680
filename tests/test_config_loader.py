"""Tests for appconfig.json handling."""
import json

from flask import Flask

from leadsearch import config_loader
from leadsearch.service import build_localizer


def test_missing_file_gives_empty_config(tmp_path):
    assert config_loader.load_app_config(tmp_path / "missing.json") == {}


def test_invalid_json_gives_empty_config(tmp_path):
    path = tmp_path / "appconfig.json"
    path.write_text("{not json", encoding="utf-8")
    assert config_loader.load_app_config(path) == {}


def test_non_object_gives_empty_config(tmp_path):
    path = tmp_path / "appconfig.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert config_loader.load_app_config(path) == {}


def test_load_app_config(tmp_path):
    path = tmp_path / "appconfig.json"
    path.write_text(json.dumps({"locale": "de_DE", "table_prefix": "mt_"}), encoding="utf-8")
    cfg = config_loader.load_app_config(path)
    assert config_loader.get_locale(cfg) == "de_DE"
    assert config_loader.get_table_prefix(cfg) == "mt_"


def test_defaults():
    assert config_loader.get_locale({}) == "en_US"
    assert config_loader.get_table_prefix({}) == ""
    assert config_loader.get_global_search_limit({}) == 5
    assert config_loader.get_search_command_translations({}) == {}


def test_invalid_table_prefix_is_ignored():
    assert config_loader.get_table_prefix({"table_prefix": "x; DROP TABLE leads"}) == ""


def test_global_search_limit_coercion():
    assert config_loader.get_global_search_limit({"global_search_limit": "12"}) == 12
    assert config_loader.get_global_search_limit({"global_search_limit": 0}) == 5
    assert config_loader.get_global_search_limit({"global_search_limit": "many"}) == 5


def test_translations_skip_bad_entries():
    cfg = {
        "search_command_translations": {
            "de_DE": {"lead.searchcommand.email_read": "email_gelesen", "lead.searchcommand.page_id": ""},
            "fr_FR": "nope",
        }
    }
    assert config_loader.get_search_command_translations(cfg) == {
        "de_DE": {"lead.searchcommand.email_read": "email_gelesen"}
    }


def test_build_localizer_keeps_english_fallback():
    localizer = build_localizer(
        {"locale": "de_DE", "search_command_translations": {"de_DE": {"lead.searchcommand.email_read": "email_gelesen"}}}
    )
    assert localizer.trans("lead.searchcommand.email_read") == "email_gelesen"
    assert localizer.trans("lead.searchcommand.page_id") == "page_id"
    assert localizer.trans("lead.searchcommand.email_read", "en_US") == "email_read"


def test_initialize_app_config():
    app = Flask(__name__)
    cfg = config_loader.initialize_app_config(app, {"locale": "fr_FR", "global_search_limit": 3})
    assert cfg == {"locale": "fr_FR", "global_search_limit": 3}
    assert app.config["LOCALE"] == "fr_FR"
    assert app.config["TABLE_PREFIX"] == ""
    assert app.config["GLOBAL_SEARCH_LIMIT"] == 3

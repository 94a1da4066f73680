#!/usr/bin/env python3
# backend/tools/search_explain.py
# Print the SQL a lead search string turns into. Run from the repo root:
#   python backend/tools/search_explain.py "email_sent:3 page_source:newsletter"
# --run also executes it against DATABASE_URL (backend/.env).

from __future__ import annotations
import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))
from backend import bootstrap  # noqa: E402

bootstrap(__file__)

from leadsearch import db  # noqa: E402
from leadsearch.boundaries import StaticAuthorizer  # noqa: E402
from leadsearch.config_loader import load_app_config  # noqa: E402
from leadsearch.logging_setup import start_log  # noqa: E402
from leadsearch.service import LeadSearch  # noqa: E402


def main():
    ap = argparse.ArgumentParser(description="Show the SQL generated for a lead search string")
    ap.add_argument("search", help="Search string, e.g. 'email_read:4 !is:anonymous'")
    ap.add_argument("--locale", help="Override the configured locale")
    ap.add_argument("--user-id", type=int, default=None, help="User id for is:mine")
    ap.add_argument("--run", action="store_true", help="Execute the query and print matching rows")
    ap.add_argument("--limit", type=int, default=20, help="Row limit with --run (default: 20)")
    ap.add_argument("--verbose", action="store_true", help="Debug logging to the console")
    args = ap.parse_args()

    start_log(app_name="search_explain", level="DEBUG" if args.verbose else "WARNING", to_file=False)

    cfg = load_app_config()
    if args.locale:
        cfg["locale"] = args.locale
    lead_search = LeadSearch.from_config(cfg, StaticAuthorizer(user_id=args.user_id))

    if not args.run:
        # email_pending looks the email up, which needs a session; everything else is offline
        with db.session_scope() as session:
            q = lead_search.repository(session).build_search_query(args.search)
        print(q.get_sql())
        for join in q.get_joins():
            print(f"  joined {join['table']} as {join['alias']} on {join['condition']}")
        print(json.dumps(q.get_parameters(), indent=2, default=str))
        return

    with db.session_scope() as session:
        found = lead_search.search(session, args.search, limit=args.limit)
    print(f"{found['count']} matching lead(s)")
    for row in found["results"]:
        print(json.dumps(row, default=str))


if __name__ == "__main__":
    main()

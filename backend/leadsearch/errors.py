# backend/leadsearch/errors.py
from flask import jsonify, request

# Handlers below log through app.logger, which propagates to the root logger
# configured by start_log(...), so these entries land in the same log files.


class SearchError(Exception):
    """Base class for lead search failures that reach the caller."""

    status_code = 500


class LookupFailure(SearchError):
    """A repository read needed by a search command failed."""

    status_code = 503

    def __init__(self, entity: str, identifier, message: str = ""):
        self.entity = entity
        self.identifier = identifier
        super().__init__(message or f"Lookup of {entity} {identifier!r} failed")


def register_error_handlers(app):
    @app.errorhandler(LookupFailure)
    def handle_lookup_failure(e: LookupFailure):
        app.logger.error("Search lookup failed on %s %s", request.method, request.path, exc_info=e)
        return jsonify(ok=False, error=str(e), entity=e.entity), e.status_code

    @app.errorhandler(SearchError)
    def handle_search_error(e: SearchError):
        app.logger.exception("Search error")
        return jsonify(ok=False, error=str(e)), e.status_code

    @app.teardown_request
    def log_teardown(exc):
        if exc is not None:
            app.logger.exception("Teardown exception", exc_info=exc)
        return None

"""
Lead search package.

Importing it has no side effects: no database, network or logging setup.
Build an application with ``leadsearch.main.create_app``.
"""

__all__ = ["create_app"]


def __getattr__(name):
    if name == "create_app":
        from .main import create_app

        return create_app
    raise AttributeError(name)

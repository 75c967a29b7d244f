"""
tests/conftest.py — Shared setup for unit and integration tests.

Importing every model module registers all mapped classes, so relationship
strings such as "Purchase" resolve when a unit test builds a Split row
without a Flask app.
"""

from groupsplit.app.models import group, membership, purchase, split, user  # noqa: F401

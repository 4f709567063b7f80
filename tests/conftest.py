"""
Shared pytest fixtures for tablequery tests.

Provides sample tables, a populated catalog, and isolation of the
process-wide verb tables and package logger between tests.
"""

import logging

import pytest

from tablequery import builder
from tablequery import Catalog, Table
from tablequery.logging_config import LOGGER_NAME
from tablequery.verbs import VerbRegistry


@pytest.fixture(autouse=True)
def restore_verb_tables():
    """
    Snapshot the verb registry and the query verb table.

    Tests that register plugin verbs leave no trace for later tests.
    """
    registered = dict(VerbRegistry._verbs)
    query_verbs = dict(builder._QUERY_VERBS)
    internal = dict(builder._INTERNAL_VERBS)

    yield

    VerbRegistry._verbs.clear()
    VerbRegistry._verbs.update(registered)
    builder._QUERY_VERBS.clear()
    builder._QUERY_VERBS.update(query_verbs)
    builder._INTERNAL_VERBS.clear()
    builder._INTERNAL_VERBS.update(internal)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by configure_logging during a test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def orders():
    """Four orders across three regions."""
    return Table.from_pydict({
        "id": [1, 2, 3, 4],
        "region": ["east", "west", "east", "north"],
        "amount": [10, 25, 40, 5],
    })


@pytest.fixture
def regions():
    """Managers for two of the three order regions."""
    return Table.from_pydict({
        "region": ["east", "west"],
        "manager": ["Ann", "Bob"],
    })


@pytest.fixture
def catalog(orders, regions):
    return Catalog({"orders": orders, "regions": regions})


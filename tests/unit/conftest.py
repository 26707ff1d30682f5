from unittest.mock import AsyncMock, MagicMock

import pytest


def make_collection(documents=None, error=None):
    """Create a mock Motor collection whose find() and aggregate() cursors yield `documents`.

    When `error` is given, materializing the cursor raises it instead.
    """
    cursor = MagicMock()
    if error is not None:
        cursor.to_list = AsyncMock(side_effect=error)
    else:
        cursor.to_list = AsyncMock(return_value=list(documents or []))

    collection = MagicMock()
    collection.find.return_value = cursor
    collection.aggregate.return_value = cursor
    return collection


def make_database(collections):
    """Create a mock Motor database serving the given collections by name."""
    database = MagicMock()
    database.__getitem__.side_effect = lambda name: collections[name]
    return database


@pytest.fixture
def users_collection():
    return make_collection([{"_id": 1, "name": "Aurelia Gonzales", "age": 20}])


@pytest.fixture
def books_collection():
    return make_collection([{"_id": 1, "title": "The Great Gatsby", "author_id": 100}])


@pytest.fixture
def mock_database(users_collection, books_collection):
    return make_database({"users": users_collection, "books": books_collection})


@pytest.fixture
def collection_factory():
    return make_collection


@pytest.fixture
def database_factory():
    return make_database

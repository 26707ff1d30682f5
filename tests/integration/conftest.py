import os
import uuid

import pytest
import pytest_asyncio
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from query_catalogue import QueryCatalogueRunner
from seed_database import DatasetSeeder, load_dataset, validate_dataset

# MongoDB connection settings
MONGO_URL = os.getenv("MONGODB_URL", "mongodb://localhost:27017")


@pytest_asyncio.fixture
async def mongo_client():
    """Create a MongoDB client for each test, skipping when no server is reachable."""
    client = AsyncIOMotorClient(MONGO_URL, serverSelectionTimeoutMS=2000)
    try:
        await client.admin.command("ping")
    except PyMongoError as e:
        client.close()
        pytest.skip(f"MongoDB is not reachable at {MONGO_URL}: {e}")

    try:
        yield client
    finally:
        client.close()


@pytest_asyncio.fixture
async def test_db(mongo_client, dataset_path):
    """Create a seeded throwaway database and drop it after the test."""
    database_name = f"query_catalogue_test_{uuid.uuid4().hex[:12]}"
    db = mongo_client[database_name]

    documents = validate_dataset(load_dataset(str(dataset_path)))
    await DatasetSeeder(db).seed(documents)

    try:
        yield db
    finally:
        await mongo_client.drop_database(database_name)


@pytest.fixture
def runner(test_db):
    return QueryCatalogueRunner(test_db)

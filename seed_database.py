#!/usr/bin/env python3
"""
seed_database - Tool for loading a JSON dataset of users, authors and books into the collections
                the query catalogue reads.

Usage:
    python3 seed_database.py --help
    python3 seed_database.py dataset.json [--drop]

Environment Variables:
    MONGODB_URL - MongoDB connection URL (required)

The dataset is a JSON object (MongoDB extended JSON is accepted) of the form:
    {"users": [...], "authors": [...], "books": [...]}

Every document is validated before anything is written; documents are then upserted in batches,
users keyed by "index" and authors and books by "_id".
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Any, Dict, List, Type

# Third-party imports
from bson import json_util
from dotenv import load_dotenv
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, ValidationError
from pymongo import ReplaceOne

# Local imports
from query_catalogue import InvalidConnectionError, open_database
from query_catalogue.config import load_config
from query_catalogue.models import Author, Book, User

# Load environment variables from .env file
load_dotenv()

# Setup the global logger
logger = logging.getLogger(__name__)

# Model and unique key of every seeded collection, in write order
SEEDED_MODELS: Dict[str, Type[BaseModel]] = {
    'users': User,
    'authors': Author,
    'books': Book,
}

UNIQUE_KEYS = {
    'users': 'index',
    'authors': '_id',
    'books': '_id',
}


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration"""
    logging.basicConfig(level=getattr(logging, level.upper()),
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                        datefmt='%Y-%m-%d %H:%M:%S')


def load_dataset(dataset_path: str) -> Dict[str, Any]:
    """
    Load a dataset file

    Raises:
        ValueError: If the file cannot be read or is not a JSON object
    """
    try:
        with open(dataset_path, 'r', encoding='utf-8') as f:
            dataset = json_util.loads(f.read())
    except (OSError, ValueError) as e:
        raise ValueError(f"Could not load dataset from {dataset_path}: {e}") from e

    if not isinstance(dataset, dict):
        raise ValueError(f"Expected a JSON object in {dataset_path}")

    unknown = set(dataset) - set(SEEDED_MODELS)
    if unknown:
        raise ValueError(f"Unknown collections in {dataset_path}: {', '.join(sorted(unknown))}")

    return dataset


def validate_dataset(dataset: Dict[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Validate every document of a dataset against its collection model

    Returns:
        The validated documents by collection name, with defaults filled in

    Raises:
        pydantic.ValidationError: On the first invalid document
    """
    documents = {}
    for collection_name, model_cls in SEEDED_MODELS.items():
        raw_documents = dataset.get(collection_name, [])
        documents[collection_name] = [
            model_cls.model_validate(raw).to_document() for raw in raw_documents
        ]
        logger.debug("Validated %d %s documents", len(documents[collection_name]),
                     collection_name)
    return documents


class DatasetSeeder:
    """
    Writes validated datasets into the catalogue collections
    """

    def __init__(self, database: AsyncIOMotorDatabase):
        self.database = database

    async def drop_collections(self) -> None:
        for collection_name in SEEDED_MODELS:
            await self.database.drop_collection(collection_name)
            logger.info("Dropped collection %s", collection_name)

    async def store_documents(self, collection_name: str, documents: List[Dict[str, Any]]) -> None:
        """
        Store documents using a single batch of upsert operations
        """
        if not documents:
            logger.info("No %s documents to store", collection_name)
            return

        key = UNIQUE_KEYS[collection_name]
        bulk_operations = [
            ReplaceOne({key: document[key]}, document, upsert=True) for document in documents
        ]

        result = await self.database[collection_name].bulk_write(bulk_operations, ordered=False)

        logger.info("Stored %s: %d inserted, %d updated, %d total processed", collection_name,
                    result.upserted_count, result.modified_count, len(documents))

    async def setup_database_indexes(self) -> None:
        """Set up indexes for the user key and the book -> author lookup"""
        await self.database['users'].create_index([("index", 1)], unique=True, name="index_unique")
        await self.database['books'].create_index([("author_id", 1)], name="author_id_index")

        logger.info("Database indexes created successfully")

    async def seed(self, documents: Dict[str, List[Dict[str, Any]]], drop: bool = False) -> None:
        if drop:
            await self.drop_collections()

        await self.setup_database_indexes()

        for collection_name, collection_documents in documents.items():
            await self.store_documents(collection_name, collection_documents)


async def main() -> int:
    """
    Main function
    """
    parser = argparse.ArgumentParser(description="Seed the query catalogue collections")
    parser.add_argument("dataset", help="JSON file with 'users', 'authors' and 'books' lists")
    parser.add_argument("--drop",
                        action="store_true",
                        help="Drop the collections before seeding")
    parser.add_argument("--config", default="config.toml", help="Path to the TOML configuration")
    parser.add_argument("--log-level",
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default='INFO',
                        help="Set the logging level")

    args = parser.parse_args()

    # Setup logging with specified level
    setup_logging(args.log_level)

    mongodb_url = os.getenv('MONGODB_URL')
    if not mongodb_url:
        logger.error("MongoDB URL is required. Set the MONGODB_URL environment variable")
        return 1

    try:
        config = load_config(args.config)
        dataset = load_dataset(args.dataset)
    except ValueError as e:
        logger.error("%s", e)
        return 1

    # Validate everything before writing anything
    try:
        documents = validate_dataset(dataset)
    except ValidationError as e:
        logger.error("Dataset %s is invalid: %s", args.dataset, e)
        return 1

    mongodb_config = config['mongodb']
    try:
        async with open_database(mongodb_url, mongodb_config['database'],
                                 mongodb_config['server_selection_timeout_ms']) as database:
            await DatasetSeeder(database).seed(documents, drop=args.drop)
    except InvalidConnectionError as e:
        logger.error("%s", e)
        return 1

    logger.info("Successfully seeded %s", ", ".join(
        f"{len(docs)} {name}" for name, docs in documents.items()))
    return 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()

"""
Query catalogue runner.

Executes catalogue definitions against an injected Motor database handle. Every query is an
independent round trip; driver failures are contained in the QueryResult of the query that
raised them.
"""

import asyncio
import copy
import logging
from typing import Awaitable, Dict, Iterable, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from .definitions import QueryDefinition, QueryKind
from .pipeline_loader import load_query_catalogue
from .results import STORE_EXCEPTIONS, EquivalenceCheck, QueryResult, StoreQueryError

# Setup logger for this module
logger = logging.getLogger(__name__)


class UnknownQueryError(KeyError):
    """Raised when a query name is not in the catalogue"""


async def _gather_or_cancel(*coroutines: Awaitable[QueryResult]) -> List[QueryResult]:
    """
    Run the coroutines concurrently; if one raises, cancel the others before re-raising
    """
    tasks = [asyncio.ensure_future(coroutine) for coroutine in coroutines]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class QueryCatalogueRunner:
    """
    Runs named queries from the catalogue against a MongoDB database
    """

    def __init__(self, database: AsyncIOMotorDatabase,
                 catalogue: Optional[Dict[str, QueryDefinition]] = None):
        """
        Args:
            database: Motor database handle, usually obtained from open_database()
            catalogue: Query definitions by name. Defaults to the bundled catalogue.
        """
        self.database = database
        self.catalogue = catalogue if catalogue is not None else load_query_catalogue()

    def names(self) -> List[str]:
        return list(self.catalogue.keys())

    def definitions(self) -> List[QueryDefinition]:
        return list(self.catalogue.values())

    def get(self, name: str) -> QueryDefinition:
        try:
            return self.catalogue[name]
        except KeyError:
            raise UnknownQueryError(name) from None

    async def _execute(self, definition: QueryDefinition) -> List[Dict]:
        collection = self.database[definition.collection]

        # The driver gets a copy so the catalogue entry stays untouched
        if definition.kind == QueryKind.FIND:
            cursor = collection.find(copy.deepcopy(definition.filter))
        else:
            cursor = collection.aggregate(copy.deepcopy(definition.pipeline))

        return await cursor.to_list(length=None)

    async def run(self, name: str) -> QueryResult:
        """
        Run one query

        Args:
            name: Catalogue name of the query

        Returns:
            A successful result with the documents (possibly none), or a failed result carrying
            the classified StoreQueryError

        Raises:
            UnknownQueryError: If the name is not in the catalogue
        """
        definition = self.get(name)
        logger.debug("Running %s query %s on %s", definition.kind.value, name,
                     definition.collection)

        try:
            documents = await self._execute(definition)
        except STORE_EXCEPTIONS as e:
            error = StoreQueryError.from_exception(e)
            logger.error("Query %s on %s failed (%s): %s", name, definition.collection, error.kind,
                         error.message)
            return QueryResult.failure(name, error)

        logger.info("Query %s returned %d document(s)", name, len(documents))
        return QueryResult.success(name, documents)

    async def run_many(self, names: Optional[Iterable[str]] = None) -> List[QueryResult]:
        """
        Run several queries concurrently, returning results in the requested order

        Args:
            names: Query names to run. Defaults to the whole catalogue.

        Raises:
            UnknownQueryError: If any name is not in the catalogue (checked before anything runs)
        """
        names = list(names) if names is not None else self.names()
        for name in names:
            self.get(name)

        results = await _gather_or_cancel(*(self.run(name) for name in names))

        failed = sum(1 for result in results if not result.ok)
        logger.info("Ran %d queries: %d succeeded, %d failed", len(results), len(results) - failed,
                    failed)
        return results

    def equivalence_pairs(self) -> List[Tuple[str, str]]:
        """Pairs of (query, query it is declared equivalent to)"""
        return [(definition.name, definition.equivalent_to) for definition in self.definitions()
                if definition.equivalent_to is not None]

    async def check_equivalence(self, name: str) -> EquivalenceCheck:
        """
        Run a query and the query it is declared equivalent to, and compare their documents

        Raises:
            UnknownQueryError: If the name is not in the catalogue
            ValueError: If the query declares no equivalent
        """
        definition = self.get(name)
        if definition.equivalent_to is None:
            raise ValueError(f"Query {name} does not declare an equivalent query")

        first, second = await _gather_or_cancel(self.run(name),
                                               self.run(definition.equivalent_to))
        check = EquivalenceCheck(first=first, second=second)

        if check.agree:
            logger.info("Queries %s and %s agree", first.name, second.name)
        else:
            logger.warning("Queries %s and %s do not agree", first.name, second.name)
        return check

    async def check_all_equivalences(self) -> List[EquivalenceCheck]:
        checks = []
        for name, _ in self.equivalence_pairs():
            checks.append(await self.check_equivalence(name))
        return checks

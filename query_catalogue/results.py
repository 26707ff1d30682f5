"""
Result types for catalogue queries.

A query either succeeds with a (possibly empty) list of documents or fails with a classified
StoreQueryError. The two cases are never represented by the same value.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bson import json_util
from bson.errors import BSONError
from pymongo.errors import (ConnectionFailure, ExecutionTimeout, NetworkTimeout, OperationFailure,
                            PyMongoError)

CONNECTION = "connection"
TIMEOUT = "timeout"
QUERY = "query"
DOCUMENT = "document"
STORE = "store"

ERROR_KINDS = (CONNECTION, TIMEOUT, QUERY, DOCUMENT, STORE)


class StoreQueryError(Exception):
    """
    A failure while submitting a query or materializing its results

    `kind` is one of ERROR_KINDS.
    """

    def __init__(self, kind: str, message: str):
        if kind not in ERROR_KINDS:
            raise ValueError(f"Unknown store error kind: {kind}")
        super().__init__(message)
        self.kind = kind
        self.message = message

    @classmethod
    def from_exception(cls, exc: Exception) -> "StoreQueryError":
        """Classify a driver exception"""
        # Timeouts first: NetworkTimeout is a ConnectionFailure, ExecutionTimeout an OperationFailure
        if isinstance(exc, (NetworkTimeout, ExecutionTimeout)):
            kind = TIMEOUT
        elif isinstance(exc, ConnectionFailure):
            kind = CONNECTION
        elif isinstance(exc, OperationFailure):
            kind = QUERY
        elif isinstance(exc, BSONError):
            kind = DOCUMENT
        else:
            kind = STORE
        return cls(kind, str(exc) or type(exc).__name__)

    def __repr__(self) -> str:
        return f"StoreQueryError(kind={self.kind!r}, message={self.message!r})"


# Exceptions the runner converts into failed results; anything else propagates
STORE_EXCEPTIONS = (PyMongoError, BSONError)


@dataclass(frozen=True)
class QueryResult:
    """Outcome of running one catalogue query"""
    name: str
    documents: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[StoreQueryError] = None

    @classmethod
    def success(cls, name: str, documents: List[Dict[str, Any]]) -> "QueryResult":
        return cls(name=name, documents=list(documents))

    @classmethod
    def failure(cls, name: str, error: StoreQueryError) -> "QueryResult":
        return cls(name=name, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def is_empty(self) -> bool:
        """True only for a successful query that matched nothing"""
        return self.ok and not self.documents

    def scalar(self, field_name: str, default: Any = 0) -> Any:
        """
        Value of a single-document result such as a $count or a one-group $group

        An empty successful result yields `default`, which is how $count reports zero matches.

        Raises:
            StoreQueryError: If the query failed
            ValueError: If the result has more than one document
        """
        if not self.ok:
            raise self.error
        if not self.documents:
            return default
        if len(self.documents) > 1:
            raise ValueError(
                f"Query {self.name} returned {len(self.documents)} documents, expected one")
        return self.documents[0].get(field_name, default)

    def __str__(self) -> str:
        if not self.ok:
            return f"{self.name}: FAILED ({self.error.kind}): {self.error.message}"
        return f"{self.name}: {len(self.documents)} document(s)"


def _normalized(documents: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # Documents sharing an _id (or lacking one) are ordered by their full content
    return sorted(documents, key=lambda doc: (json_util.dumps(doc.get("_id"), sort_keys=True),
                                              json_util.dumps(doc, sort_keys=True)))


def results_agree(first: QueryResult, second: QueryResult) -> bool:
    """
    Check that two successful results hold the same documents, ignoring order

    Failed results never agree, not even with each other.
    """
    if not (first.ok and second.ok):
        return False
    if len(first.documents) != len(second.documents):
        return False
    return _normalized(first.documents) == _normalized(second.documents)


@dataclass(frozen=True)
class EquivalenceCheck:
    """Outcome of running two queries that are expected to return the same documents"""
    first: QueryResult
    second: QueryResult

    @property
    def agree(self) -> bool:
        return results_agree(self.first, self.second)

    def __str__(self) -> str:
        status = "agree" if self.agree else "DISAGREE"
        return f"{self.first.name} <-> {self.second.name}: {status}"

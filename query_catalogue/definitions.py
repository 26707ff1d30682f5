"""
Query definition types for the MongoDB query catalogue.

Each catalogue entry names one read-only query against one collection: either a find filter or
an aggregation pipeline.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CatalogueError(ValueError):
    """Raised when the query catalogue cannot be loaded or is inconsistent"""


class QueryKind(str, Enum):
    """How a definition is submitted to the store"""
    FIND = "find"
    AGGREGATE = "aggregate"


class QueryDefinition(BaseModel):
    """
    A single named query of the catalogue

    Exactly one of `filter` (find) or `pipeline` (aggregate) is set. `equivalent_to` names another
    definition that must produce the same result set on well-formed data.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1, description="Unique query name")
    description: str = Field("", description="What the query returns")
    collection: str = Field(..., min_length=1, description="Collection the query runs against")
    filter: Optional[Dict[str, Any]] = Field(None, description="Find filter document")
    pipeline: Optional[List[Dict[str, Any]]] = Field(None, description="Aggregation stages")
    equivalent_to: Optional[str] = Field(None, description="Name of an equivalent query")

    @model_validator(mode="after")
    def _check_query_body(self) -> "QueryDefinition":
        if (self.filter is None) == (self.pipeline is None):
            raise ValueError("exactly one of 'filter' or 'pipeline' must be given")

        if self.pipeline is not None:
            if not self.pipeline:
                raise ValueError("'pipeline' must contain at least one stage")
            for position, stage in enumerate(self.pipeline):
                operators = list(stage.keys())
                if len(operators) != 1 or not operators[0].startswith("$"):
                    raise ValueError(
                        f"stage #{position} must have exactly one '$'-prefixed operator, "
                        f"got {operators}")
        return self

    @property
    def kind(self) -> QueryKind:
        return QueryKind.FIND if self.filter is not None else QueryKind.AGGREGATE

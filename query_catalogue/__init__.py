"""
Query catalogue: named MongoDB find filters and aggregation pipelines, and the runner that
executes them.
"""

from .definitions import CatalogueError, QueryDefinition, QueryKind
from .pipeline_loader import load_aggregation_pipeline, load_query_catalogue
from .results import EquivalenceCheck, QueryResult, StoreQueryError, results_agree
from .runner import QueryCatalogueRunner, UnknownQueryError
from .store import InvalidConnectionError, open_database

__all__ = [
    'CatalogueError',
    'EquivalenceCheck',
    'InvalidConnectionError',
    'QueryCatalogueRunner',
    'QueryDefinition',
    'QueryKind',
    'QueryResult',
    'StoreQueryError',
    'UnknownQueryError',
    'load_aggregation_pipeline',
    'load_query_catalogue',
    'open_database',
    'results_agree',
]

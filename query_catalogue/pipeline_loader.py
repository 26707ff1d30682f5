"""
Pipeline loader utilities for the MongoDB query catalogue.

This module provides utilities for loading query definitions and aggregation pipelines from
JSON files, so the catalogue can be extended by editing data rather than code.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Any, List

from pydantic import ValidationError

from .definitions import CatalogueError, QueryDefinition

# Setup logger for this module
logger = logging.getLogger(__name__)

CATALOGUE_DIR = Path(__file__).parent / "catalogue"


def load_aggregation_pipeline(pipeline_file: str, base_path: str = None) -> List[Dict[str, Any]]:
    """
    Load a JSON list (an aggregation pipeline or a list of query definitions) from a file

    Args:
        pipeline_file: Path to the JSON file
        base_path: Base path to resolve relative paths against. If None, uses the catalogue
                   directory as the base path.

    Returns:
        List of JSON objects

    Raises:
        ValueError: If the file cannot be loaded or parsed, or does not hold a JSON list
    """
    pipeline_path = Path(pipeline_file)

    # If path is not absolute, make it relative to the catalogue directory
    if not pipeline_path.is_absolute():
        if base_path:
            pipeline_path = Path(base_path) / pipeline_file
        else:
            pipeline_path = CATALOGUE_DIR / pipeline_file

    try:
        with open(pipeline_path, 'r', encoding='utf-8') as f:
            pipeline = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.error("Error loading pipeline from %s: %s", pipeline_path, e)
        raise ValueError(f"Could not load pipeline from {pipeline_path}: {e}") from e

    if not isinstance(pipeline, list):
        raise ValueError(f"Expected a JSON list in {pipeline_path}, got {type(pipeline).__name__}")

    logger.debug("Loaded %d entries from %s", len(pipeline), pipeline_path)
    return pipeline


def load_query_catalogue(directory: str = None) -> Dict[str, QueryDefinition]:
    """
    Load every query definition file (*.json) from a directory

    Files are read in file name order and the definitions keep their order within each file.

    Args:
        directory: Directory holding the definition files. Defaults to the bundled catalogue.

    Returns:
        Ordered mapping of query name to definition

    Raises:
        CatalogueError: If a definition is invalid, a name is duplicated or an equivalence
                        points to a query that does not exist
    """
    catalogue_dir = Path(directory) if directory else CATALOGUE_DIR
    catalogue: Dict[str, QueryDefinition] = {}

    for definition_file in sorted(catalogue_dir.glob("*.json")):
        try:
            entries = load_aggregation_pipeline(definition_file.name, base_path=str(catalogue_dir))
        except ValueError as e:
            raise CatalogueError(str(e)) from e

        for position, entry in enumerate(entries):
            try:
                definition = QueryDefinition.model_validate(entry)
            except ValidationError as e:
                raise CatalogueError(
                    f"Invalid query definition #{position} in {definition_file.name}: {e}") from e

            if definition.name in catalogue:
                raise CatalogueError(
                    f"Duplicate query name '{definition.name}' in {definition_file.name}")

            catalogue[definition.name] = definition

    for definition in catalogue.values():
        if definition.equivalent_to is None:
            continue
        if definition.equivalent_to not in catalogue:
            raise CatalogueError(f"Query '{definition.name}' is declared equivalent to unknown "
                                 f"query '{definition.equivalent_to}'")
        if definition.equivalent_to == definition.name:
            raise CatalogueError(f"Query '{definition.name}' is declared equivalent to itself")

    logger.info("Loaded %d query definitions from %s", len(catalogue), catalogue_dir)
    return catalogue

"""
Repository catalog decoding and filtering.
"""

import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional, Set, Union

from ..models import RepositoryIdentifier

logger = logging.getLogger(__name__)

FULL_NAME_FIELD = "full_name"


def extract_repository_identifiers(payload: Any) -> List[RepositoryIdentifier]:
    """
    Extract repository identifiers from a decoded ``/user/repos`` response.

    Every array element that is an object with a string ``full_name`` yields
    one identifier, in document order and without de-duplication. Anything
    else (missing field, non-object element, non-array payload) contributes
    no entries rather than raising.

    Args:
        payload: Decoded JSON body

    Returns:
        Identifiers in response order
    """
    if not isinstance(payload, list):
        logger.warning(f"Unexpected repository listing payload of type {type(payload).__name__}")
        return []

    identifiers = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        full_name = item.get(FULL_NAME_FIELD)
        if not isinstance(full_name, str):
            continue
        try:
            identifiers.append(RepositoryIdentifier.parse(full_name))
        except ValueError as e:
            logger.warning(f"Skipping repository entry: {e}")

    return identifiers


def collect_existing_folder_names(root: Union[str, Path]) -> Set[str]:
    """
    Collect the names of all directories anywhere below ``root``.

    Returns an empty set when ``root`` does not exist.
    """
    root = Path(root)
    if not root.is_dir():
        return set()

    return {path.name for path in root.rglob("*") if path.is_dir()}


def filter_excluding_local(
    entries: Iterable[RepositoryIdentifier],
    existing_folder_names: Set[str]
) -> List[RepositoryIdentifier]:
    """Drop entries whose folder name already exists locally, preserving order."""
    return [entry for entry in entries if entry.folder_name not in existing_folder_names]


def filter_by_name(
    entries: Iterable[RepositoryIdentifier],
    substring: Optional[str]
) -> List[RepositoryIdentifier]:
    """
    Keep entries whose ``owner/name`` contains ``substring``, ignoring case.

    An empty or missing substring returns every entry unchanged.
    """
    entries = list(entries)
    if not substring:
        return entries

    needle = substring.casefold()
    return [entry for entry in entries if needle in entry.full_name.casefold()]

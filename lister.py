"""
pb Descriptor Lister

Lists the fully-qualified names of loaded files, messages and services.
"""

import logging

from errors import UsageError
from loader import Schema


logger = logging.getLogger(__name__)

FILES = "files"
MESSAGES = "messages"
SERVICES = "services"

# Keyword (lower-cased) -> category
CATEGORY_KEYWORDS = {
    "file": FILES,
    "files": FILES,
    "msg": MESSAGES,
    "message": MESSAGES,
    "messages": MESSAGES,
    "svc": SERVICES,
    "services": SERVICES,
}


def requested_categories(keywords: list[str]) -> list[str]:
    """Map keywords to distinct categories in first-requested order.

    Unknown keywords are ignored.

    Raises:
        UsageError: If no keyword was given
    """
    if not keywords:
        raise UsageError('specify one of "files", "messages" or "services"')

    categories = []
    for keyword in keywords:
        category = CATEGORY_KEYWORDS.get(keyword.lower())
        if category is None:
            logger.debug("ignoring unknown descriptor type %r", keyword)
            continue
        if category not in categories:
            categories.append(category)
    return categories


def _qualified(package: str, name: str) -> str:
    return f"{package}.{name}" if package else name


def category_names(schema: Schema, category: str) -> list[str]:
    """Names for one category, files visited in load order."""
    if category == FILES:
        return [f.name for f in schema.files]
    if category == MESSAGES:
        return [_qualified(f.package, m.name) for f in schema.files for m in f.message_type]
    if category == SERVICES:
        return [_qualified(f.package, s.name) for f in schema.files for s in f.service]
    raise ValueError(f"unknown category: {category}")


def list_descriptors(schema: Schema, keywords: list[str]) -> list[str]:
    """List descriptor names for every category requested by keyword.

    Args:
        schema: Loaded schema
        keywords: Category keywords, e.g. ["msg", "files"]

    Returns:
        One name per line to print, category blocks in first-requested order

    Raises:
        UsageError: If no keyword was given
    """
    names = []
    for category in requested_categories(keywords):
        names.extend(category_names(schema, category))
    return names

"""Conditional writes over Protean repositories.

The checkout core needs two primitives on top of a repository:

``update_if``
    Change an aggregate only while a predicate holds for it. The aggregate is
    loaded, tested and saved under the repository's optimistic version check.
    When another writer commits in between, the save raises
    ``ExpectedVersionError`` and the whole step runs again against the fresh
    version, so the predicate always holds for the version that is written.

``add_new``
    Insert an aggregate only when its identity is not taken yet. Creates are
    serialized in-process; a relational store's primary key settles races
    between processes.
"""

import threading
from collections.abc import Callable
from typing import Any

import structlog
from protean.exceptions import ExpectedVersionError, TransactionError
from protean.exceptions import ValidationError as ProteanValidationError

logger = structlog.get_logger(__name__)

_create_lock = threading.Lock()


def update_if(
    repository,
    identifier: str,
    predicate: Callable[[Any], bool],
    change: Callable[[Any], None],
) -> Any | None:
    """Apply ``change`` to the aggregate when ``predicate`` holds.

    Returns the saved aggregate, or None when it is missing or the predicate
    fails for the current version.
    """
    while True:
        item = repository.get_or_none(identifier)
        if item is None or not predicate(item):
            return None

        change(item)
        try:
            return repository.add(item)
        except ExpectedVersionError:
            logger.debug(
                "Concurrent write detected, retrying",
                aggregate=type(item).__name__,
                identifier=identifier,
            )


def add_new(repository, item) -> bool:
    """Persist ``item`` unless an aggregate with the same id exists.

    Returns False when the id was already taken.
    """
    with _create_lock:
        if repository.get_or_none(item.id) is not None:
            return False
        try:
            repository.add(item)
        except (TransactionError, ProteanValidationError):
            # Lost an insert race against another process
            if repository.get_or_none(item.id) is not None:
                return False
            raise
    return True

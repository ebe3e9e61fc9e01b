"""Copy entries between namespaced stores."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from storage.namespaced import NamespacedStore

logger = logging.getLogger(__name__)

_MISSING = object()


def migrate(
    from_store: NamespacedStore,
    to_store: NamespacedStore,
    keys: Optional[Iterable[str]] = None,
    atomic: bool = False,
) -> bool:
    """Copy every entry (or only ``keys``) from ``from_store`` into ``to_store``.

    Stops at the first failed write and returns ``False``. Without ``atomic``
    the entries already written stay in place. With ``atomic`` every target
    key touched so far is restored to its previous value, or removed if it
    did not exist before.
    """
    wanted = set(keys) if keys is not None else None
    # get_all() is fail-soft, so an unreadable source simply stages nothing.
    staged = [
        (key, value)
        for key, value in from_store.get_all().items()
        if wanted is None or key in wanted
    ]

    previous: Dict[str, Any] = {}
    if atomic:
        for key, _ in staged:
            previous[key] = to_store.get(key, _MISSING)

    written: List[Tuple[str, Any]] = []
    for key, value in staged:
        if not to_store.set(key, value):
            logger.warning(
                "Migration stopped after %d of %d entries",
                len(written),
                len(staged),
                extra={"namespace": to_store.namespace, "key": key},
            )
            if atomic:
                _rollback(to_store, written, previous)
            return False
        written.append((key, value))

    logger.info(
        "Migrated entries from %s to %s",
        from_store.namespace,
        to_store.namespace,
        extra={"count": len(written)},
    )
    return True


def _rollback(
    to_store: NamespacedStore,
    written: List[Tuple[str, Any]],
    previous: Dict[str, Any],
) -> None:
    for key, _ in reversed(written):
        old = previous.get(key, _MISSING)
        if old is _MISSING:
            to_store.remove(key)
        else:
            to_store.set(key, old)

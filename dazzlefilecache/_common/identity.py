"""Cache entry identity.

An entry id is the JSON text of ``{"filename": path, "options": options}``.
It is hashable, deterministic for equal inputs, and the path can be read
back out of it for directory attribution.

Options are compared by their serialisation, not semantically: two dicts
with the same items in a different order produce different ids unless
``canonical=True`` is passed, which sorts keys first.
"""

import json
import os
from typing import Any, Optional


def make_id(path: Any, options: Optional[Any] = None, *, canonical: bool = False) -> str:
    """Build the entry id for a (path, options) pair.

    Args:
        path: File path (str, bytes or os.PathLike)
        options: Read options as passed to the storage backend
        canonical: Sort mapping keys before serialising

    Returns:
        The entry id. Never raises; values JSON cannot encode are
        rendered with repr().
    """
    if isinstance(path, (bytes, os.PathLike)):
        path = os.fsdecode(path)
    try:
        return json.dumps({'filename': path, 'options': options},
                          sort_keys=canonical, default=repr)
    except (TypeError, ValueError):
        # Unsortable or non-string keys, circular structures
        return json.dumps({'filename': path, 'options': repr(options)}, default=repr)


def path_of(entry_id: str) -> str:
    """Recover the path an entry id was built from."""
    return json.loads(entry_id)['filename']


def directory_of(entry_id: str) -> str:
    """Directory whose watch covers the entry.

    A bare filename lives in the current directory, ``"."``. The result is
    normalised so ``d/a`` and ``./d/a`` share one watch.
    """
    return os.path.normpath(os.path.dirname(path_of(entry_id)) or '.')


def same_path(a: str, b: str) -> bool:
    """Compare two paths after lexical normalisation (``./x`` equals ``x``)."""
    return os.path.normpath(a) == os.path.normpath(b)

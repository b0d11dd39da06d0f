"""Locate the store a command should operate on.

A store is identified, nearest first, by a ``flatstore.toml`` file or a
``.flatstore/`` data directory in the working directory or one of its
ancestors. ``FLATSTORE_CONFIG`` and ``--config`` name the file directly.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

CONFIG_FILENAME = "flatstore.toml"
CONFIG_ENV_VAR = "FLATSTORE_CONFIG"
STORE_DIRNAME = ".flatstore"


def _lineage(start: Path | None) -> Iterator[Path]:
    current = (start or Path.cwd()).resolve()
    yield current
    yield from current.parents


def find_config(start: Path | None = None) -> Path | None:
    """Nearest ``flatstore.toml`` at or above *start* (default: cwd).

    A set ``FLATSTORE_CONFIG`` wins outright; when it names a missing
    file no config is used at all.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None
    return next(
        (d / CONFIG_FILENAME for d in _lineage(start) if (d / CONFIG_FILENAME).is_file()),
        None,
    )


def find_store_root(start: Path | None = None) -> Path | None:
    """Nearest directory at or above *start* holding a ``.flatstore/`` directory.

    Lets commands run from a subdirectory of a store created without a
    config file.
    """
    return next((d for d in _lineage(start) if (d / STORE_DIRNAME).is_dir()), None)

"""Read ``SBO_*`` overrides from the process environment.

Values are stripped before use and an empty value counts as unset, so
``SBO_PREFIX= sbo build`` falls through to the config file. A value that
cannot be parsed is logged and ignored rather than aborting the run.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off"})


class EnvReader:
    """Typed access to environment overrides.

    Pass ``env`` to read from a plain mapping instead of ``os.environ``::

        EnvReader(env={"SBO_JOBS": "8"}).get_int("SBO_JOBS")  # 8
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = os.environ if env is None else env

    def _lookup(self, var: str) -> str | None:
        raw = self._env.get(var)
        if raw is None:
            return None
        raw = raw.strip()
        return raw or None

    def _ignore(self, var: str, raw: str, expected: str) -> None:
        logger.warning("Ignoring %s=%r: expected %s", var, raw, expected)

    def get_str(self, var: str, default: str | None = None) -> str | None:
        raw = self._lookup(var)
        return default if raw is None else raw

    def get_int(
        self, var: str, default: int | None = None, *, minimum: int | None = None
    ) -> int | None:
        """Parse an integer, falling back to ``default`` when unusable.

        ``minimum`` rejects values below it, e.g. ``SBO_JOBS=0``.
        """
        raw = self._lookup(var)
        if raw is None:
            return default
        try:
            number = int(raw, 10)
        except ValueError:
            self._ignore(var, raw, "an integer")
            return default
        if minimum is not None and number < minimum:
            self._ignore(var, raw, f"an integer >= {minimum}")
            return default
        return number

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        """Parse an on/off switch such as ``SBO_USE_SUDO``.

        Accepts 1/0, true/false, yes/no and on/off in any case. Anything
        else is logged and treated as unset.
        """
        raw = self._lookup(var)
        if raw is None:
            return default
        word = raw.casefold()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        self._ignore(var, raw, "one of 1/0, true/false, yes/no, on/off")
        return default

    def get_path(
        self, var: str, must_exist: bool = False, default: Path | None = None
    ) -> Path | None:
        """Return ``var`` as a user-expanded path.

        Prefixes and source trees are created on demand, so only inputs
        such as ``SBO_MANIFEST`` pass ``must_exist=True``.
        """
        raw = self._lookup(var)
        if raw is None:
            return default
        path = Path(raw).expanduser()
        if must_exist and not path.exists():
            self._ignore(var, raw, "an existing path")
            return default
        return path

"""Static fallback bank of pre-approved fortunes.

Used only once every live attempt has failed. Pools are loaded once,
validated at load time and never mutated afterwards.
"""

from __future__ import annotations

import random
from collections.abc import Mapping, Sequence
from pathlib import Path
from types import MappingProxyType

from ruamel.yaml import YAML

from fortunecookie.models.fortune import Theme
from fortunecookie.observability.logging import get_logger

log = get_logger(__name__)

DEFAULT_FALLBACKS_PATH = Path(__file__).parent.parent / "data" / "fallbacks.yaml"


class FallbackBankError(Exception):
    """Raised when fallback pools are missing, empty or malformed."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid fallback data in {source}: {reason}")


class FallbackBank:
    """Per-theme pools of canned fortunes with uniform random selection."""

    def __init__(
        self,
        pools: Mapping[Theme | str, Sequence[str]],
        rng: random.Random | None = None,
        source: str = "<memory>",
    ) -> None:
        """Validate and freeze the pools.

        Args:
            pools: Theme (or theme name) -> messages.
            rng: Random source; defaults to a fresh ``random.Random()``.
            source: Where the pools came from, for error messages.

        Raises:
            FallbackBankError: If any theme has no pool, an empty pool, or
                a blank/non-string entry.
        """
        frozen: dict[Theme, tuple[str, ...]] = {}
        for key, messages in pools.items():
            try:
                theme = Theme.parse(key)
            except ValueError:
                raise FallbackBankError(source, f"unknown theme {key!r}") from None
            if isinstance(messages, str) or not isinstance(messages, Sequence):
                raise FallbackBankError(source, f"pool for '{theme}' must be a list")
            for message in messages:
                if not isinstance(message, str) or not message.strip():
                    raise FallbackBankError(source, f"blank or non-string entry in '{theme}'")
            frozen[theme] = tuple(m.strip() for m in messages)

        for theme in Theme:
            if not frozen.get(theme):
                raise FallbackBankError(source, f"pool for '{theme}' is missing or empty")

        self._pools = MappingProxyType(frozen)
        self._rng = rng or random.Random()

    @property
    def pools(self) -> Mapping[Theme, tuple[str, ...]]:
        """Read-only view of the pools."""
        return self._pools

    def pick(self, theme: Theme) -> str:
        """Pick one message for a theme, uniformly at random.

        Repeats across calls are allowed.
        """
        return self._rng.choice(self._pools[theme])


def load_fallback_bank(
    path: Path | None = None,
    rng: random.Random | None = None,
) -> FallbackBank:
    """Load fallback pools from a YAML file.

    The file maps theme names to lists of messages::

        wholesome:
          - "..."
        dark:
          - "..."

    Args:
        path: YAML file; defaults to the packaged data/fallbacks.yaml.
        rng: Random source passed to the bank.

    Returns:
        Validated FallbackBank.

    Raises:
        FallbackBankError: If the file is missing, unparsable or invalid.
    """
    path = path or DEFAULT_FALLBACKS_PATH
    if not path.exists():
        raise FallbackBankError(str(path), "file not found")

    try:
        with path.open("r", encoding="utf-8") as f:
            data = YAML(typ="safe").load(f)
    except Exception as e:
        raise FallbackBankError(str(path), str(e)) from e

    if not isinstance(data, dict):
        raise FallbackBankError(str(path), "expected a mapping of theme -> messages")

    bank = FallbackBank(data, rng=rng, source=str(path))
    log.debug(
        "fallback_bank_loaded",
        path=str(path),
        sizes={theme.value: len(pool) for theme, pool in bank.pools.items()},
    )
    return bank

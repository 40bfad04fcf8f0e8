"""In-memory cache of the latest extraction result.

Holds every language variant of the most recent extraction so that language
switches are dictionary lookups, never network calls. Each submission takes
a generation number from begin(); a store() carrying an older generation is
a late response from an abandoned submission and is dropped.
"""

from __future__ import annotations

from ytscribe.core.models import ExtractionResult, LanguageOption, TranscriptVariant

PREFERRED_LANGUAGE = "en"


def default_language(result: ExtractionResult) -> str | None:
    """Pick the language shown first for a new result.

    Order: exact "en", any "en*" variant, the server's default (if it is
    among the variants), then the first variant in response order.
    """
    codes = list(result.variants)
    if not codes:
        return None
    if PREFERRED_LANGUAGE in result.variants:
        return PREFERRED_LANGUAGE
    for code in codes:
        if code.startswith(PREFERRED_LANGUAGE):
            return code
    if result.default_language and result.default_language in result.variants:
        return result.default_language
    return codes[0]


def match_language(variants: dict[str, TranscriptVariant], code: str) -> str | None:
    """Exact key first, then the first key starting with ``code``."""
    if code in variants:
        return code
    for key in variants:
        if key.startswith(code):
            return key
    return None


class ExtractionCache:
    def __init__(self) -> None:
        self._result: ExtractionResult | None = None
        self._selected: str | None = None
        self._generation = 0
        self._stored_generation = 0

    @property
    def generation(self) -> int:
        """Latest generation issued by begin()."""
        return self._generation

    @property
    def current(self) -> ExtractionResult | None:
        return self._result

    @property
    def selected_language(self) -> str | None:
        return self._selected

    @property
    def selected(self) -> TranscriptVariant | None:
        if self._result is None or self._selected is None:
            return None
        return self._result.variants.get(self._selected)

    @property
    def available_languages(self) -> list[LanguageOption]:
        return list(self._result.available_languages) if self._result else []

    def begin(self) -> int:
        """Start a new submission and return its generation marker."""
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def store(self, result: ExtractionResult, generation: int | None = None) -> bool:
        """Replace the cached result wholesale.

        Args:
            result: The new extraction result.
            generation: Marker from begin(). Omit to store unconditionally
                as a new generation.

        Returns:
            False if the result was stale and discarded.
        """
        if generation is None:
            generation = self.begin()
        elif generation < self._generation or generation <= self._stored_generation:
            return False

        self._result = result
        self._stored_generation = generation
        self._selected = default_language(result)
        return True

    def select_language(self, code: str) -> TranscriptVariant | None:
        """Switch the displayed language without any I/O.

        Returns None (and keeps the current selection) when no variant matches.
        """
        if self._result is None:
            return None
        key = match_language(self._result.variants, code)
        if key is None:
            return None
        self._selected = key
        return self._result.variants[key]

    def clear(self) -> None:
        self._result = None
        self._selected = None

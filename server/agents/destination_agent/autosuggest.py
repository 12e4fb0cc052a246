import inspect
from typing import Any, Awaitable, Callable, List, Sequence, Union

from server.agents.destination_agent.countries import COUNTRIES
from server.utils.debounce import Debouncer

DEBOUNCE_SECONDS = 0.25

SuggestionCallback = Callable[[List[str]], Union[None, Awaitable[None]]]


def filter_countries(query: str, choices: Sequence[str] = COUNTRIES) -> List[str]:
    """Case-insensitive substring match; blank input suggests nothing."""
    needle = (query or "").strip().lower()
    if not needle:
        return []
    return [c for c in choices if needle in c.lower()]


class AutoSuggest:
    """
    Debounced destination suggestions for a text input.

    update() is called on every keystroke; the filter only runs once typing
    has paused for `delay` seconds, and only for the latest value.
    """

    def __init__(self, on_suggestions: SuggestionCallback, delay: float = DEBOUNCE_SECONDS,
                 choices: Sequence[str] = COUNTRIES):
        self.on_suggestions = on_suggestions
        self.choices = choices
        self.value = ""
        self.suggestions: List[str] = []
        self._debouncer = Debouncer(self._run, delay)

    def update(self, value: str) -> None:
        self.value = value
        self._debouncer.trigger(value)

    def select(self, suggestion: str) -> str:
        self._debouncer.cancel()
        self.value = suggestion
        self.suggestions = []
        return suggestion

    def close(self) -> None:
        self._debouncer.cancel()

    async def _run(self, value: str) -> Any:
        results = filter_countries(value, self.choices)
        # An exact single match needs no dropdown
        if len(results) == 1 and results[0].lower() == value.lower():
            results = []
        self.suggestions = results
        outcome = self.on_suggestions(results)
        if inspect.isawaitable(outcome):
            await outcome

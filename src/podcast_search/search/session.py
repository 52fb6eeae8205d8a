"""
Debounced, two-speed search session.

Every input change cancels the pending search and schedules a new one: a
fast lexical pass after a short typing delay, then (for eligible queries) a
remote pass once the input has been quiet for the settle delay. Only the
latest input's results are ever published.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from ..models import ScoredDocument
from .orchestrator import SearchOrchestrator, SearchOutcome
from .strategy import InputPhase, SearchStrategy, SearchStrategyState

logger = logging.getLogger(__name__)

ResultsCallback = Callable[[SearchOutcome], None]
StatusCallback = Callable[[str], None]


class SearchSession:
    """Owns the current query/results slots for one user."""

    def __init__(
        self,
        orchestrator: SearchOrchestrator,
        *,
        typing_delay: float | None = None,
        settle_delay: float | None = None,
        on_results: ResultsCallback | None = None,
        on_status: StatusCallback | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        settings = orchestrator.settings
        self.typing_delay = settings.typing_delay if typing_delay is None else typing_delay
        self.settle_delay = settings.settle_delay if settle_delay is None else settle_delay
        self.on_results = on_results
        self.on_status = on_status

        self.state = SearchStrategyState()
        self.outcome = SearchOutcome(
            results=[ScoredDocument(document=doc) for doc in orchestrator.corpus],
            strategy=SearchStrategy.SKIP,
        )
        self.status = ""
        self.is_searching = False
        self._generation = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def results(self) -> list[ScoredDocument]:
        return self.outcome.results

    @property
    def generation(self) -> int:
        return self._generation

    def update(self, query: str, category: str | None = None) -> None:
        """Register a keystroke or category change. Must run inside an event loop."""
        if not isinstance(query, str):
            raise TypeError(f"query must be a str, got {type(query).__name__}")
        self._generation += 1
        self.state.on_keystroke(query, category)
        self._cancel_pending()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(self._generation))

    async def wait(self) -> None:
        """Wait for the currently scheduled search (if any) to finish."""
        task = self._task
        if task is not None:
            await asyncio.wait({task})

    def close(self) -> None:
        self._cancel_pending()

    def _cancel_pending(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self.is_searching = False
        self.status = ""

    async def _run(self, generation: int) -> None:
        query = self.state.query
        category = self.state.category

        if self.state.phase is InputPhase.IDLE:
            self._publish(generation, self.orchestrator.search(query, category))
            return

        await asyncio.sleep(self.typing_delay)
        fast = self.orchestrator.select(self.state)
        self._publish(generation, self.orchestrator.search(query, category, strategy=fast))

        self.state.settle()
        strategy = self.orchestrator.select(self.state)
        if not strategy.is_remote:
            return

        await asyncio.sleep(self.settle_delay)
        if generation != self._generation:
            return
        self.is_searching = True
        loop = asyncio.get_running_loop()

        def report(message: str) -> None:
            loop.call_soon_threadsafe(self._set_status, generation, message)

        try:
            outcome = await asyncio.to_thread(
                self.orchestrator.search,
                query,
                category,
                strategy=strategy,
                on_status=report,
            )
        except Exception:
            # The lexical pass stays published.
            logger.exception("Remote search for %r failed", query)
            return
        finally:
            if generation == self._generation:
                self.is_searching = False
                self.status = ""

        failures = [attempt for attempt in outcome.attempts if attempt.failure is not None]
        if failures and generation == self._generation:
            self.state.record(failures[-1].strategy, failures[-1].failure)
        self._publish(generation, outcome)

    def _set_status(self, generation: int, message: str) -> None:
        if generation != self._generation:
            return
        self.status = message
        if self.on_status is not None:
            self.on_status(message)

    def _publish(self, generation: int, outcome: SearchOutcome) -> None:
        if generation != self._generation:
            logger.debug("Dropping stale results for generation %d", generation)
            return
        self.outcome = outcome
        if self.on_results is not None:
            self.on_results(outcome)

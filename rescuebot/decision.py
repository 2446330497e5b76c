"""
Decision orchestration: ask the oracle for intent with retry, backoff and fallback.

Retry policy:
- Up to ``max_attempts`` (3) calls per decision
- Only throttling faults (HTTP 429, quota, RESOURCE_EXHAUSTED) are retried, with
  exponential backoff starting at ``initial_backoff`` (2s) and doubling per attempt
- Any other fault, an empty or malformed response, or an exhausted budget yields the
  deterministic fallback ``EXPLORE / LOW`` so the mission always makes progress

Only one request may be in flight. ``submit`` wraps the request in an asyncio.Task
and refuses a second one until ``take_result`` has collected the first.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional

from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from rescuebot.config import Config
from rescuebot.environment import Cell
from rescuebot.errors import DecisionInFlightError, OracleResponseError
from rescuebot.llm_utils import is_throttling_error, summarize_validation_error
from rescuebot.oracle import DecisionOracle, build_decision_request
from rescuebot.schemas import (
    Decision,
    DecisionAction,
    DecisionPriority,
    DecisionRequest,
    RobotState,
)


def fallback_decision(reason: str) -> Decision:
    """Deterministic decision used whenever the oracle cannot answer."""
    return Decision(
        reasoning=f"{reason} Initiating fallback exploration.",
        action=DecisionAction.EXPLORE,
        priority=DecisionPriority.LOW,
    )


@dataclass
class DecisionOutcome:
    """A resolved decision plus the faults met while obtaining it."""

    decision: Decision
    attempts: int = 0
    fallback: bool = False
    faults: List[str] = field(default_factory=list)


class DecisionOrchestrator:
    """Wraps a DecisionOracle with the retry/backoff/fallback policy and in-flight guard."""

    def __init__(
        self,
        oracle: DecisionOracle,
        *,
        max_attempts: Optional[int] = None,
        initial_backoff: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.oracle = oracle
        self.max_attempts = max_attempts or Config.ORACLE_MAX_ATTEMPTS
        self.initial_backoff = (
            initial_backoff if initial_backoff is not None else Config.ORACLE_INITIAL_BACKOFF_SECONDS
        )
        # Injectable so tests can observe backoff without waiting.
        self._sleep = sleep
        self._task: Optional[asyncio.Task[DecisionOutcome]] = None

    # ------------------------------------------------------------------
    # Single request
    # ------------------------------------------------------------------

    async def request_decision(
        self,
        robot_state: RobotState,
        known_world: List[Cell],
        *,
        grid_size: int = Config.GRID_SIZE,
    ) -> Decision:
        """Return the oracle's decision, or the fallback. Never raises on oracle faults."""
        outcome = await self.resolve(build_decision_request(robot_state, known_world, grid_size))
        return outcome.decision

    async def resolve(self, request: DecisionRequest) -> DecisionOutcome:
        """Run the retry policy for ``request`` and report how it went."""

        faults: List[str] = []
        attempts = 0

        def _record_backoff(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            wait = retry_state.next_action.sleep if retry_state.next_action else 0.0
            faults.append(
                f"Rate limit detected (attempt {retry_state.attempt_number}/{self.max_attempts}): "
                f"{exc}. Cooling down for {wait:.1f}s."
            )

        retrying = AsyncRetrying(
            retry=retry_if_exception(is_throttling_error),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.initial_backoff),
            sleep=self._sleep,
            before_sleep=_record_backoff,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    attempts += 1
                    decision = await self._ask(request)
        except ValidationError as exc:
            issues = "; ".join(summarize_validation_error(exc))
            faults.append(f"Malformed oracle response: {issues}")
            return DecisionOutcome(
                decision=fallback_decision("Decision oracle returned a malformed response."),
                attempts=attempts,
                fallback=True,
                faults=faults,
            )
        except Exception as exc:
            throttled = is_throttling_error(exc)
            if throttled:
                faults.append(f"Rate limit persisted after {attempts} attempts: {exc}")
                reason = "Decision oracle rate limit exhausted the retry budget."
            else:
                faults.append(f"Decision oracle fault: {type(exc).__name__}: {exc}")
                reason = "Communication fault with decision oracle."
            return DecisionOutcome(
                decision=fallback_decision(reason),
                attempts=attempts,
                fallback=True,
                faults=faults,
            )

        return DecisionOutcome(decision=decision, attempts=attempts, faults=faults)

    async def _ask(self, request: DecisionRequest) -> Decision:
        response = await self.oracle.decide(request)
        if response is None or response == "" or response == {}:
            raise OracleResponseError("Empty response payload from decision oracle")
        if isinstance(response, Decision):
            return response
        if isinstance(response, (str, bytes)):
            return Decision.model_validate_json(response)
        if isinstance(response, dict):
            return Decision.model_validate(response)
        raise OracleResponseError(f"Unsupported oracle response type: {type(response).__name__}")

    # ------------------------------------------------------------------
    # In-flight guard
    # ------------------------------------------------------------------

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def has_pending(self) -> bool:
        """True from submit() until take_result() collects or cancel() drops the request."""
        return self._task is not None

    def submit(
        self,
        robot_state: RobotState,
        known_world: List[Cell],
        *,
        grid_size: int = Config.GRID_SIZE,
    ) -> asyncio.Task[DecisionOutcome]:
        """Start a background decision request on the running event loop.

        The robot state is deep-copied so the request never observes later ticks.

        Raises:
            DecisionInFlightError: if an earlier request has not been collected
        """
        if self._task is not None:
            raise DecisionInFlightError("A decision request is already outstanding")
        request = build_decision_request(robot_state.model_copy(deep=True), known_world, grid_size)
        self._task = asyncio.create_task(self.resolve(request))
        return self._task

    def take_result(self) -> Optional[DecisionOutcome]:
        """Collect the finished request, if any. Returns None while still in flight."""
        task = self._task
        if task is None or not task.done():
            return None
        self._task = None
        if task.cancelled():
            return None
        return task.result()

    def cancel(self) -> None:
        """Drop the outstanding request (used by mission reset)."""
        if self._task is not None:
            self._task.cancel()
            self._task = None

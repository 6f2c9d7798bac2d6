"""Decision oracle: answers screening questions through an LLM provider.

The oracle never raises to its callers. Any provider failure, timeout or
empty reply is turned into the literal answer ``SKIP``.
"""

import asyncio
import logging
import re
from collections.abc import Callable

from autoapply.core.config import OracleConfig
from autoapply.core.errors import OracleUnavailable
from autoapply.oracle.providers import LLMProvider, clean_response, get_provider

logger = logging.getLogger(__name__)

SKIP = "Skip"

_CLAUSE_SPLIT_RE = re.compile(r"[.,\n]")


def match_option(answer: str, options: list[str]) -> str | None:
    """Return the option equal to ``answer`` ignoring case and edge punctuation."""
    wanted = answer.strip().strip(".!\"'").strip().lower()
    if not wanted:
        return None
    for option in options:
        if option.strip().lower() == wanted:
            return option
    return None


class DecisionOracle:
    """An LLM session pre-conditioned with one applicant profile instruction."""

    def __init__(
        self,
        provider: LLMProvider,
        instruction: str,
        *,
        model: str | None = None,
        timeout_s: float = 30.0,
    ) -> None:
        self._provider = provider
        self._instruction = instruction
        self._model = model
        self._timeout_s = timeout_s

    @property
    def instruction(self) -> str:
        return self._instruction

    async def ask_open_ended(self, question: str) -> str:
        """Single-line first-person answer, or ``SKIP`` on any failure."""
        try:
            text = await self._complete(question)
        except OracleUnavailable as e:
            logger.warning("Oracle unavailable for open question, answering '%s': %s", SKIP, e)
            return SKIP
        return " ".join(text.split())

    async def ask_constrained_choice(self, question: str, options: list[str]) -> str:
        """Pick one of ``options``.

        Returns the literal option when the reply (or its first clause)
        matches one ignoring case, otherwise the first clause as given.
        ``SKIP`` on any failure.
        """
        prompt = (
            "Choose only one from the following options:\n"
            f"Options: {', '.join(options)}\n"
            f"Question: {question}"
        )
        try:
            raw = await self._complete(prompt)
        except OracleUnavailable as e:
            logger.warning("Oracle unavailable for choice question, answering '%s': %s", SKIP, e)
            return SKIP

        whole = match_option(raw, options)
        if whole is not None:
            return whole
        clause = _CLAUSE_SPLIT_RE.split(raw)[0].strip()
        matched = match_option(clause, options)
        return matched if matched is not None else clause

    async def _complete(self, prompt: str) -> str:
        try:
            raw = await asyncio.wait_for(
                asyncio.to_thread(
                    self._provider.complete, prompt, self._model, system=self._instruction,
                ),
                timeout=self._timeout_s,
            )
        except asyncio.TimeoutError as e:
            msg = f"{self._provider.provider_id} timed out after {self._timeout_s}s"
            raise OracleUnavailable(msg) from e
        except Exception as e:
            msg = f"{self._provider.provider_id} call failed: {e}"
            raise OracleUnavailable(msg) from e

        text = clean_response(raw)
        if not text:
            msg = f"{self._provider.provider_id} returned an empty response"
            raise OracleUnavailable(msg)
        return text


OracleFactory = Callable[[str], DecisionOracle]


def oracle_factory(config: OracleConfig) -> OracleFactory:
    """Build oracles for the configured provider, one per instruction.

    The provider (and so its SDK client) is shared by every oracle built.
    """
    provider = get_provider(config.provider)

    def build(instruction: str) -> DecisionOracle:
        return DecisionOracle(
            provider,
            instruction,
            model=config.model,
            timeout_s=config.timeout_s,
        )

    return build


class OracleHandle:
    """Holds the current oracle; initialize() replaces it wholesale.

    Instructions are never blended: the most recent one wins.
    """

    def __init__(self, factory: OracleFactory) -> None:
        self._factory = factory
        self._current: DecisionOracle | None = None

    @property
    def current(self) -> DecisionOracle | None:
        return self._current

    def initialize(self, instruction: str) -> DecisionOracle:
        if not instruction.strip():
            msg = "oracle instruction must not be empty"
            raise ValueError(msg)
        self._current = self._factory(instruction.strip())
        logger.debug("Oracle initialized (%d chars of instruction)", len(instruction))
        return self._current

"""Shared fixtures for retrieval tests."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

import pytest

from unwall.services.retrieval import (
    AcquisitionOutcome,
    BaseStrategy,
    RetrievalMethod,
    StrategyPolicy,
    StrategyStep,
)

PARAGRAPHS = [
    (
        "The city council voted on Tuesday to approve a new budget that expands "
        "public transit service across the northern districts, adding late-night "
        "bus routes and doubling the frequency of the light rail line."
    ),
    (
        "Supporters said the plan would cut commute times for thousands of shift "
        "workers, while critics questioned whether ridership projections were "
        "realistic given the slow recovery of downtown office occupancy."
    ),
    (
        "The measure passed seven to two after a four hour hearing. Officials said "
        "construction on the first new stations could begin next spring, with full "
        "service expected to be running within three years."
    ),
]


def build_article_html(extra_body: str = "") -> str:
    paragraphs = "\n".join(f"<p>{text}</p>" for text in PARAGRAPHS)
    return f"""<html>
<head>
<title>Budget Passes | Daily Ledger</title>
<meta property="og:title" content="Council Approves Transit Budget">
<style>body {{ color: black; }}</style>
</head>
<body>
<header><nav><a href="/">Home</a><a href="/news">News</a></nav></header>
<div class="paywall-overlay"><p>Subscribe now to keep reading this story.</p></div>
<article class="story">
<h1>Council Approves Transit Budget</h1>
{paragraphs}
<div class="ad-slot">Advertisement</div>
<p><a href="/related/story">More coverage</a></p>
<img src="/a/b.png" alt="Map">
{extra_body}
</article>
<footer>Copyright Daily Ledger</footer>
<script>window.dataLayer = [];</script>
</body>
</html>"""


@pytest.fixture
def paragraphs() -> list[str]:
    return list(PARAGRAPHS)


@pytest.fixture
def article_html() -> str:
    return build_article_html()


@pytest.fixture
def build_article() -> Callable[..., str]:
    return build_article_html


class FakeStrategy(BaseStrategy):
    """Strategy double that records calls into a shared log."""

    def __init__(
        self,
        method: RetrievalMethod,
        outcome: Optional[AcquisitionOutcome] = None,
        exc: Optional[BaseException] = None,
        delay: float = 0.0,
        call_log: Optional[list[str]] = None,
    ):
        super().__init__(timeout=1.0)
        self.method = method
        self.outcome = outcome
        self.exc = exc
        self.delay = delay
        self.calls: list[str] = []
        self.call_log = call_log if call_log is not None else []

    async def acquire(self, url: str) -> AcquisitionOutcome:
        self.calls.append(url)
        self.call_log.append(self.method.value)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return self.outcome or AcquisitionOutcome.failed("no_outcome")


@pytest.fixture
def call_log() -> list[str]:
    return []


@pytest.fixture
def make_step(call_log: list[str]) -> Callable[..., StrategyStep]:
    """Build a StrategyStep around a FakeStrategy sharing ``call_log``."""

    def _make(
        method: RetrievalMethod,
        outcome: Optional[AcquisitionOutcome] = None,
        *,
        exc: Optional[BaseException] = None,
        delay: float = 0.0,
        min_chars: int = 100,
        min_paragraphs: Optional[int] = None,
        timeout: float = 1.0,
    ) -> StrategyStep:
        strategy = FakeStrategy(method, outcome, exc=exc, delay=delay, call_log=call_log)
        policy = StrategyPolicy(min_chars=min_chars, timeout=timeout, min_paragraphs=min_paragraphs)
        return StrategyStep(strategy, policy)

    return _make

"""
Headless Render Strategy

Playwright(Chromium)로 페이지를 실제 렌더링하는 전략입니다.
클라이언트 사이드 렌더링만 하는 페이지나 정적 요청이 막힌 사이트에 사용합니다.

흐름:
1. 페이지 이동 (로드 타임아웃 30초, 초과 시 부분 DOM으로 진행)
2. 늦게 도착하는 비동기 콘텐츠를 위해 고정 대기
3. 챌린지 페이지 감지 시 한 번 더 대기 후 재확인
4. 문서 중간까지 스크롤하여 lazy-load 콘텐츠 로드
5. 페이지 안에서 오버레이/페이월/광고 노드 제거, clamp 스타일 해제
6. 최종 제목이 여전히 챌린지 문구면 실패 (부분 결과 없음)

브라우저 프로세스/컨텍스트/페이지는 browser_page() 범위를 벗어나는
모든 경로(예외, 취소 포함)에서 반드시 닫힙니다.
"""

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeout
from playwright.async_api import async_playwright

from unwall.services.retrieval.extractor import AD_PREFIXES, AD_TOKENS, NOISE_PATTERNS
from unwall.services.retrieval.identities import BROWSER
from unwall.services.retrieval.schemas import AcquisitionOutcome, RetrievalMethod
from unwall.services.retrieval.strategies.base import BaseStrategy

# 챌린지(봇 확인) 페이지 시그니처 (소문자 비교)
CHALLENGE_SIGNATURES: tuple[str, ...] = (
    "just a moment",
    "attention required",
    "checking your browser",
    "verify you are human",
    "verifying you are human",
    "please wait while we verify",
    "cf-browser-verification",
    "ddos protection by",
    "security check",
)

BROWSER_ARGS: list[str] = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
]

BODY_TEXT_SCRIPT = "() => document.body ? document.body.innerText.slice(0, 3000) : ''"

SCROLL_SCRIPT = "() => window.scrollTo(0, document.body ? document.body.scrollHeight / 2 : 0)"

# Content Extractor의 2·3단계를 렌더링된 DOM에 그대로 적용
CLEANUP_SCRIPT = """
({ patterns, adPrefixes, adTokens }) => {
  const tokenSet = new Set(adTokens);
  const isNoise = (el) => {
    if (el === document.documentElement || el === document.body) return false;
    const tokens = Array.from(el.classList || []).map((c) => c.toLowerCase());
    if (typeof el.id === "string" && el.id) tokens.push(el.id.toLowerCase());
    return tokens.some((t) =>
      patterns.some((p) => t.includes(p)) ||
      tokenSet.has(t) ||
      adPrefixes.some((p) => t.startsWith(p))
    );
  };

  let removed = 0;
  document.querySelectorAll("*").forEach((el) => {
    if (el.isConnected && isNoise(el)) {
      el.remove();
      removed += 1;
    }
  });

  document.querySelectorAll("[style]").forEach((el) => {
    const style = el.getAttribute("style") || "";
    if (/overflow\\s*:\\s*hidden|max-height|line-clamp/i.test(style)) {
      el.removeAttribute("style");
    }
  });

  document.querySelectorAll("[class]").forEach((el) => {
    Array.from(el.classList).forEach((c) => {
      if (/^(truncate|line-clamp(-\\w+)?|overflow-hidden)$/.test(c)) el.classList.remove(c);
    });
  });

  return removed;
}
"""


def is_challenge_text(text: Optional[str]) -> bool:
    """제목/본문 텍스트가 챌린지 페이지 문구를 포함하는지 확인합니다."""
    if not text:
        return False
    lowered = text.lower()
    return any(signature in lowered for signature in CHALLENGE_SIGNATURES)


@asynccontextmanager
async def browser_page(user_agent: str = BROWSER.headers["User-Agent"]) -> AsyncIterator[Page]:
    """
    Chromium 브라우저/컨텍스트/페이지를 범위 안에서만 제공합니다.

    정상 종료, 예외, 취소 어느 경로든 page → context → browser 순으로 닫습니다.
    """
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True, args=BROWSER_ARGS)
        try:
            context = await browser.new_context(
                viewport={"width": 1920, "height": 1080},
                user_agent=user_agent,
                locale="en-US",
            )
            try:
                page = await context.new_page()
                try:
                    yield page
                finally:
                    await page.close()
            finally:
                await context.close()
        finally:
            await browser.close()
            logger.debug("[headless] Browser closed")


class HeadlessRenderStrategy(BaseStrategy):
    """
    헤드리스 렌더링 전략 (method: headless)

    가장 무거운 전략이므로 semaphore로 동시 실행 수를 제한할 수 있습니다.
    """

    method = RetrievalMethod.HEADLESS

    DEFAULT_TIMEOUT: float = 30.0

    def __init__(
        self,
        timeout: Optional[float] = None,
        settle_ms: int = 2000,
        challenge_wait_ms: int = 15000,
        scroll_wait_ms: int = 1000,
        semaphore: Optional[asyncio.Semaphore] = None,
        page_factory: Callable[..., contextlib.AbstractAsyncContextManager] = browser_page,
    ):
        """
        Args:
            timeout: 페이지 로드 타임아웃 (초). 기본값 30초
            settle_ms: 로드 후 고정 대기 시간 (ms)
            challenge_wait_ms: 챌린지 감지 시 추가 대기 상한 (ms)
            scroll_wait_ms: 스크롤 후 대기 시간 (ms)
            semaphore: 동시 렌더링 수 제한 (None이면 제한 없음)
            page_factory: 페이지를 제공하는 async context manager 팩토리
        """
        super().__init__(timeout=timeout)
        self.settle_ms = settle_ms
        self.challenge_wait_ms = challenge_wait_ms
        self.scroll_wait_ms = scroll_wait_ms
        self.semaphore = semaphore
        self.page_factory = page_factory

    @property
    def budget(self) -> float:
        """전체 타임아웃 예산 (초): 로드 + 대기들 + 브라우저 기동 여유"""
        waits_ms = 2 * self.settle_ms + self.challenge_wait_ms + self.scroll_wait_ms
        return self.timeout + waits_ms / 1000 + 10.0

    async def acquire(self, url: str) -> AcquisitionOutcome:
        slot = self.semaphore if self.semaphore is not None else contextlib.nullcontext()
        async with slot:
            logger.info(f"🎭 [headless] Launching browser: {url}")
            try:
                async with self.page_factory(BROWSER.headers["User-Agent"]) as page:
                    return await self._render(page, url)
            except PlaywrightError as e:
                logger.warning(f"[headless] Browser error for {url}: {e}")
                return AcquisitionOutcome.failed(f"browser_error ({type(e).__name__})")

    async def _render(self, page: Page, url: str) -> AcquisitionOutcome:
        status_code = None
        try:
            response = await page.goto(
                url, wait_until="domcontentloaded", timeout=self.timeout * 1000
            )
            status_code = response.status if response else None
        except PlaywrightTimeout:
            logger.warning("[headless] Page load timeout, continuing with partial DOM...")

        await page.wait_for_timeout(self.settle_ms)

        if await self._is_challenge(page):
            logger.warning(f"[headless] Challenge page detected, waiting once more: {url}")
            try:
                await page.wait_for_load_state("networkidle", timeout=self.challenge_wait_ms)
            except PlaywrightTimeout:
                logger.debug("[headless] Challenge wait timed out")
            await page.wait_for_timeout(self.settle_ms)
            if await self._is_challenge(page):
                logger.warning(f"[headless] Challenge still present after wait: {url}")

        await page.evaluate(SCROLL_SCRIPT)
        await page.wait_for_timeout(self.scroll_wait_ms)

        removed = await page.evaluate(
            CLEANUP_SCRIPT,
            {
                "patterns": list(NOISE_PATTERNS),
                "adPrefixes": list(AD_PREFIXES),
                "adTokens": sorted(AD_TOKENS),
            },
        )
        logger.debug(f"[headless] Removed {removed} overlay/paywall nodes in page")

        title = await page.title()
        if is_challenge_text(title):
            logger.warning(f"[headless] Final title is a challenge page ('{title}'): {url}")
            return AcquisitionOutcome.failed("challenge_page", status_code=status_code)

        html = await page.content()
        if not html or not html.strip():
            return AcquisitionOutcome.failed("empty_render", status_code=status_code)

        logger.info(f"[headless] Rendered {len(html):,} chars: {url}")
        return AcquisitionOutcome.ok(html, status_code=status_code)

    async def _is_challenge(self, page: Page) -> bool:
        title = await page.title()
        if is_challenge_text(title):
            return True
        body_text = await page.evaluate(BODY_TEXT_SCRIPT)
        return is_challenge_text(body_text)

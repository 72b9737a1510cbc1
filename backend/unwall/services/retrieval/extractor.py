"""
Content Extractor Module

원본 마크업에서 본문 서브트리를 분리하고 정제하는 공유 파이프라인입니다.
어떤 전략(live, mercenary, headless, archive)이 가져온 페이지든
동일한 단계를 거치므로 후속 처리가 출처와 무관하게 일관됩니다.

정제 단계:
1. 구조적 비콘텐츠 노드 제거 (script, style, nav, footer ...)
2. 페이월/구독/모달/광고 노드 제거 (class, id 부분 일치, 의도적으로 넓게)
3. overflow/line-clamp 스타일 및 truncate 계열 클래스 무력화
4. 우선순위 후보 목록으로 본문 노드 선택
5. 본문 내부 2차 보일러플레이트 제거
6. 본문 범위에서 2단계 재실행
7. 상대 링크/이미지 경로를 절대 URL로 변환
8. 제목 결정 (og:title → title → h1 → 본문 h1/h2 → placeholder)
"""

import re
from typing import Iterable, NamedTuple, Union
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Doctype, NavigableString, Tag
from loguru import logger

from unwall.services.retrieval.schemas import ExtractedContent


class CandidateRule(NamedTuple):
    """본문 후보 규칙: 선택자와 최소 텍스트 길이"""

    selector: str
    min_text_length: int = 100


ExtractionCandidateSet = tuple[CandidateRule, ...]

# 본문 추출 우선순위 (앞에서부터 평가)
DEFAULT_CANDIDATES: ExtractionCandidateSet = (
    CandidateRule("article"),
    CandidateRule("main"),
    CandidateRule("[class*='article-body']"),
    CandidateRule("[class*='article-content']"),
    CandidateRule("[class*='story-body']"),
    CandidateRule("[class*='entry-content']"),
    CandidateRule("[itemprop='articleBody']"),
    CandidateRule("[class*='content']"),
    CandidateRule("[class*='post']"),
)

# 1단계: 문서 전체에서 제거할 구조적 노드
STRUCTURAL_NOISE_SELECTORS: list[str] = [
    "script", "noscript", "style", "svg",
    "nav", "footer", "header", "aside",
    "iframe", "form", "button",
    "[role='banner']", "[role='navigation']", "[role='complementary']",
]

# 5단계: 본문 내부에서 제거할 2차 보일러플레이트
SECONDARY_NOISE_SELECTORS: list[str] = [
    "style", "nav", "footer", "iframe", "header", "aside", "form", "button",
]

# class/id 부분 일치 패턴 (false positive는 감수)
NOISE_PATTERNS: tuple[str, ...] = (
    "paywall",
    "subscri",  # subscribe, subscription, subscriber
    "metered",
    "piano",
    "gate",
    "regwall",
    "login-wall",
    "premium-content",
    "article-limit",
    "modal",
    "overlay",
    "popup",
    "cookie",
    "consent",
    "newsletter",
    "signup",
    "fade-out",
    "fadeout",
    "recommend",
    "outbrain",
    "taboola",
    "nag",
    "prompt",
    "truncated",
    "wm-ipp",  # Wayback Machine 툴바
)

# 광고 접두 토큰
AD_TOKENS: frozenset[str] = frozenset({"ad", "ads", "advert", "adverts"})
AD_PREFIXES: tuple[str, ...] = ("ad-", "ads-", "ad_", "ads_", "advert")

# 텍스트가 정확히 일치하면 제거할 리프 요소
BOILERPLATE_TEXTS: frozenset[str] = frozenset(
    {"Advertisement", "Supported by", "Related Content"}
)
BOILERPLATE_PREFIXES: tuple[str, ...] = ("See more on:",)

CLAMP_STYLE_PATTERN = re.compile(
    r"overflow\s*:\s*hidden|max-height|line-clamp", re.IGNORECASE
)
CLAMP_CLASS_PATTERN = re.compile(r"^(truncate|line-clamp(-\w+)?|overflow-hidden)$")

# 변환하지 않는 참조 (data URI, fragment, mailto, javascript)
UNTOUCHED_REFERENCE_PREFIXES: tuple[str, ...] = ("data:", "#", "mailto:", "javascript:")

# 공백 텍스트 정규화에서 제외 (공백이 내용인 요소)
PRESERVE_WHITESPACE_TAGS: tuple[str, ...] = ("pre", "textarea")

# 본문 HTML에 포함하지 않는 문서 수준 요소
DOCUMENT_ONLY_TAGS: list[str] = ["head", "title", "meta", "link", "base"]

UNTITLED = "Untitled Document"

Node = Union[BeautifulSoup, Tag]


class BaseTextExtractor:
    """
    HTML에서 텍스트를 추출하고 정제하는 유틸리티 클래스

    역할:
    - 공백/줄바꿈 정규화
    - 노이즈 요소 제거
    """

    @staticmethod
    def clean_text(text: str) -> str:
        """
        텍스트를 정리합니다.
        - 3줄 이상 연속 줄바꿈 → 2줄로 정규화
        - 탭/연속 공백 → 스페이스 1개로 정규화
        - 각 줄의 앞뒤 공백 제거

        Args:
            text: 원본 텍스트

        Returns:
            정리된 텍스트
        """
        if not text:
            return ""

        text = re.sub(r'\n{3,}', '\n\n', text)
        text = re.sub(r'[ \t]+', ' ', text)
        lines = [line.strip() for line in text.split('\n')]
        return '\n'.join(lines).strip()

    @staticmethod
    def remove_noise_elements(root: Node, selectors: list[str]) -> int:
        """
        선택자와 일치하는 요소를 제자리에서 제거합니다.

        Args:
            root: 탐색 범위 (문서 또는 요소)
            selectors: 제거할 CSS 선택자 목록

        Returns:
            제거된 요소 수
        """
        return _decompose_all(root.select(", ".join(selectors)))


def _decompose_all(nodes: Iterable[Tag]) -> int:
    """이미 제거된 조상 아래의 노드는 건너뛰며 모두 제거합니다."""
    removed = 0
    for node in nodes:
        if node.decomposed:
            continue
        node.decompose()
        removed += 1
    return removed


def _class_tokens(tag: Tag) -> list[str]:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    return list(classes)


def is_noise_node(tag: Tag) -> bool:
    """class 또는 id가 페이월/오버레이/광고 패턴과 일치하는지 확인합니다."""
    if tag.name in ("html", "body"):
        return False

    tokens = [token.lower() for token in _class_tokens(tag)]
    element_id = tag.get("id")
    if isinstance(element_id, str) and element_id:
        tokens.append(element_id.lower())

    for token in tokens:
        if any(pattern in token for pattern in NOISE_PATTERNS):
            return True
        if token in AD_TOKENS or token.startswith(AD_PREFIXES):
            return True
    return False


def resolve_reference(reference: str, base_url: str) -> str:
    """
    상대 참조를 base_url 기준 절대 URL로 변환합니다.

    절대 URL, data URI, fragment, mailto:, javascript:는 그대로 둡니다.

    Example:
        >>> resolve_reference("/a/b.png", "https://x.com/y")
        'https://x.com/a/b.png'
    """
    stripped = reference.strip()
    if not stripped:
        return reference
    if stripped.lower().startswith(UNTOUCHED_REFERENCE_PREFIXES):
        return reference
    if urlparse(stripped).scheme in ("http", "https"):
        return reference
    try:
        return urljoin(base_url, stripped)
    except ValueError:
        logger.debug(f"Unresolvable reference left as-is: {reference}")
        return reference


def resolve_srcset(srcset: str, base_url: str) -> str:
    """
    srcset의 후보 URL을 각각 절대 URL로 변환합니다 (크기 서술자는 유지).

    Example:
        >>> resolve_srcset("/a.png 1x, /b.png 2x", "https://x.com/y")
        'https://x.com/a.png 1x, https://x.com/b.png 2x'
    """
    # data URI 안의 콤마는 후보 구분자가 아님
    if "data:" in srcset.lower():
        return srcset

    candidates = []
    for candidate in srcset.split(","):
        parts = candidate.split(None, 1)
        if not parts:
            continue
        parts[0] = resolve_reference(parts[0], base_url)
        candidates.append(" ".join(parts))
    return ", ".join(candidates)


def is_full_document(soup: BeautifulSoup) -> bool:
    """html/head 태그나 doctype이 있으면 본문 조각이 아니라 전체 문서로 봅니다."""
    if soup.find(["html", "head"]) is not None:
        return True
    return any(isinstance(item, Doctype) for item in soup.contents)


def collapse_blank_strings(root: Node) -> None:
    """
    공백만 있는 텍스트 노드를 정규화합니다.

    노드 제거로 이웃하게 된 공백 노드는 하나로 합치고,
    줄바꿈이 있으면 "\\n" 하나로 줄입니다. pre/textarea 내부는 건드리지 않습니다.
    """
    for text in list(root.find_all(string=True)):
        if type(text) is not NavigableString or text.strip():
            continue
        if text.find_parent(PRESERVE_WHITESPACE_TAGS) is not None:
            continue

        previous = text.previous_sibling
        if type(previous) is NavigableString and not previous.strip():
            if "\n" in text and "\n" not in previous:
                previous.replace_with("\n")
            text.extract()
        elif "\n" in text and text != "\n":
            text.replace_with("\n")


def visible_text_length(node: Node) -> int:
    return len(node.get_text(" ", strip=True))


class ContentExtractor(BaseTextExtractor):
    """
    본문 추출기

    모든 전략의 출력에 동일하게 적용됩니다.
    인스턴스는 상태를 갖지 않으므로 요청 간에 공유해도 안전합니다.
    """

    def __init__(self, candidates: ExtractionCandidateSet = DEFAULT_CANDIDATES):
        self.candidates = candidates

    def extract(self, raw_markup: str, base_url: str) -> ExtractedContent:
        """
        원본 마크업에서 제목과 정제된 본문 HTML 조각을 추출합니다.

        Args:
            raw_markup: 전략이 획득한 원본 HTML
            base_url: 상대 경로 해석 기준 URL

        Returns:
            ExtractedContent (title, html, text, paragraph_count)
        """
        soup = BeautifulSoup(raw_markup or "", "html.parser")

        # 1. 구조적 노드 제거
        self.remove_noise_elements(soup, STRUCTURAL_NOISE_SELECTORS)

        # 2. 페이월/오버레이/광고 노드 제거
        self.strip_noise_nodes(soup)

        # 3. CSS 기반 부분 노출 트릭 무력화
        self.clear_clamps(soup)

        # 4. 본문 노드 선택
        node = self.select_main_node(soup)

        # 5. 2차 보일러플레이트 제거
        self.remove_noise_elements(node, SECONDARY_NOISE_SELECTORS)
        self.remove_boilerplate_leaves(node)

        # 6. 본문 범위에서 노이즈 재탐색
        self.strip_noise_nodes(node)

        # 7. 링크/이미지 절대 경로 변환
        self.absolutize_references(node, base_url)

        # 8. 제목 결정
        title = self.resolve_title(soup, node)

        # 문서 수준 노드(head, doctype)와 제거 흔적 공백은 본문에서 제외
        self.remove_document_nodes(node)
        collapse_blank_strings(node)

        html = node.decode_contents()
        text = self.clean_text(node.get_text(separator="\n", strip=True))
        paragraph_count = sum(1 for p in node.find_all("p") if p.get_text(strip=True))

        logger.debug(
            f"Extracted '{title}' from {base_url}: "
            f"{len(text):,} chars, {paragraph_count} paragraphs"
        )
        return ExtractedContent(
            title=title,
            html=html,
            text=text,
            paragraph_count=paragraph_count,
        )

    # ─────────────────────────────────────────────────────────────────────────
    # 노이즈 제거
    # ─────────────────────────────────────────────────────────────────────────

    def strip_noise_nodes(self, root: Node) -> int:
        """root 하위에서 페이월/오버레이/광고 패턴 노드를 제거합니다."""
        removed = _decompose_all(
            tag for tag in root.find_all(True) if not tag.decomposed and is_noise_node(tag)
        )
        if removed:
            logger.debug(f"Removed {removed} paywall/overlay/ad nodes")
        return removed

    def clear_clamps(self, root: Node) -> None:
        """overflow:hidden, max-height, line-clamp 스타일과 truncate 계열 클래스를 제거합니다."""
        for tag in root.find_all(True):
            style = tag.get("style")
            if isinstance(style, str) and CLAMP_STYLE_PATTERN.search(style):
                del tag["style"]

            classes = _class_tokens(tag)
            kept = [c for c in classes if not CLAMP_CLASS_PATTERN.match(c)]
            if len(kept) != len(classes):
                if kept:
                    tag["class"] = kept
                else:
                    del tag["class"]

    def remove_boilerplate_leaves(self, root: Node) -> int:
        """텍스트가 알려진 보일러플레이트 문구와 일치하는 리프 요소를 제거합니다."""
        leaves = []
        for tag in root.find_all(True):
            if tag.find(True) is not None:
                continue
            text = tag.get_text(strip=True)
            if text in BOILERPLATE_TEXTS or text.startswith(BOILERPLATE_PREFIXES):
                leaves.append(tag)
        return _decompose_all(leaves)

    def remove_document_nodes(self, root: Node) -> None:
        """head 계열 요소와 doctype을 제거합니다 (body 없는 문서를 통째로 쓰는 경우)."""
        _decompose_all(root.find_all(DOCUMENT_ONLY_TAGS))
        for item in list(root.contents):
            if isinstance(item, Doctype):
                item.extract()

    # ─────────────────────────────────────────────────────────────────────────
    # 본문 선택
    # ─────────────────────────────────────────────────────────────────────────

    def select_main_node(self, soup: BeautifulSoup) -> Node:
        """
        우선순위 후보 목록으로 본문 노드를 선택합니다.

        1. 후보 규칙을 순서대로 평가, 텍스트가 임계값을 넘는 첫 노드
        2. 임계값을 넘는 가장 큰 div/section
        3. body (body를 생략한 문서는 html 루트)

        html/head/doctype이 모두 없는 마크업은 이미 분리된 본문 조각으로 간주하고 그대로 사용합니다.
        """
        if soup.body is None and not is_full_document(soup):
            return soup

        scope = soup.body or soup.html or soup

        for rule in self.candidates:
            for node in scope.select(rule.selector):
                if visible_text_length(node) > rule.min_text_length:
                    logger.debug(f"Main content matched candidate: {rule.selector}")
                    return node

        threshold = self.candidates[-1].min_text_length if self.candidates else 100
        containers = [
            node for node in scope.find_all(["div", "section"])
            if visible_text_length(node) > threshold
        ]
        if containers:
            logger.debug("Main content fell back to largest container")
            return max(containers, key=visible_text_length)

        logger.debug("Main content fell back to whole body")
        return scope

    # ─────────────────────────────────────────────────────────────────────────
    # 링크/제목
    # ─────────────────────────────────────────────────────────────────────────

    def absolutize_references(self, root: Node, base_url: str) -> None:
        """이미지 src/srcset과 링크 href를 절대 URL로 바꾸고 링크에 안전한 속성을 부여합니다."""
        for img in root.find_all("img"):
            src = img.get("src") or img.get("data-src") or img.get("data-lazy-src")
            if src:
                img["src"] = resolve_reference(src, base_url)

        for tag in root.find_all(["img", "source"]):
            srcset = tag.get("srcset")
            if isinstance(srcset, str) and srcset.strip():
                tag["srcset"] = resolve_srcset(srcset, base_url)

        for link in root.find_all("a"):
            href = link.get("href")
            if href:
                link["href"] = resolve_reference(href, base_url)
            link["target"] = "_blank"
            link["rel"] = "noopener noreferrer"

    def resolve_title(self, soup: BeautifulSoup, node: Node) -> str:
        """
        제목을 우선순위에 따라 결정합니다.

        추출 우선순위:
        1. og:title 메타 태그
        2. title 태그
        3. 문서의 첫 h1
        4. 본문 노드의 첫 h1/h2
        5. "Untitled Document"
        """
        og_title = soup.find("meta", property="og:title")
        if og_title and isinstance(og_title.get("content"), str) and og_title["content"].strip():
            return og_title["content"].strip()

        title_tag = soup.find("title")
        if title_tag and title_tag.get_text(strip=True):
            return title_tag.get_text(strip=True)

        h1 = soup.find("h1")
        if h1 and h1.get_text(strip=True):
            return h1.get_text(strip=True)

        heading = node.find(["h1", "h2"])
        if heading and heading.get_text(strip=True):
            return heading.get_text(strip=True)

        return UNTITLED


def extract(raw_markup: str, base_url: str) -> ExtractedContent:
    """기본 후보 목록으로 본문을 추출하는 모듈 수준 단축 함수"""
    return ContentExtractor().extract(raw_markup, base_url)


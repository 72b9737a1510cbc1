"""
Reader Markup Converter

외부 리더 서비스(readability proxy)가 돌려주는 마크다운 페이로드를
다른 전략과 동일한 HTML 계약으로 변환합니다.

페이로드 형식:
    Title: <제목>
    URL Source: <원본 URL>
    Markdown Content:
    <본문>

본문 렌더링은 CommonMark 파서(markdown-it-py)가 담당하고,
이 모듈은 헤더 분리와 문서 래핑만 처리합니다.
"""

import html
from typing import Optional

from markdown_it import MarkdownIt

# 본문 앞에 붙는 메타 헤더 줄
HEADER_PREFIXES: tuple[str, ...] = (
    "URL Source:",
    "Published Time:",
    "Markdown Content:",
    "Warning:",
)

# 본문 안의 원시 HTML은 태그로 해석하지 않고 텍스트로 escape
_renderer = MarkdownIt("commonmark", {"html": False}).enable(["table", "strikethrough"])


def split_payload(payload: str) -> tuple[Optional[str], str]:
    """
    페이로드를 (제목, 본문)으로 분리합니다.

    첫 줄이 "Title:"로 시작하면 제목으로 사용하고,
    이어지는 메타 헤더 줄(URL Source 등)은 건너뜁니다.
    """
    lines = payload.replace("\r\n", "\n").split("\n")
    title = None

    index = 0
    while index < len(lines) and not lines[index].strip():
        index += 1

    if index < len(lines) and lines[index].startswith("Title:"):
        title = lines[index][len("Title:"):].strip() or None
        index += 1
        while index < len(lines):
            stripped = lines[index].strip()
            if stripped and not stripped.startswith(HEADER_PREFIXES):
                break
            index += 1

    return title, "\n".join(lines[index:])


def reader_body_to_html(body: str) -> str:
    """본문 마크다운을 HTML 조각으로 변환합니다."""
    return _renderer.render(body)


def reader_to_html(payload: str) -> str:
    """
    리더 페이로드 전체를 HTML 문서로 변환합니다.

    제목은 <title>에, 본문은 <article> 안에 배치하여
    Content Extractor가 다른 전략의 출력과 똑같이 처리할 수 있게 합니다.

    Args:
        payload: 리더 서비스 응답 텍스트

    Returns:
        완전한 HTML 문서 문자열
    """
    title, body = split_payload(payload)
    head = f"<title>{html.escape(title)}</title>" if title else ""
    return (
        f"<html><head>{head}</head>"
        f"<body><article>\n{reader_body_to_html(body)}</article></body></html>"
    )

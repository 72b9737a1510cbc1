"""
Quality Gate

추출된 본문이 최종 결과로 수락할 만큼 충분한지 판정합니다.

판정 규칙 (순서대로):
1. 텍스트 길이가 전략별 하한 미만이면 거부
2. 문단 수 하한이 설정된 경우(live 경로) 문단 블록이 부족하면 거부
3. "추가 렌더링 필요" 문구가 포함되어 있으면 거부
"""

from typing import NamedTuple, Optional

from unwall.services.retrieval.schemas import ExtractedContent

# 로딩 셸 / 구독자 전용 / 플레이어 로딩 안내 문구 (소문자 비교)
BLOCKED_PHRASES: tuple[str, ...] = (
    "enable javascript",
    "javascript is required",
    "javascript is disabled",
    "please enable js",
    "this site requires javascript",
    "you need to enable javascript",
    "subscribe to continue reading",
    "subscribers only",
    "this content is for subscribers",
    "this article is for subscribers",
    "create a free account to continue",
    "already a subscriber? log in",
    "loading player",
    "player is loading",
    "video player is loading",
)


class QualityVerdict(NamedTuple):
    accepted: bool
    reason: Optional[str] = None


class QualityGate:
    """
    휴리스틱 본문 품질 판정기

    Args:
        blocked_phrases: 포함 시 거부할 문구 목록
    """

    def __init__(self, blocked_phrases: tuple[str, ...] = BLOCKED_PHRASES):
        self.blocked_phrases = tuple(p.lower() for p in blocked_phrases)

    def check(
        self,
        content: ExtractedContent,
        min_chars: int,
        min_paragraphs: Optional[int] = None,
    ) -> QualityVerdict:
        """
        추출 결과를 판정합니다.

        Args:
            content: Content Extractor 출력
            min_chars: 텍스트 길이 하한
            min_paragraphs: 문단 수 하한 (None이면 검사 생략)

        Returns:
            QualityVerdict (accepted, reason)
        """
        text_length = len(content.text)
        if text_length < min_chars:
            return QualityVerdict(False, f"too_short ({text_length} < {min_chars} chars)")

        if min_paragraphs is not None and content.paragraph_count < min_paragraphs:
            return QualityVerdict(
                False,
                f"too_few_paragraphs ({content.paragraph_count} < {min_paragraphs})",
            )

        phrase = self.find_blocked_phrase(content.text)
        if phrase:
            return QualityVerdict(False, f"blocked_phrase ('{phrase}')")

        return QualityVerdict(True)

    def find_blocked_phrase(self, text: str) -> Optional[str]:
        lowered = text.lower()
        for phrase in self.blocked_phrases:
            if phrase in lowered:
                return phrase
        return None

"""
Identity Profiles

외부 요청에 사용할 클라이언트 신원(헤더 세트)을 정의합니다.
모든 프로필은 프로세스 수명 동안 변하지 않는 상수입니다.

- BROWSER: 일반 데스크톱 브라우저 (프로필 #1, 동적 Referer)
- GOOGLEBOT: 잘 알려진 검색엔진 크롤러 (프로필 #2, 고정 Referer)
- SOCIAL_PREVIEW_PROFILES: 소셜 미리보기 fetcher (저비용 대체 신원)
"""

from types import MappingProxyType
from typing import Mapping, NamedTuple
from urllib.parse import urlparse


class IdentityProfile(NamedTuple):
    """이름이 붙은 불변 헤더 매핑"""

    name: str
    headers: Mapping[str, str]


def _profile(name: str, headers: dict[str, str]) -> IdentityProfile:
    return IdentityProfile(name=name, headers=MappingProxyType(dict(headers)))


BROWSER = _profile(
    "browser",
    {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
        ),
        "Accept": (
            "text/html,application/xhtml+xml,application/xml;q=0.9,"
            "image/avif,image/webp,image/apng,*/*;q=0.8"
        ),
        "Accept-Language": "en-US,en;q=0.9",
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
        "Sec-Ch-Ua": '"Chromium";v="131", "Not_A Brand";v="24"',
        "Sec-Ch-Ua-Mobile": "?0",
        "Sec-Ch-Ua-Platform": '"Windows"',
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "none",
        "Sec-Fetch-User": "?1",
        "Upgrade-Insecure-Requests": "1",
    },
)

GOOGLEBOT = _profile(
    "googlebot",
    {
        "User-Agent": (
            "Mozilla/5.0 (Linux; Android 6.0.1; Nexus 5X Build/MMB29P) "
            "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Mobile Safari/537.36 "
            "(compatible; Googlebot/2.1; +http://www.google.com/bot.html)"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Referer": "https://www.google.com/",
    },
)

SOCIAL_PREVIEW_PROFILES: tuple[IdentityProfile, ...] = (
    _profile(
        "facebookexternalhit",
        {
            "User-Agent": (
                "facebookexternalhit/1.1 "
                "(+http://www.facebook.com/externalhit_uatext.php)"
            ),
            "Accept": "text/html,application/xhtml+xml,*/*;q=0.8",
        },
    ),
    _profile(
        "twitterbot",
        {
            "User-Agent": "Twitterbot/1.0",
            "Accept": "text/html,application/xhtml+xml,*/*;q=0.8",
        },
    ),
    _profile(
        "linkedinbot",
        {
            "User-Agent": (
                "LinkedInBot/1.0 (compatible; Mozilla/5.0; "
                "Apache-HttpClient +http://www.linkedin.com)"
            ),
            "Accept": "text/html,application/xhtml+xml,*/*;q=0.8",
        },
    ),
)


def search_referer(url: str) -> str:
    """검색 결과에서 유입된 것처럼 보이는 Referer를 만듭니다."""
    host = urlparse(url).hostname or ""
    return f"https://www.google.com/search?q=site:{host}"


def browser_headers(url: str) -> dict[str, str]:
    """프로필 #1 헤더에 대상 호스트 기반 동적 Referer를 더해 반환합니다."""
    return {**BROWSER.headers, "Referer": search_referer(url)}

"""
시즌 라벨 해석기

자유 입력/다국어 시즌 라벨("Season 1", "الموسم الأول", "وەرزی یەکەم", "Saeson 2 " 등)을
시즌 엔티티로 해석한다. DB 접근 없는 순수 함수만 둔다.

- seasons 인자는 id / names / order 속성을 가진 객체 목록 (models.seasons.Season 등)
- 해석 실패 시 None, 절대로 '첫 번째 시즌' 으로 대체하지 않는다.
"""
import re
from typing import Iterable, Optional, Set

from services.grading.errors import SeasonNotResolved

_WHITESPACE = re.compile(r"\s+")
_CANONICAL = re.compile(r"^season (\d+)$")
_FIRST_NUMBER = re.compile(r"\d+")


def normalize_label(label) -> str:
    """앞뒤 공백 제거 + 소문자 + 연속 공백 1칸으로"""
    if label is None:
        return ""
    return _WHITESPACE.sub(" ", str(label).strip()).lower()


def season_variants(season) -> Set[str]:
    """시즌 하나가 가질 수 있는 모든 라벨 (정규화 형태)"""
    variants = {normalize_label(name) for name in (season.names or ())}
    if season.order is not None:
        variants.add(f"season {season.order}")
    variants.discard("")
    return variants


def _canonical_order(candidate: str) -> Optional[int]:
    match = _CANONICAL.match(candidate)
    return int(match.group(1)) if match else None


def _first_number(candidate: str) -> Optional[int]:
    # \d 는 아랍-인도 숫자(٢ 등)도 포함, int() 가 그대로 변환한다
    match = _FIRST_NUMBER.search(candidate)
    return int(match.group(0)) if match else None


def _lowest_order(matches):
    return min(matches, key=lambda s: (s.order if s.order is not None else float("inf"), s.id or 0))


def resolve(label, seasons: Iterable):
    """
    라벨 → 시즌 (없으면 None)

    1) 정확 일치: 라벨이 시즌의 이름/별칭/"Season {order}" 중 하나와 일치
       (여러 개면 order 가 가장 작은 시즌)
    2) 숫자 대체: 라벨의 첫 번째 정수를 order 와 비교
    """
    candidate = normalize_label(label)
    if not candidate:
        return None

    seasons = list(seasons)
    canonical = _canonical_order(candidate)

    exact = [
        s for s in seasons
        if candidate in season_variants(s) or (canonical is not None and s.order == canonical)
    ]
    if exact:
        return _lowest_order(exact)

    number = _first_number(candidate)
    if number is not None:
        by_order = [s for s in seasons if s.order == number]
        if by_order:
            return _lowest_order(by_order)

    return None


def resolve_or_raise(label, seasons: Iterable):
    season = resolve(label, seasons)
    if season is None:
        raise SeasonNotResolved(label)
    return season

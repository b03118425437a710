import pytest

from models.seasons import Season
from services.grading import season_resolver
from services.grading.errors import SeasonNotResolved


SEASONS = [
    Season(id=1, name_en="Season 1", name_ar="الموسم الأول", name_ku="وەرزی یەکەم", aliases=["S1"], order=1),
    Season(id=2, name_en="Season 2", name_ar="الموسم الثاني", name_ku="وەرزی دووەم", aliases=[], order=2),
    Season(id=3, name_en="Autumn term", name_ar=None, name_ku=None, aliases=["AUT"], order=3),
]


@pytest.mark.parametrize("season", SEASONS, ids=lambda s: s.name_en)
def test_every_variant_resolves_to_its_season(season):
    for variant in season_resolver.season_variants(season):
        assert season_resolver.resolve(variant, SEASONS) is season


@pytest.mark.parametrize(
    "label, expected_id",
    [
        ("Season 1", 1),
        ("  season   1 ", 1),
        ("SEASON 2", 2),
        ("الموسم الأول", 1),
        ("وەرزی دووەم", 2),
        ("s1", 1),
        ("aut", 3),
        ("Season 3", 3),          # 이름은 다르지만 "Season {order}" 형태
        ("Saeson 2 ", 2),         # 오타 → 숫자 대체
        ("term-3", 3),
        ("الموسم ٢", 2),           # 아랍-인도 숫자
    ],
)
def test_resolve_literal_table(label, expected_id):
    assert season_resolver.resolve(label, SEASONS).id == expected_id


@pytest.mark.parametrize("label", ["Spring", "", "   ", None, "Seson  7", "Season 10"])
def test_unresolvable_labels_return_none(label):
    assert season_resolver.resolve(label, SEASONS) is None


def test_never_defaults_to_first_season_when_list_is_nonempty():
    assert season_resolver.resolve("no season here", SEASONS) is None


def test_ambiguous_exact_match_picks_lowest_order():
    later = Season(id=10, name_en="Winter", aliases=["W"], order=4)
    earlier = Season(id=11, name_en="Winter break", aliases=["w"], order=2)
    assert season_resolver.resolve("W", [later, earlier]) is earlier


def test_exact_name_beats_numeric_fallback():
    # "Year 2" 의 숫자는 2 지만, 이름이 정확히 일치하는 시즌이 우선
    named = Season(id=20, name_en="Year 2", order=5)
    second = Season(id=21, name_en="Intro", order=2)
    assert season_resolver.resolve("Year 2", [named, second]) is named
    assert season_resolver.resolve("Yaer 2", [named, second]) is second


def test_inactive_seasons_still_resolve():
    archived = Season(id=30, name_en="Old season", order=9, is_active=False)
    assert season_resolver.resolve("old season", [archived]) is archived


def test_resolve_or_raise():
    assert season_resolver.resolve_or_raise("Season 2", SEASONS).id == 2
    with pytest.raises(SeasonNotResolved) as exc_info:
        season_resolver.resolve_or_raise("Seson  3x", SEASONS[:2])
    assert exc_info.value.code == "SEASON_NOT_RESOLVED"
    assert exc_info.value.label == "Seson  3x"

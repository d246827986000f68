"""Extractor tests: pure functions over canned Steam HTML, no network.
Run: pytest -q
"""
import pytest

import steam_status as ss

PROFILE_HTML = """
<div class="profile_header">
  <div class="persona_name" style="font-size: 24px;">
    <span class="actual_persona_name">  PRIX0N  </span>
  </div>
  <div class="persona_level"><div class="friendPlayerLevel lvl_100"><span class="friendPlayerLevelNum">117</span></div></div>
</div>
<div class="profile_badges">
  <div class="profile_count_link_ellipsis">
    <a href="https://steamcommunity.com/id/PRIX0N/badges/">
      <span class="count_link_label">Badges</span>&nbsp;
      <span class="profile_count_link_total">253</span>
    </a>
  </div>
</div>
<div class="profile_awards">
  <div class="profile_count_link_ellipsis">Profile Awards</div>
  <div class="value">1,024</div>
</div>
<div class="showcase_stat"><div class="label">Achievements</div>
<div class="value">12.345</div></div>
"""

GAMES_HTML = """
<div id="gameslist_sort_options">
  <a href="https://steamcommunity.com/id/PRIX0N/games/?tab=all" class="active">All Games (1,234)</a>
  <a href="https://steamcommunity.com/id/PRIX0N/games/?tab=perfect">Perfect Games (87)</a>
</div>
"""

NUMERIC_EXTRACTORS = [
    ss.parse_games_count,
    ss.parse_perfect_games,
    ss.parse_badges,
    ss.parse_level,
    ss.parse_awards,
    ss.parse_achievements,
]


@pytest.mark.parametrize("html", ["", "<html><body>nothing here</body></html>", "<<<>>>(((", "Games (abc)"])
def test_extractors_default_on_garbage(html):
    for extract in NUMERIC_EXTRACTORS:
        assert extract(html) == 0, extract.__name__
    assert ss.parse_nickname(html) == "Unknown"


@pytest.mark.parametrize("text,expected", [
    ("1,234", 1234),
    ("1.234", 1234),
    ("1 234", 1234),
    ("12\xa0345", 12345),
    ("1,234,567", 1234567),
    (" 42 ", 42),
    ("0", 0),
])
def test_parse_count_strips_grouping(text, expected):
    assert ss.parse_count(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "1e5", "-3", "12+", "NaN"])
def test_parse_count_rejects_non_numbers(text):
    assert ss.parse_count(text) is None


def test_profile_page():
    assert ss.parse_nickname(PROFILE_HTML) == "PRIX0N"
    assert ss.parse_level(PROFILE_HTML) == 117
    assert ss.parse_badges(PROFILE_HTML) == 253
    assert ss.parse_awards(PROFILE_HTML) == 1024
    assert ss.parse_achievements(PROFILE_HTML) == 12345


def test_games_page():
    assert ss.parse_games_count(GAMES_HTML) == 1234
    assert ss.parse_perfect_games(GAMES_HTML) == 87


def test_games_label_with_separator():
    assert ss.parse_games_count("<a>Games (1,234)</a>") == 1234


def test_games_out_of_range_falls_through():
    html = 'All Games (99999) <div data-games_count="321"></div>'
    assert ss.parse_games_count(html) == 321


@pytest.mark.parametrize("html", ["All Games (0)", "Games (50000)", "Games (123456)"])
def test_games_out_of_range_defaults(html):
    assert ss.parse_games_count(html) == 0


def test_games_sort_options_pattern():
    html = '<div id="gameslist_sort_options"><span class="count">(42)</span></div>'
    assert ss.parse_games_count(html) == 42


def test_perfect_games_prefers_tab_link():
    html = 'Perfect Games (5) <a href="?tab=perfect">Perfect Games (87)</a>'
    assert ss.parse_perfect_games(html) == 87


def test_perfect_games_bounds():
    assert ss.parse_perfect_games("Perfect Games (10000)") == 10000
    assert ss.parse_perfect_games("Perfect Games (10001)") == 0
    assert ss.parse_perfect_games("Perfect Games (0)") == 0


def test_badges_capped_plus():
    html = '<span class="count_link_label">Badges</span> <span class="profile_count_link_total">999+</span>'
    assert ss.parse_badges(html) == 999


def test_badges_count_before_label():
    html = '<span class="profile_count_link_total"> 12 </span></a> Badges'
    assert ss.parse_badges(html) == 12


def test_level_persona_level_fallback():
    assert ss.parse_level('<div class="persona_level">Level 42</div>') == 42


def test_awards_and_achievements_inline():
    assert ss.parse_awards("Profile Awards: 7") == 7
    assert ss.parse_achievements("<span>3,210 Achievements</span>") == 3210


def test_nickname_blank_span_is_unknown():
    assert ss.parse_nickname('<span class="actual_persona_name">   </span>') == "Unknown"


@pytest.mark.parametrize("extract,html,expected", [
    (ss.parse_awards, "Profile Awards</div><div>1 024</div>", 1024),
    (ss.parse_awards, "Profile Awards</div><div>1,024</div>", 1024),
    (ss.parse_achievements, "<span>1 234 Achievements</span>", 1234),
    (ss.parse_achievements, "<span>Level 117 1,234 Achievements</span>", 1234),
    (ss.parse_achievements, '>Achievements</div> <div class="value">12 345</div>', 12345),
    (ss.parse_badges, 'Badges <span class="profile_count_link_total">1,024</span>', 1024),
    (ss.parse_badges, 'Badges <span class="profile_count_link_total">1 024+</span>', 1024),
    (ss.parse_games_count, "Games (1 234)", 1234),
    (ss.parse_perfect_games, "Perfect Games (1\xa0234)", 1234),
])
def test_grouped_counts_for_every_field(extract, html, expected):
    assert extract(html) == expected

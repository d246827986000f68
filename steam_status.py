#!/usr/bin/env python3
"""
Steam profile status card.

Scrapes a public Steam Community profile and its games listing, pulls a few
numbers out of the HTML and renders them as a 1200x520 SVG card:
- Nickname & Steam level
- Games / Perfect Games
- Achievements / Badges
- Profile Awards

Environment Variables:
  STEAM_VANITY_ID        : Vanity id (the /id/<...>/ path segment). Default PRIX0N.
  STEAM_COMMUNITY_URL    : Community site base. Default https://steamcommunity.com
  GAMES_FALLBACK         : Games count used when the games page yields 0. Default 274.
  PERFECT_GAMES_FALLBACK : Perfect games count used when the page yields 0. Default 132.
  FETCH_TIMEOUT          : Outbound request timeout in seconds. Default 20.
  PORT / HOST            : Listen address for the HTTP app. Default 0.0.0.0:3000.
  LOG_LEVEL              : Logging level name. Default INFO.
  DEBUG                  : '1' => force DEBUG logging.

The scraping is best effort: Steam markup is not under our control, so every
extractor degrades to 0 (or "Unknown") instead of failing. Only the fetches
themselves are allowed to abort a render.
"""

from __future__ import annotations
import os
import re
import logging
import datetime
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Sequence
from xml.sax.saxutils import escape

import requests

logger = logging.getLogger(__name__)

# ------------------ Config & Env ------------------
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

DEFAULT_VANITY_ID = "PRIX0N"
DEFAULT_COMMUNITY_URL = "https://steamcommunity.com"
DEFAULT_GAMES_FALLBACK = 274
DEFAULT_PERFECT_GAMES_FALLBACK = 132
DEFAULT_FETCH_TIMEOUT = 20.0
DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"

HEADERS = {
    "User-Agent": "steam-status-svg/1.0",
    "Accept-Language": "en-US,en;q=0.9",
}


@dataclass(frozen=True)
class Config:
    vanity_id: str = DEFAULT_VANITY_ID
    community_url: str = DEFAULT_COMMUNITY_URL
    games_fallback: int = DEFAULT_GAMES_FALLBACK
    perfect_games_fallback: int = DEFAULT_PERFECT_GAMES_FALLBACK
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    log_level: str = "INFO"
    debug: bool = False

    @property
    def profile_url(self) -> str:
        return f"{self.community_url.rstrip('/')}/id/{self.vanity_id}/"

    @property
    def games_url(self) -> str:
        return f"{self.profile_url}games/?l=english"

    @property
    def source_label(self) -> str:
        host = re.sub(r"^https?://", "", self.community_url.rstrip("/"))
        return f"{host}/id/{self.vanity_id}"


def _env_int(environ: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, expected an integer. Using default %s.", name, raw, default)
        return default
    if value < minimum:
        logger.warning("Invalid %s=%r, must be at least %d. Using default %s.", name, raw, minimum, default)
        return default
    return value


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, expected a number. Using default %s.", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Invalid %s=%r, must be positive. Using default %s.", name, raw, default)
        return default
    return value


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """Build a Config from environment variables (os.environ when not given)."""
    env = os.environ if environ is None else environ
    return Config(
        vanity_id=env.get("STEAM_VANITY_ID") or DEFAULT_VANITY_ID,
        community_url=env.get("STEAM_COMMUNITY_URL") or DEFAULT_COMMUNITY_URL,
        games_fallback=_env_int(env, "GAMES_FALLBACK", DEFAULT_GAMES_FALLBACK, minimum=1),
        perfect_games_fallback=_env_int(env, "PERFECT_GAMES_FALLBACK", DEFAULT_PERFECT_GAMES_FALLBACK),
        fetch_timeout=_env_float(env, "FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT),
        port=_env_int(env, "PORT", DEFAULT_PORT, minimum=1),
        host=env.get("HOST") or DEFAULT_HOST,
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        debug=env.get("DEBUG", "0") == "1",
    )


def setup_logging(level: str = "INFO", debug: bool = False) -> None:
    logging.basicConfig(format=LOG_FORMAT)
    resolved = logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO)
    logging.getLogger().setLevel(resolved)

# ------------------ Fetch ------------------
class FetchError(RuntimeError):
    """Upstream answered with a non-2xx status."""

    def __init__(self, status: int, url: str):
        super().__init__(f"Fetch failed {status} for {url}")
        self.status = status
        self.url = url


def fetch_text(url: str, timeout: float = DEFAULT_FETCH_TIMEOUT) -> str:
    r = requests.get(url, headers=HEADERS, timeout=timeout)
    logger.debug("GET %s -> %s", url, r.status_code)
    if not 200 <= r.status_code < 300:
        raise FetchError(r.status_code, url)
    return r.text

# ------------------ Extractors ------------------
GROUP_SEPARATORS = (",", ".", " ", "\xa0")

Converter = Callable[[str], Optional[int]]


def parse_count(text: str) -> Optional[int]:
    """'1,234' / '1.234' / '1 234' -> 1234. None when it is not a whole number."""
    if text is None:
        return None
    cleaned = text.strip()
    for sep in GROUP_SEPARATORS:
        cleaned = cleaned.replace(sep, "")
    if not cleaned or not cleaned.isascii() or not cleaned.isdigit():
        return None
    return int(cleaned)


def parse_badge_count(text: str) -> Optional[int]:
    # Steam shows "999+" once the count is capped
    cleaned = text.strip()
    if cleaned.endswith("+"):
        cleaned = cleaned[:-1]
    return parse_count(cleaned)


def first_match(html: str, patterns: Sequence[re.Pattern],
                accept: Optional[Callable[[int], bool]] = None,
                convert: Converter = parse_count) -> Optional[int]:
    """Try patterns in order; first match that converts and passes `accept` wins."""
    if not html:
        return None
    for pattern in patterns:
        m = pattern.search(html)
        if not m:
            continue
        value = convert(m.group(1))
        if value is None:
            continue
        if accept is not None and not accept(value):
            logger.debug("%s: value %s rejected", pattern.pattern, value)
            continue
        return value
    return None


_NUM = r"([0-9][0-9,\. \xa0]*)"
# one run of digits, or 3-digit groups split by a separator: 1,234 / 1.234 / 1 234
_COUNT = r"(?:[0-9]{1,3}(?:[,\. \xa0][0-9]{3})+|[0-9]+)"

GAMES_PATTERNS = [
    re.compile(r"All\s+Games\s*\(" + _NUM + r"\)", re.I),
    re.compile(r"Games\s*\(" + _NUM + r"\)", re.I),
    re.compile(r'data-games_count="' + _NUM + r'"', re.I),
    re.compile(r'id="gameslist_sort_options"[\s\S]{0,200}\(' + _NUM + r"\)", re.I),
]
GAMES_MAX = 50000

PERFECT_GAMES_PATTERNS = [
    re.compile(r"tab=perfect[^>]*>\s*Perfect\s*Games\s*\(" + _NUM + r"\)", re.I),
    re.compile(r"Perfect\s+Games\s*\(" + _NUM + r"\)", re.I),
]
PERFECT_GAMES_MAX = 10000

BADGES_PATTERNS = [
    re.compile(r"Badges[\s\S]{0,120}?profile_count_link_total[^>]*>\s*(" + _COUNT + r"\+?)\s*<", re.I),
    re.compile(r'<span[^>]*class="profile_count_link_total"[^>]*>\s*(' + _COUNT + r'\+?)\s*</span>[\s\S]{0,40}Badges', re.I),
]

LEVEL_PATTERNS = [
    re.compile(r'<span[^>]*class="friendPlayerLevelNum"[^>]*>\s*([0-9]+)\s*</span>', re.I),
    re.compile(r'<div[^>]*class="persona_level"[^>]*>[^0-9]*([0-9]+)[^0-9]*</div>', re.I),
]

AWARDS_PATTERNS = [
    re.compile(r"Profile\s*Awards[^0-9]*(" + _COUNT + r")", re.I),
    re.compile(r"Profile\s*Awards</div>\s*<div[^>]*>\s*(" + _COUNT + r")", re.I),
]

ACHIEVEMENTS_PATTERNS = [
    re.compile(r"(" + _COUNT + r")\s*Achievements", re.I),
    re.compile(r">Achievements</div>\s*<div[^>]*>\s*(" + _COUNT + r")\s*<", re.I),
]

NICKNAME_PATTERN = re.compile(r'<span class="actual_persona_name">([\s\S]*?)</span>')
UNKNOWN_NICKNAME = "Unknown"


def parse_games_count(html: str) -> int:
    n = first_match(html, GAMES_PATTERNS, accept=lambda v: 0 < v < GAMES_MAX)
    return n or 0


def parse_perfect_games(html: str) -> int:
    n = first_match(html, PERFECT_GAMES_PATTERNS, accept=lambda v: 0 <= v <= PERFECT_GAMES_MAX)
    return n or 0


def parse_badges(html: str) -> int:
    return first_match(html, BADGES_PATTERNS, convert=parse_badge_count) or 0


def parse_level(html: str) -> int:
    return first_match(html, LEVEL_PATTERNS) or 0


def parse_awards(html: str) -> int:
    return first_match(html, AWARDS_PATTERNS) or 0


def parse_achievements(html: str) -> int:
    return first_match(html, ACHIEVEMENTS_PATTERNS) or 0


def parse_nickname(html: str) -> str:
    m = NICKNAME_PATTERN.search(html or "")
    if not m:
        return UNKNOWN_NICKNAME
    return m.group(1).strip() or UNKNOWN_NICKNAME

# ------------------ Data Collection ------------------
@dataclass(frozen=True)
class StatsRecord:
    nickname: str
    level: int
    games: int
    perfect_games: int
    achievements: int
    badges: int
    awards: int
    generated_at: datetime.datetime


def fetch_stats(config: Config) -> StatsRecord:
    """Fetch profile + games page and build a StatsRecord. FetchError propagates."""
    profile_html = fetch_text(config.profile_url, timeout=config.fetch_timeout)
    nickname = parse_nickname(profile_html)
    level = parse_level(profile_html)
    badges = parse_badges(profile_html)
    awards = parse_awards(profile_html)
    achievements = parse_achievements(profile_html)

    games_html = fetch_text(config.games_url, timeout=config.fetch_timeout)
    games = parse_games_count(games_html)
    perfect = parse_perfect_games(games_html)

    # A real 0 cannot be told apart from a miss here; both get the fallback.
    if games == 0:
        logger.info("Games count not found, using fallback %d", config.games_fallback)
        games = config.games_fallback
    if perfect == 0:
        logger.info("Perfect games not found, using fallback %d", config.perfect_games_fallback)
        perfect = config.perfect_games_fallback

    return StatsRecord(
        nickname=nickname,
        level=level,
        games=games,
        perfect_games=perfect,
        achievements=achievements,
        badges=badges,
        awards=awards,
        generated_at=datetime.datetime.now(datetime.timezone.utc),
    )

# ------------------ SVG ------------------
SVG_MEDIA_TYPE = "image/svg+xml; charset=utf-8"
ERROR_MESSAGE_MAX = 300
XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def escape_xml(text: str) -> str:
    return escape(str(text), XML_ENTITIES)


def format_int(num: int) -> str:
    # de-DE grouping: 1.234.567
    return f"{num:,}".replace(",", ".")


def format_timestamp(at: datetime.datetime) -> str:
    at = at.astimezone(datetime.timezone.utc)
    return at.strftime("%Y-%m-%dT%H:%M:%S") + f".{at.microsecond // 1000:03d}Z"


def _card(x: int, title: str, value: int, value_id: str) -> str:
    v = format_int(value)
    return f"""
    <g transform="translate({x},0)">
      <rect x="0" y="0" width="270" height="130" rx="14"
        fill="url(#cardBg)"
        stroke="url(#cardBorder)"
        stroke-width="2"/>
      <text x="20" y="40" fill="#c8b9d4" font-size="22" font-weight="500">{title}</text>
      <text x="20" y="95" fill="#ff4dd8" font-size="54" font-weight="700" opacity="0.35" filter="url(#numberGlow)">{v}</text>
      <text x="20" y="95" fill="#ffffff" font-size="54" font-weight="700" id="{value_id}">{v}</text>
    </g>"""


def _award_icon(x: int) -> str:
    return f"""
        <g transform="translate({x},0)">
          <circle cx="16" cy="16" r="16" fill="#ff4dd8" opacity="0.3" filter="url(#numberGlow)"/>
          <circle cx="16" cy="16" r="12" fill="#ffffff"/>
        </g>"""


def _awards_card(awards: int) -> str:
    v = format_int(awards)
    icons = "".join(_award_icon(x) for x in (0, 50, 100, 150, 200))
    return f"""
    <g>
      <rect x="0" y="0" width="1128" height="140" rx="14"
        fill="url(#cardBg)"
        stroke="url(#cardBorder)"
        stroke-width="2"/>
      <text x="20" y="40" fill="#c8b9d4" font-size="22" font-weight="500">Awards</text>
      <text x="20" y="100" fill="#ff4dd8" font-size="48" font-weight="700" opacity="0.35" filter="url(#numberGlow)">{v}</text>
      <text x="20" y="100" fill="#ffffff" font-size="48" font-weight="700" id="awards_data">{v}</text>
      <g transform="translate(200,55)">{icons}
      </g>
    </g>"""


def render_card(stats: StatsRecord, source_label: str) -> str:
    """Render the 1200x520 status card. Pure: same record -> same document."""
    cards = "".join([
        _card(0, "Games", stats.games, "games_data"),
        _card(290, "Perfect Games", stats.perfect_games, "perfect_data"),
        _card(580, "Achievements", stats.achievements, "achievements_data"),
        _card(870, "Badges", stats.badges, "badges_data"),
    ])
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<svg width="1200" height="520" viewBox="0 0 1200 520" xmlns="http://www.w3.org/2000/svg">
  <defs>
    <radialGradient id="bgGrad" cx="0.5" cy="0.4" r="0.8">
      <stop offset="0%" stop-color="#0a0a11"/>
      <stop offset="60%" stop-color="#130017"/>
      <stop offset="100%" stop-color="#1a0024"/>
    </radialGradient>
    <linearGradient id="cardBg" x1="0" y1="0" x2="0" y2="1">
      <stop offset="0%" stop-color="#0d0d12"/>
      <stop offset="100%" stop-color="#1a1a28"/>
    </linearGradient>
    <linearGradient id="cardBorder" x1="0" y1="0" x2="1" y2="1">
      <stop offset="0%" stop-color="#ff4dd8"/>
      <stop offset="40%" stop-color="#ff4dd8" stop-opacity="0.4"/>
      <stop offset="100%" stop-color="#ff4dd8" stop-opacity="0"/>
    </linearGradient>
    <filter id="numberGlow" x="-50%" y="-50%" width="200%" height="200%">
      <feGaussianBlur stdDeviation="6" result="blur1"/>
      <feMerge><feMergeNode in="blur1"/></feMerge>
    </filter>
    <linearGradient id="barGrad" x1="0" y1="0" x2="1" y2="0">
      <stop offset="0%" stop-color="#ff4dd8"/>
      <stop offset="100%" stop-color="#ff3baf"/>
    </linearGradient>
  </defs>

  <rect width="1200" height="520" fill="url(#bgGrad)"/>

  <g transform="translate(36,70)">
    <text x="0" y="0" font-size="40" font-weight="700" fill="#ffffff" id="nickname_data">{escape_xml(stats.nickname)}</text>
    <text x="0" y="32" font-size="18" fill="#c8b9d4" id="level_data">Steam Level {stats.level}</text>
  </g>

  <rect x="36" y="82" width="1128" height="4" rx="2" fill="url(#barGrad)"/>

  <g transform="translate(36,120)">{cards}
  </g>

  <g transform="translate(36,280)">{_awards_card(stats.awards)}
  </g>

  <text x="36" y="500" fill="#c8b9d4" font-size="16" id="footer_data">Source: {escape_xml(source_label)} • Updated: {format_timestamp(stats.generated_at)}</text>
</svg>"""


def render_error(message: str) -> str:
    text = escape(str(message)[:ERROR_MESSAGE_MAX])
    return f"""<svg xmlns="http://www.w3.org/2000/svg" width="1000" height="200">
  <rect width="1000" height="200" fill="#1b2236"/>
  <text x="30" y="70" fill="#ffd166" font-size="28">Steam Status Unavailable</text>
  <text x="30" y="120" fill="#ffb3c7" font-size="16" id="error_data">{text}</text>
</svg>"""

"""Structured section extraction from job description HTML.

Two readers turn a description into the same ordered stream of events,
top-level headings (h1-h6, b, strong) and lists (ul, ol with their items):

- the parser reader walks a BeautifulSoup tree (``html.parser``);
- the regex reader scans the raw markup and is the degraded mode for markup
  the parser rejects.

Sections are then assigned from the event stream in two passes. A heading
whose text names a section claims the list right after it (a heading in
between ends the search). Lists nobody claimed are used positionally: the
first fills responsibilities and the second fills requirements, each only
when that section is still empty.
"""
from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Iterable, Union

from bs4 import BeautifulSoup, Comment, ParserRejectedMarkup, Tag

from jobfeed.log import get_logger

log = get_logger(__name__)

HEADING_TAGS: tuple[str, ...] = ("h1", "h2", "h3", "h4", "h5", "h6", "b", "strong")
LIST_TAGS: tuple[str, ...] = ("ul", "ol")

SECTION_PATTERNS: tuple[tuple[str, re.Pattern], ...] = (
    ("responsibilities", re.compile(r"responsibilit|dutie|you will", re.I)),
    ("requirements", re.compile(r"requirement|qualification|skill|required", re.I)),
    ("benefits", re.compile(r"benefit|perk|what we offer", re.I)),
)

EMPLOYMENT_TYPE_RE = re.compile(
    r"\b(full-time|part-time|contract|freelance|internship|temporary)\b", re.I
)
SENIORITY_RE = re.compile(
    r"\b(senior|lead|junior|mid-level|principal|manager|director|architect)\b", re.I
)

MAX_SKILLS = 20
_SKILL_TOKEN_RE = re.compile(r"(?<![\w.+#-])[A-Z][A-Za-z0-9+.#-]{1,29}")

_OPEN_RE = re.compile(r"<(h[1-6]|b|strong|ul|ol)\b[^>]*>", re.I)
_LIST_TAG_RE = re.compile(r"<(/?)(ul|ol)\b[^>]*>", re.I)
_ITEM_TAG_RE = re.compile(r"<(/?)(ul|ol|li)\b[^>]*>", re.I)
_TAG_RE = re.compile(r"<[^>]+>")
_SKIP_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>|<!--.*?-->", re.I | re.S)

Event = tuple[str, Union[str, tuple[str, ...]]]


@dataclass(frozen=True)
class Sections:
    responsibilities: tuple[str, ...] = ()
    requirements: tuple[str, ...] = ()
    benefits: tuple[str, ...] = ()
    clean_description: str = ""
    employment_type: str | None = None
    seniority: str | None = None
    skills: tuple[str, ...] = ()


def _collapse(text: str) -> str:
    return " ".join(text.split())


def _strip_tags(markup: str) -> str:
    return _collapse(html.unescape(_TAG_RE.sub(" ", markup)))


def classify_heading(text: str) -> str | None:
    for section, pattern in SECTION_PATTERNS:
        if pattern.search(text):
            return section
    return None


# -- readers ---------------------------------------------------------------
#
# List items: each item's own text (nested lists excluded), followed by the
# items of the lists nested in it, depth first.

def _parser_items(lst: Tag) -> list[str]:
    items: list[str] = []
    for li in lst.find_all("li"):
        if li.find_parent(LIST_TAGS) is not lst:
            continue
        own = (
            s.strip()
            for s in li.find_all(string=True)
            if not isinstance(s, Comment) and s.find_parent(LIST_TAGS) is lst
        )
        text = _collapse(" ".join(s for s in own if s))
        if text:
            items.append(text)
        for nested in li.find_all(LIST_TAGS):
            if nested.find_parent("li") is li:
                items.extend(_parser_items(nested))
    return items


def _parser_read(markup: str) -> tuple[list[Event], str, str]:
    soup = BeautifulSoup(markup, "html.parser")
    for junk in soup.find_all(["script", "style"]):
        junk.decompose()

    block_tags = HEADING_TAGS + LIST_TAGS
    events: list[Event] = []
    for el in soup.find_all(block_tags):
        if any(parent.name in block_tags for parent in el.parents):
            continue
        if el.name in LIST_TAGS:
            events.append(("list", tuple(_parser_items(el))))
        else:
            events.append(("heading", _collapse(el.get_text(" ", strip=True))))

    full_text = _collapse(soup.get_text(" ", strip=True))
    paragraphs = [_collapse(p.get_text(" ", strip=True)) for p in soup.find_all("p")]
    paragraphs = [p for p in paragraphs if p]
    clean = "\n\n".join(paragraphs) if paragraphs else full_text
    return events, clean, full_text


def _list_close(markup: str, start: int) -> re.Match | None:
    """Closing tag matching a list opened just before *start*, by depth."""
    depth = 1
    for m in _LIST_TAG_RE.finditer(markup, start):
        depth += -1 if m.group(1) else 1
        if depth == 0:
            return m
    return None


def _regex_items(body: str) -> list[str]:
    items: list[str] = []
    own: list[str] | None = None
    nested: list[str] = []
    depth = 0
    nest_start = last = 0

    def flush() -> None:
        text = _strip_tags(" ".join(own))
        if text:
            items.append(text)
        items.extend(nested)

    for m in _ITEM_TAG_RE.finditer(body):
        closing, tag = bool(m.group(1)), m.group(2).lower()
        if depth == 0 and own is not None:
            own.append(body[last:m.start()])
        last = m.end()
        if tag in LIST_TAGS:
            if not closing:
                if depth == 0:
                    nest_start = m.end()
                depth += 1
            elif depth > 0:
                depth -= 1
                if depth == 0 and own is not None:
                    nested.extend(_regex_items(body[nest_start:m.start()]))
            continue
        if depth > 0:
            continue
        if own is not None:
            flush()
            own = None
        if not closing:
            own, nested = [], []

    if own is not None:
        if depth == 0:
            own.append(body[last:])
        flush()
    return items


def _regex_read(markup: str) -> tuple[list[Event], str, str]:
    markup = _SKIP_RE.sub(" ", markup)
    events: list[Event] = []
    pos = 0
    while True:
        m = _OPEN_RE.search(markup, pos)
        if m is None:
            break
        tag = m.group(1).lower()
        if tag in LIST_TAGS:
            close = _list_close(markup, m.end())
        else:
            close = re.compile(rf"</{tag}\s*>", re.I).search(markup, m.end())
        if close is None:
            pos = m.end()
            continue
        body = markup[m.end():close.start()]
        if tag in LIST_TAGS:
            events.append(("list", tuple(_regex_items(body))))
        else:
            events.append(("heading", _strip_tags(body)))
        pos = close.end()
    full_text = _strip_tags(markup)
    return events, full_text, full_text


# -- assignment ------------------------------------------------------------

def assign_sections(events: list[Event]) -> dict[str, list[str]]:
    found: dict[str, list[str]] = {name: [] for name, _ in SECTION_PATTERNS}
    claimed: set[int] = set()

    for i, (kind, value) in enumerate(events):
        if kind != "heading":
            continue
        section = classify_heading(value)
        if section is None or i + 1 >= len(events):
            continue
        next_kind, items = events[i + 1]
        if next_kind == "list" and i + 1 not in claimed:
            claimed.add(i + 1)
            found[section].extend(items)

    unclaimed = [v for i, (k, v) in enumerate(events) if k == "list" and i not in claimed]
    if not found["responsibilities"] and len(unclaimed) > 0:
        found["responsibilities"] = list(unclaimed[0])
    if not found["requirements"] and len(unclaimed) > 1:
        found["requirements"] = list(unclaimed[1])
    return found


def harvest_skills(lines: Iterable[str], known: Iterable[str] = ()) -> tuple[str, ...]:
    """Known tags first, then capitalized tokens; case-insensitive dedupe."""
    seen: set[str] = set()
    out: list[str] = []

    def add(token: str) -> None:
        key = token.lower()
        if key not in seen:
            seen.add(key)
            out.append(token)

    for tag in known:
        tag = (tag or "").strip()
        if tag:
            add(tag)
    for line in lines:
        for m in _SKILL_TOKEN_RE.finditer(line):
            token = m.group(0).rstrip(".-")
            if 2 <= len(token) <= 30:
                add(token)
    return tuple(out[:MAX_SKILLS])


def _first_match(pattern: re.Pattern, text: str) -> str | None:
    m = pattern.search(text)
    return m.group(1).lower() if m else None


def extract_sections(
    markup: str | None,
    *,
    context: str = "",
    known_tags: Iterable[str] = (),
    use_parser: bool = True,
) -> Sections:
    """Split a description into sections and derive type, seniority and skills.

    ``context`` (typically title and tags) is scanned before the document
    text for employment type and seniority.
    """
    markup = markup or ""
    read = _parser_read if use_parser else _regex_read
    try:
        events, clean, full_text = read(markup)
    except ParserRejectedMarkup as exc:
        log.debug("Parser rejected description markup (%s), using regex reader", exc)
        events, clean, full_text = _regex_read(markup)

    found = assign_sections(events)
    scan = f"{context} {full_text}"
    return Sections(
        responsibilities=tuple(found["responsibilities"]),
        requirements=tuple(found["requirements"]),
        benefits=tuple(found["benefits"]),
        clean_description=clean,
        employment_type=_first_match(EMPLOYMENT_TYPE_RE, scan),
        seniority=_first_match(SENIORITY_RE, scan),
        skills=harvest_skills(found["responsibilities"] + found["requirements"], known_tags),
    )

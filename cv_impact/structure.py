import functools
import re
import unicodedata
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .normalize import (
    DASHES,
    DATE_RANGE_RE,
    DATE_TOKEN_RE,
    OPEN_WORD,
    OPEN_WORD_RE,
    is_all_caps,
    is_bullet,
    normalize,
)

JOB_RE = re.compile(
    r"\b(?:specjalist|kierownik|inżynier|inzynier|analityk|lider|dyrektor|asystent|koordynator|stażyst"
    r"|praktykant|programist|tester|konsultant|przedstawiciel|handlowi|doradc|pracownik|referent|księgow"
    r"|rekruter|men[ea]dżer|opiekun|sprzedawc|technik|projektant|grafik|administrator|sekretar|recepcjonist"
    r"|manager|specialist|developer|engineer|analyst|lead\b|head\b|consultant|designer|coordinator|director"
    r"|executive|intern|trainee|junior|senior|assistant|qa\b|architect|officer|representative|owner"
    r"|accountant|recruiter|programmer|scrum master)\w*",
    re.I,
)
LEGAL_SUFFIX_RE = re.compile(
    r"(?<!\w)(?:sp\.?\s*z\s*o\.?\s*o\.?|sp\.\s*[jk]\.|spółka|s\.\s?a\.|ltd\.?|llc|inc\.?|gmbh|plc|corp\.?"
    r"|s\.r\.o\.|b\.v\.|s\.a\.r\.l\.)(?=$|[\s,|)])",
    re.I,
)
_SEPARATOR_RE = re.compile(r"\s[" + DASHES + r"]\s|\s@\s")

ACTION_STEMS = (
    "pozyskiw", "prowadz", "wdraż", "wdroż", "wdraz", "wdroz", "optymaliz", "negocj", "tworz", "analiz",
    "zarządz", "zarzadz", "obsług", "obslug", "wspier", "wspar", "przygotow", "współprac", "wspolprac",
    "koordynow", "koordynac", "budow", "raportow", "testow", "programow", "implement", "planow",
    "organiz", "realiz", "napraw", "moderow", "moderac", "aktualiz", "wprowadz", "udział", "odpowiad",
    "dbał", "dbanie", "led", "managed", "built", "developed", "implemented", "designed", "created",
    "delivered", "increased", "reduced", "improved", "launched", "supported", "handled", "prepared",
    "coordinated", "responsible", "worked", "maintained", "drove", "owned",
)
PAST_ENDINGS = ("łem", "łam", "łeś", "liśmy", "łyśmy")
_GERUND_ENDINGS = ("anie", "enie", "ęcie")
_CONNECTORS = {"ds.", "ds", "z", "i", "w", "na", "do", "of", "and", "the", "for", "in", "at", "o.o.", "o.o", "sp.", "oraz"}

HEADER_MIN_LEN = 3
HEADER_MAX_LEN = 140
DASH_JOB_MAX_LEN = 80
META_LINE_MAX_LEN = 60


class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: str
    end: str

    @property
    def is_open(self) -> bool:
        return bool(re.fullmatch(OPEN_WORD, self.end, re.I))

    @property
    def label(self) -> str:
        return f"{self.start} – {self.end}"


class RoleBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    company: str = ""
    location: str = ""
    date_range: Optional[DateRange] = None
    body_lines: Tuple[str, ...] = ()
    raw_text: str = ""

    @property
    def key(self) -> str:
        return role_key(self.title, self.date_range)

    @property
    def body_text(self) -> str:
        return "\n".join(self.body_lines)

    def header_label(self) -> str:
        parts = [self.title]
        if self.company:
            parts.append(self.company)
        if self.date_range:
            parts.append(self.date_range.label)
        return " | ".join(parts)


class HeaderSignals(BaseModel):
    """Weak signals for one candidate header line."""

    length: int = 0
    bullet: bool = False
    lower_start: bool = False
    action_sentence: bool = False
    company_city: bool = False
    dash: bool = False
    legal_suffix: bool = False
    all_caps: bool = False
    job_keyword: bool = False
    title_case: bool = False
    next_line_dates: bool = False
    inline_dates: bool = False


class HeaderParts(BaseModel):
    title: str = ""
    company: str = ""
    location: str = ""
    date_range: Optional[DateRange] = None


def slug(text: str) -> str:
    s = unicodedata.normalize("NFKD", (text or "").replace("ł", "l").replace("Ł", "L"))
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    return re.sub(r"[^a-z0-9]", "", s.lower())


def role_key(title: str, date_range: Optional[DateRange] = None) -> str:
    return slug(title + (date_range.label if date_range else ""))


def _strip_dates(line: str) -> str:
    head = DATE_RANGE_RE.sub(" ", line)
    head = re.sub(r"\(\s*\)", " ", head)
    head = re.sub(r"\s{2,}", " ", head)
    return head.strip().strip("|,;(" + DASHES).strip()


def _head_parts(head: str) -> List[str]:
    return [p.strip() for p in head.split("|") if p.strip()]


def title_case_ratio(text: str) -> float:
    words = [w for w in re.findall(r"[^\W\d_][\w'.&-]*", text) if w.lower() not in _CONNECTORS]
    if not words:
        return 0.0
    upper = sum(1 for w in words if w[0].isupper())
    return upper / float(len(words))


def looks_like_action(line: str) -> bool:
    words = re.findall(r"[^\W\d_]+", line or "")
    if not words:
        return False
    first = words[0].lower()
    if JOB_RE.match(first):
        return False
    return first.startswith(ACTION_STEMS) or first.endswith(PAST_ENDINGS + _GERUND_ENDINGS)


def looks_like_company_city(head: str) -> bool:
    if _SEPARATOR_RE.search(head) or JOB_RE.search(head):
        return False
    flat = " ".join(_head_parts(head))
    if flat.count(",") != 1:
        return False
    left, right = [p.strip() for p in flat.split(",")]
    return 0 < len(left) <= 40 and 0 < len(right) <= 30 and len(right.split()) <= 3


def is_meta_date_line(line: str) -> bool:
    """A date line, optionally carrying company/location ("Papaka, Warszawa | 06.2022 – 12.2024")."""
    if not line or is_bullet(line) or not DATE_RANGE_RE.search(line):
        return False
    head = _strip_dates(line)
    return len(head) <= META_LINE_MAX_LEN and not _SEPARATOR_RE.search(head)


def _next_non_blank(lines: List[str], i: int) -> Tuple[int, str]:
    for j in range(i + 1, len(lines)):
        if lines[j]:
            return j, lines[j]
    return -1, ""


def _implicit_open_range(line: str, next_line: str) -> Optional[DateRange]:
    if DATE_RANGE_RE.search(line):
        return None
    tokens = DATE_TOKEN_RE.findall(line)
    m = OPEN_WORD_RE.match(next_line or "")
    if len(tokens) != 1 or not m:
        return None
    word = re.sub(r"^\W+", "", m.group(0)).lower()
    return DateRange(start=tokens[0].strip(), end=re.sub(r"\s+", " ", word))


def header_signals(lines: List[str], i: int) -> HeaderSignals:
    line = lines[i]
    _, nxt = _next_non_blank(lines, i)
    head = _strip_dates(line)
    inline = bool(DATE_RANGE_RE.search(line)) or _implicit_open_range(line, nxt) is not None
    first = line[:1]
    return HeaderSignals(
        length=len(line),
        bullet=is_bullet(line),
        lower_start=bool(first) and (first.islower() or first.isdigit()),
        action_sentence=looks_like_action(line),
        company_city=looks_like_company_city(head),
        dash=bool(_SEPARATOR_RE.search(head)),
        legal_suffix=bool(LEGAL_SUFFIX_RE.search(head)),
        all_caps=is_all_caps(head),
        job_keyword=bool(JOB_RE.search(head)),
        title_case=title_case_ratio(head) >= 0.5,
        next_line_dates=not inline and is_meta_date_line(nxt),
        inline_dates=inline,
    )


# Evaluated top to bottom. Any rejection wins; otherwise the first acceptance names the rule.
REJECT_RULES = (
    ("bullet", lambda s: s.bullet),
    ("lowercase_or_digit_start", lambda s: s.lower_start),
    ("action_sentence", lambda s: s.action_sentence),
    ("company_city", lambda s: s.company_city),
)

ACCEPT_RULES = (
    (
        "next_line_dates",
        lambda s: s.next_line_dates
        and HEADER_MIN_LEN <= s.length <= HEADER_MAX_LEN
        and (s.dash or s.legal_suffix or s.all_caps or s.job_keyword or s.title_case),
    ),
    (
        "inline_dates",
        lambda s: s.inline_dates and s.dash and (s.legal_suffix or s.all_caps or (s.job_keyword and s.title_case)),
    ),
    ("dash_suffix", lambda s: s.dash and s.legal_suffix),
    (
        "dash_job",
        lambda s: s.dash and s.job_keyword and s.length <= DASH_JOB_MAX_LEN and (s.all_caps or s.title_case),
    ),
)


def classify_header(signals: HeaderSignals) -> Optional[str]:
    if not signals.length:
        return None
    for _, rule in REJECT_RULES:
        if rule(signals):
            return None
    for name, rule in ACCEPT_RULES:
        if rule(signals):
            return name
    return None


def role_score(text: str) -> int:
    """How much a header fragment reads like a job title rather than an employer."""
    s = (text or "").strip()
    if not s:
        return -999
    score = 0
    if JOB_RE.search(s):
        score += 4
    if len(s) <= 30:
        score += 2
    if "," in s:
        score -= 3
    if LEGAL_SUFFIX_RE.search(s):
        score -= 3
    return score


def _clean_title(s: str) -> str:
    return re.sub(r"\s{2,}", " ", (s or "").strip(" *_\"'|,;" + DASHES)).strip()


def _split_company(text: str) -> Tuple[str, str]:
    text = _clean_title(text)
    if "," not in text:
        return text, ""
    company, _, location = text.rpartition(",")
    location = location.strip()
    if not location or len(location.split()) > 3 or LEGAL_SUFFIX_RE.search(location):
        return text, ""
    return company.strip(), location


def parse_header(line: str, date_line: str = "", next_line: str = "") -> HeaderParts:
    """Split a header line into title, company, location and date range.

    "Title - Company, City | MM.YYYY – MM.YYYY": the trailing range is
    stripped, the rest is split on a dash or "@" (or on pipes), and the
    fragment that scores higher as a job title becomes the title.
    """
    date_range = None
    m = DATE_RANGE_RE.search(line) or DATE_RANGE_RE.search(date_line or "")
    if m:
        date_range = DateRange(start=m.group(1).strip(), end=re.sub(r"\s+", " ", m.group(2).strip()))
        if OPEN_WORD_RE.match(date_range.end):
            date_range = DateRange(start=date_range.start, end=date_range.end.lower())
    else:
        date_range = _implicit_open_range(line, next_line)

    head = _strip_dates(line)
    if date_range is not None and not DATE_RANGE_RE.search(line):
        head = _strip_dates(head.replace(date_range.start, " "))
    parts = _head_parts(head)
    title, company = head, ""
    if len(parts) >= 2:
        best = max(range(len(parts)), key=lambda k: role_score(parts[k]))
        title = parts[best]
        company = parts[1] if best == 0 else parts[0]
    if not company:
        pieces = _SEPARATOR_RE.split(title, maxsplit=1)
        if len(pieces) == 2:
            title, company = pieces
            if role_score(company) > role_score(title):
                title, company = company, title
    if not company and date_line:
        company = _strip_dates(date_line)

    company, location = _split_company(company)
    return HeaderParts(title=_clean_title(title), company=company, location=location, date_range=date_range)


@functools.lru_cache(maxsize=256)
def _segment_cached(text: str) -> Tuple[RoleBlock, ...]:
    # cached by full normalized text; the same paste is re-segmented on every turn
    lines = [l.strip() for l in text.split("\n")]
    headers = []
    i = 0
    while i < len(lines):
        if not lines[i]:
            i += 1
            continue
        rule = classify_header(header_signals(lines, i))
        if not rule:
            i += 1
            continue
        j, nxt = _next_non_blank(lines, i)
        date_line = nxt if rule == "next_line_dates" else ""
        body_start = j + 1 if date_line else i + 1
        headers.append((i, body_start, date_line, nxt))
        i = body_start

    roles = []
    seen = set()
    for k, (start, body_start, date_line, nxt) in enumerate(headers):
        end = headers[k + 1][0] if k + 1 < len(headers) else len(lines)
        parts = parse_header(lines[start], date_line=date_line, next_line=nxt)
        if not parts.title:
            continue
        role = RoleBlock(
            title=parts.title,
            company=parts.company,
            location=parts.location,
            date_range=parts.date_range,
            body_lines=tuple(l for l in lines[body_start:end] if l),
            raw_text="\n".join(lines[start:end]).strip(),
        )
        if role.key in seen:
            continue
        seen.add(role.key)
        roles.append(role)
    return tuple(roles)


def segment(text: str) -> List[RoleBlock]:
    """Partition experience text into role blocks, in source order, duplicates collapsed."""
    return list(_segment_cached(normalize(text)))


def find_role(roles: List[RoleBlock], title: str) -> RoleBlock:
    """Exact title match, else the closest partial key match, else a header-only block."""
    wanted = slug(title)
    for r in roles:
        if slug(r.title) == wanted:
            return r
    best, best_ratio = None, 0.0
    if wanted:
        for r in roles:
            have = slug(r.title)
            if have and (wanted in have or have in wanted):
                ratio = min(len(have), len(wanted)) / float(max(len(have), len(wanted)))
                if ratio > best_ratio:
                    best, best_ratio = r, ratio
    if best is not None:
        return best
    literal = re.sub(r"\s+", " ", (title or "").strip())
    return RoleBlock(title=literal, raw_text=literal)

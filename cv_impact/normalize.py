import re

# Month names accepted in front of a year ("Jan 2021", "marzec 2020", "wrz. 2019").
_MONTHS = (
    r"(?:january|february|march|april|may|june|july|august|september|october|november|december"
    r"|jan|feb|mar|apr|jun|jul|aug|sep|sept|oct|nov|dec"
    r"|styczeń|styczen|stycznia|luty|lutego|marzec|marca|kwiecień|kwiecien|kwietnia|maj|maja"
    r"|czerwiec|czerwca|lipiec|lipca|sierpień|sierpien|sierpnia|wrzesień|wrzesien|września|wrzesnia"
    r"|październik|pazdziernik|października|pazdziernika|listopad|listopada|grudzień|grudzien|grudnia"
    r"|sty|lut|kwi|cze|lip|sie|wrz|paź|paz|lis|gru)\.?"
)

DATE_TOKEN = (
    r"(?:(?<!\d)(?:0?[1-9]|1[0-2])[./-](?:19|20)\d{2}(?!\d)"
    r"|\b" + _MONTHS + r"\s+(?:19|20)\d{2}(?!\d)"
    r"|(?<![\d.])(?:19|20)\d{2}(?!\d))"
)
OPEN_WORD = r"(?:obecnie|present|currently|current|now|teraz|nadal|ongoing|do\s+dziś|do\s+dzis|do\s+teraz)"
DASHES = "-–—−"

DATE_TOKEN_RE = re.compile(DATE_TOKEN, re.I)
OPEN_WORD_RE = re.compile(r"^\W*" + OPEN_WORD + r"\b", re.I)
DATE_RANGE_RE = re.compile(
    r"(" + DATE_TOKEN + r")\s*(?:[" + DASHES + r"]|\s(?:to|do|until)\s)\s*(" + DATE_TOKEN + r"|" + OPEN_WORD + r")(?![\w])",
    re.I,
)
_DASH_RANGE_RE = re.compile(
    r"(" + DATE_TOKEN + r")\s*[" + DASHES + r"]\s*(" + DATE_TOKEN + r"|" + OPEN_WORD + r")(?![\w])",
    re.I,
)

_LETTER = r"[^\W\d_]"
_GLUED_BEFORE_DATE_RE = re.compile(r"(" + _LETTER + r")(" + DATE_TOKEN + r")", re.I)
_GLUED_AFTER_DATE_RE = re.compile(r"((?<!\d)(?:19|20)\d{2})(?=" + _LETTER + r")")
_GLUED_AFTER_OPEN_RE = re.compile(r"\b(obecnie|present|currently)(?=[A-ZĄĆĘŁŃÓŚŹŻ])", re.I)

_DECORATION_RE = re.compile(r"^(\*\*|__|\*|_)(.+?)\1$")
_QUOTE_RE = re.compile(r"^(?:>\s?)+")
_HEADING_HASH_RE = re.compile(r"^#{1,6}\s+")
_BULLET_RE = re.compile(r"^(?:[-•*·–—▪►✓●○]\s*|\d{1,2}[.)]\s+)")
_CAPS_AFTER_PUNCT_RE = re.compile(
    r"(?<=[.!?;])\s+(?=[A-ZĄĆĘŁŃÓŚŹŻ]{4,}\b|[A-ZĄĆĘŁŃÓŚŹŻ]{2,}(?:[\s&]+[A-ZĄĆĘŁŃÓŚŹŻ]{2,})+\b)"
)
_SENTENCE_END = ".!?;:"
_WRAP_MAX = 110


def is_bullet(line: str) -> bool:
    return bool(_BULLET_RE.match((line or "").lstrip()))


def is_all_caps(line: str) -> bool:
    letters = [ch for ch in (line or "") if ch.isalpha()]
    return len(letters) >= 4 and all(ch.isupper() for ch in letters)


def is_date_line(line: str) -> bool:
    """A line that opens with a date range ("03.2021 – obecnie", "2019 - 2020 | Warszawa")."""
    m = DATE_RANGE_RE.search(line or "")
    return bool(m) and not (line or "")[: m.start()].strip(" |,()[]" + DASHES)


def _unify_breaks(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace("\u2028", "\n").replace("\u2029", "\n")
    return text.replace("\u00a0", " ").replace("\t", " ")


def _clean_line(line: str) -> str:
    out = line.strip()
    out = _QUOTE_RE.sub("", out)
    out = _HEADING_HASH_RE.sub("", out)
    # whole-line *italic*, **bold** and _underscore_ wrapping
    while True:
        m = _DECORATION_RE.match(out)
        if not m or not m.group(2).strip():
            break
        out = m.group(2).strip()
    out = _GLUED_BEFORE_DATE_RE.sub(r"\1 \2", out)
    out = _GLUED_AFTER_DATE_RE.sub(r"\1 ", out)
    out = _GLUED_AFTER_OPEN_RE.sub(r"\1 ", out)
    out = _DASH_RANGE_RE.sub(lambda m: f"{m.group(1)} – {m.group(2)}", out)
    out = re.sub(r"[ ]{2,}", " ", out)
    return out.strip()


def _coarse(text: str) -> str:
    lines = [_clean_line(l) for l in _unify_breaks(text).split("\n")]
    out = "\n".join(lines).strip()
    return re.sub(r"\n{3,}", "\n\n", out)


def _is_dense(text: str) -> bool:
    non_empty = [l for l in text.split("\n") if l.strip()]
    return len(non_empty) <= 2 and len(text) > 120 and bool(DATE_RANGE_RE.search(text))


def _break_dense(text: str) -> str:
    pieces = []
    last = 0
    for m in DATE_RANGE_RE.finditer(text):
        pieces.append(text[last:m.start()])
        pieces.append(m.group(0))
        last = m.end()
    pieces.append(text[last:])
    cleaned = []
    for p in pieces:
        p = p.strip().strip("|").strip()
        p = re.sub(r"[,(]+$", "", p).strip()
        p = re.sub(r"^[,)]+", "", p).strip()
        if p:
            cleaned.append(p)
    out = "\n".join(cleaned)
    return _CAPS_AFTER_PUNCT_RE.sub("\n", out)


def _dedupe_consecutive(lines):
    out = []
    prev_key = None
    for line in lines:
        key = re.sub(r"\s+", " ", line).strip().lower()
        if key and key == prev_key:
            continue
        out.append(line)
        prev_key = key if key else prev_key
    return out


def _is_heading(line: str) -> bool:
    return is_all_caps(line) or line.endswith(":") or bool(DATE_RANGE_RE.search(line))


def _continues(line: str) -> bool:
    if not line or is_bullet(line) or _is_heading(line) or is_date_line(line) or OPEN_WORD_RE.match(line):
        return False
    first = line[0]
    return first.islower() or first.isdigit() or first == "("


def _rejoin_wrapped(lines):
    out = []
    for line in lines:
        if out:
            prev = out[-1]
            if (
                prev
                and len(prev) <= _WRAP_MAX
                and not is_bullet(prev)
                and not _is_heading(prev)
                and prev[-1] not in _SENTENCE_END
                and _continues(line)
            ):
                out[-1] = prev + " " + line
                continue
        out.append(line)
    return out


def _normalize_once(text: str) -> str:
    out = _coarse(text)
    if _is_dense(out):
        out = _coarse(_break_dense(out))
    lines = _dedupe_consecutive(out.split("\n"))
    lines = _rejoin_wrapped(lines)
    return _coarse("\n".join(lines))


def normalize(text) -> str:
    """Canonicalize pasted experience text.

    Total and idempotent: the single pass is repeated until it reaches a
    fixed point, so normalize(normalize(x)) == normalize(x).
    """
    out = _normalize_once(str(text or ""))
    for _ in range(4):
        again = _normalize_once(out)
        if again == out:
            break
        out = again
    return out

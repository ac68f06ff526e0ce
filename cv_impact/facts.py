import re
from typing import Iterable

from pydantic import BaseModel

from .domain import Domain, classify, is_acquisition_relevant
from .normalize import DATE_RANGE_RE, DATE_TOKEN_RE, is_bullet
from .structure import ACTION_STEMS, PAST_ENDINGS

# A standalone number: not glued to letters ("B2B", "10kg"), optional "k" suffix.
NUMBER_RE = re.compile(r"(?<![^\W_])(\d+(?:[.,]\d+)?)(?:k|K)?(?![^\W_])")

ACTION_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(s) for s in ACTION_STEMS) + r")\w*"
    r"|\b\w+(?:" + "|".join(PAST_ENDINGS) + r")\b",
    re.I,
)
ACTION_LIST_RE = re.compile(
    r"^\s*(?:zadania|obowiązki|obowiazki|zakres obowiązków|działania|dzialania|responsibilities|duties|tasks"
    r"|key tasks)\s*:\s*[^,;\n]+[,;][^,;\n]+",
    re.I | re.M,
)

SCALE_VOCAB_RE = re.compile(
    r"tydz\w*|tygodniow\w*|mies\w*|\bmsc\b|\bmc\b|dzienn\w*|codzienn\w*|dzień|dziennie|rocz\w*|kwarta\w*"
    r"|budżet\w*|budzet\w*|budget\w*|spend|pipeline\w*|kampani\w*|ofert\w*|spotka\w*|lead\w*|zgłosze\w*"
    r"|zglosze\w*|ticket\w*|faktur\w*|zespo\w*|osób|osob\w*|\bos\.|klient\w*|wolumen\w*|volume"
    r"|użytkownik\w*|uzytkownik\w*|\busers?\b|\brps\b|request\w*|serwer\w*|server\w*|projekt\w*|project\w*"
    r"|kontakt\w*|dokument\w*|zamówie\w*|zamowie\w*|order\w*|\bsku\b|produkt\w*|product\w*|\btys\b|\bmln\b"
    r"|\bzł|\bzl\b|\bpln\b|\beur\b|\busd\b|\$|€|per (?:day|week|month|year)|daily|weekly|monthly"
    r"|/\s?(?:mies|msc|mc|tydz|dzień|dzien|day|week|month)|\bteam\w*|people|client\w*|customer\w*"
    r"|account\w*|\bcalls?\b|rozm[oó]w\w*|połącze\w*|polacze\w*|pracownik\w*|employee\w*",
    re.I,
)
SCALE_LABEL_RE = re.compile(r"\b(?:skala|scale|wolumen|volume)\s*:", re.I)
NUMBER_NOUN_RE = re.compile(r"(?<![^\W_])(\d+)\s+[^\W\d_]{3,}")

KPI_RE = re.compile(
    r"\broas\b|\bcac\b|\bcpa\b|\bctr\b|\bcpc\b|\bcpl\b|\bcr\b|\bltv\b|\bmrr\b|\barr\b|przych[oó]d\w*"
    r"|revenue|win ?rate|konwersj\w*|conversion\w*|\bnps\b|\bcsat\b|\bsla\b|\baht\b|\bfcr\b|\bkpi\w*"
    r"|\broi\b|marż\w*|margin\w*|uptime|dostępnoś\w*|availability|realizacj\w* (?:planu|celu|targetu)"
    r"|obr[oó]t\w*|oszczędn\w*|oszczedn\w*|saving\w*|zysk\w*|profit\w*|retencj\w*|retention|churn"
    r"|open rate|engagement|zasięg\w*|\breach\b|wyświetle\w*|impression\w*|obserwując\w*|follower\w*"
    r"|czas\w* (?:obsługi|obslugi|odpowiedzi|reakcji|wdrożenia|wdrozenia|realizacji)|lead time|cycle time"
    r"|response time|latency|wzrost\w*|spad\w*|increase\w*|growth|grew|reduc\w*|improv\w*|poprawa"
    r"|zwiększ\w*|zwieksz\w*|zmniejsz\w*|zreduk\w*|skróc\w*|skroc\w*|\d\s*%",
    re.I,
)
DELTA_RES = (
    re.compile(
        r"(?:\bz|\bfrom|\bod)\s+(?:ok\.?\s*|~)?\d[\d.,]*\s*(?:%|p\.?p\.?|pp|zł|k|tys\.?|mln|h|min|dni|days)?"
        r"\s+(?:do|to)\s+(?:ok\.?\s*|~)?\d",
        re.I,
    ),
    re.compile(
        r"\b(?:o|by)\s+(?:ok\.?\s*|~)?\d+(?:[.,]\d+)?\s*(?:%|p\.?\s?p\.?|pp\b|proc\w*|punkt\w* proc\w*|percent\w*)",
        re.I,
    ),
    re.compile(r"(?<![\w])[+−-]\s?\d+(?:[.,]\d+)?\s*%"),
    re.compile(r"(?<![^\W_])\d+(?:[.,]\d+)?\s?x\b|\bx\s?\d+(?:[.,]\d+)?\b", re.I),
    re.compile(r"dwukrotn\w*|trzykrotn\w*|podwoi\w*|potroi\w*|doubl\w*|tripl\w*", re.I),
    re.compile(
        r"(?:wzrost|spadek|zwiększ|zwieksz|zmniejsz|skróc|skroc|zreduk|obniż|obniz|poprawi|increas|decreas"
        r"|reduc|cut|grew|boost|improv|rais|lower)\w*[^.\n;]{0,40}?\d+(?:[.,]\d+)?\s*%",
        re.I,
    ),
)
_FAILURE_NOUNS = (
    r"(?:incydent|błęd|bled|reklamac|incident|defect|error|bug|wypadk|skarg|complaint|opóźnie|opoznie|delay)\w*"
)
CEILING_RE = re.compile(
    r"(?<![\d.,])100\s*%|\bzero\s+" + _FAILURE_NOUNS + r"|(?<![\d.,])0\s+" + _FAILURE_NOUNS
    + r"|\bbez\s+(?:żadnych\s+|zadnych\s+)?" + _FAILURE_NOUNS
    + r"|zawsze\s+(?:na\s+czas|w\s+terminie|terminowo)|always\s+on\s+time"
    r"|\bno\s+(?:incidents|defects|delays|complaints)",
    re.I,
)
CONTEXT_RE = re.compile(
    r"\br\s?/\s?r\b|\brdr\b|rok do roku|year[- ]over[- ]year|\byoy\b|\bm\s?/\s?m\b|\bmom\b|\bq\s?/\s?q\b|\bqoq\b"
    r"|kwartał do kwartału|kwartal do kwartalu|miesiąc do miesiąca|miesiac do miesiaca|\bvs\.?(?=\s)|versus"
    r"|w porównaniu|w porownaniu|compared (?:to|with)|względem|wzgledem"
    r"|niż (?:w )?(?:poprzedni|wcześniej|wczesniej|przed|rok|zeszł)\w*"
    r"|than (?:the )?(?:previous|last|prior|before)|poprzedni\w* (?:okres|rok|roku|kwarta\w*|miesi\w*)"
    r"|previous (?:period|year|quarter|month)|baseline|punkt\w* wyjścia|punkt\w* odniesienia|z poziomu"
    r"|średni\w* (?:zespołu|działu|firmy|rynkow\w*)|team average|przed (?:zmianą|wdrożeniem|moim)"
    r"|before (?:the change|i joined)",
    re.I,
)
PROCESS_STAGES = tuple(
    re.compile(p, re.I)
    for p in (
        r"prospect\w*|research\w*|baz\w* kontakt\w*|list\w* kontakt\w*|cold (?:call|mail)\w*|outbound|inbound|\blead\w*",
        r"kwalifikac\w*|qualif\w*|discovery|analiz\w* potrzeb|\bbant\b",
        r"spotka\w*|meeting\w*|\bdemo\w*|prezentac\w*|rozm[oó]w\w* handlow\w*",
        r"ofert\w*|proposal\w*|wycen\w*|quote\w*",
        r"negocjac\w*|negotiat\w*",
        r"zamknię\w*|zamknie\w*|domyk\w*|domknię\w*|closing|podpisan\w*|umow\w*|contract\w*",
        r"follow[- ]?up\w*|onboarding\w*|posprzedaż\w*|upsell\w*|cross[- ]?sell\w*",
    )
)
NUMBERED_STEP_RE = re.compile(r"(?:^|\n)\s*\d[.)]\s+\S|\b(?:krok|etap|step|stage)\s*\d", re.I)
ARROW_RE = re.compile(r"→|->|=>")
MIN_PROCESS_STAGES = 3


class FactSet(BaseModel):
    has_actions: bool = False
    has_scale: bool = False
    has_result: bool = False
    has_process: bool = False
    has_context: bool = False
    needs_process: bool = False
    needs_context: bool = False
    ceiling: bool = False
    domain: Domain = Domain.GENERIC


def strip_dates(text: str) -> str:
    return DATE_TOKEN_RE.sub(" ", DATE_RANGE_RE.sub(" ", text or ""))


def _segments(text: str):
    return [s for s in re.split(r"[\n;]", text) if s.strip()]


def _numbers(text: str):
    out = []
    for m in NUMBER_RE.finditer(text):
        try:
            out.append(float(m.group(1).replace(",", ".")))
        except ValueError:
            continue
    return out


def has_actions(text: str) -> bool:
    bullets = [l for l in text.split("\n") if is_bullet(l)]
    return bool(ACTION_RE.search(text)) or len(bullets) >= 2 or bool(ACTION_LIST_RE.search(text))


def has_scale(text: str) -> bool:
    if SCALE_LABEL_RE.search(text):
        return True
    for seg in _segments(text):
        if _numbers(seg) and SCALE_VOCAB_RE.search(seg):
            return True
        for m in NUMBER_NOUN_RE.finditer(seg):
            if int(m.group(1)) >= 10:
                return True
    return False


def has_hard_result(text: str) -> bool:
    if any(p.search(text) for p in DELTA_RES):
        return True
    return any(_numbers(seg) and KPI_RE.search(seg) for seg in _segments(text))


def has_process(text: str) -> bool:
    stages = sum(1 for p in PROCESS_STAGES if p.search(text))
    steps = len(NUMBERED_STEP_RE.findall(text))
    return stages >= MIN_PROCESS_STAGES or steps >= 2 or len(ARROW_RE.findall(text)) >= 2


def analyze(role_text: str, collected_answers: Iterable[str] = (), title: str = "") -> FactSet:
    """Which fact kinds are present in a role body plus the answers collected so far.

    Pure: the same role text and answers always give the same FactSet.
    """
    combined = "\n".join([role_text or ""] + [a for a in collected_answers if a])
    text = strip_dates(combined)
    domain = classify(title, combined)
    ceiling = bool(CEILING_RE.search(text))
    result = ceiling or has_hard_result(text)
    needs_process = is_acquisition_relevant(domain, combined)
    return FactSet(
        has_actions=has_actions(combined),
        has_scale=has_scale(text),
        has_result=result,
        has_process=needs_process and has_process(combined),
        has_context=bool(CONTEXT_RE.search(text)) or bool(DELTA_RES[0].search(text)),
        needs_process=needs_process,
        needs_context=result and not ceiling,
        ceiling=ceiling,
        domain=domain,
    )

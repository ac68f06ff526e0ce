import re
from enum import Enum


class Domain(str, Enum):
    SALES = "sales"
    MARKETING = "marketing"
    ECOMMERCE = "e-commerce"
    PROJECT_MANAGEMENT = "project-management"
    ENGINEERING = "engineering"
    QA = "qa"
    CUSTOMER_SUPPORT = "customer-support"
    ADMINISTRATIVE = "administrative"
    GENERIC = "generic"


# Most specific domain first; the first hit wins.
DOMAIN_PATTERNS = (
    (Domain.QA, r"\bqa\b|\btester\w*|quality assurance|test automation|testy? (?:manualn|automatyczn|regresj)\w*|testów"),
    (Domain.ECOMMERCE, r"e-?commerce|sklep\w* internetow\w*|marketplace|allegro|shopify|amazon seller"),
    (
        Domain.CUSTOMER_SUPPORT,
        r"obsług\w* klient\w*|obslug\w* klient\w*|customer (?:support|service|care)|helpdesk|help desk"
        r"|call center|contact center|\bsupport\b|konsultant\w*|zgłosze\w*",
    ),
    (
        Domain.PROJECT_MANAGEMENT,
        r"project manag\w*|kierownik\w* projekt\w*|koordynator\w* projekt\w*|scrum master|product owner|\bpmo?\b"
        r"|projekt\w*|project",
    ),
    (Domain.MARKETING, r"marketing\w*|social media|\bseo\b|\bsem\b|\bppc\b|content|brand|kampani\w*|google ads|meta ads"),
    (
        Domain.SALES,
        r"sprzeda\w*|\bsales\b|handlow\w*|account (?:manager|executive)|business development|key account|\bb2b\b"
        r"|przedstawiciel\w*",
    ),
    (
        Domain.ENGINEERING,
        r"develop\w*|programist\w*|engineer\w*|inżynier\w*|inzynier\w*|software|devops|backend|frontend"
        r"|full[- ]?stack|data (?:engineer|scientist)|architekt\w*|architect\w*",
    ),
    (
        Domain.ADMINISTRATIVE,
        r"administracyjn\w*|\badmin\w*|biur\w*|office|asystent\w*|assistant|sekretar\w*|recepcj\w*|kadr\w*"
        r"|\bhr\b|księgow\w*|ksiegow\w*",
    ),
)
_COMPILED = tuple((domain, re.compile(pattern, re.I)) for domain, pattern in DOMAIN_PATTERNS)

ACQUISITION_DOMAINS = (Domain.SALES, Domain.MARKETING, Domain.ECOMMERCE)
ACQUISITION_RE = re.compile(
    r"\blead\w*|outbound|inbound|pipeline\w*|lejk\w*|negocjac\w*|negotiat\w*|pozyskiw\w*|prospect\w*"
    r"|cold call\w*|akwizycj\w*",
    re.I,
)
NO_SELLING_RE = re.compile(
    r"bez (?:bezpośredniej |bezposredniej )?(?:sprzedaży|sprzedazy|pozyskiwania)"
    r"|nie (?:zajmował\w* się|zajmowal\w* sie) (?:bezpośrednią |bezposrednia )?(?:sprzedażą|sprzedaza|pozyskiwaniem)"
    r"|nie (?:sprzedawał|sprzedawal|pozyskiwał|pozyskiwal)\w*"
    r"|no direct sales|not (?:involved|responsible) (?:in|for) (?:direct )?(?:sales|selling)|did not sell",
    re.I,
)


def _match(text: str):
    for domain, pattern in _COMPILED:
        if pattern.search(text or ""):
            return domain
    return None


def classify(title: str, body_text: str = "") -> Domain:
    """Coarse occupational domain; title vocabulary wins over body vocabulary."""
    return _match(title) or _match(body_text) or Domain.GENERIC


def is_acquisition_relevant(domain: Domain, text: str) -> bool:
    if domain not in ACQUISITION_DOMAINS:
        return False
    return bool(ACQUISITION_RE.search(text or "")) and not NO_SELLING_RE.search(text or "")

"""Region and date filters accepted by the DuckDuckGo HTML endpoint."""

REGIONS: dict[str, str] = {
    "ar-es": "Argentina",
    "au-en": "Australia",
    "at-de": "Austria",
    "be-fr": "Belgium (fr)",
    "be-nl": "Belgium (nl)",
    "br-pt": "Brazil",
    "ca-en": "Canada (en)",
    "ca-fr": "Canada (fr)",
    "cl-es": "Chile",
    "cn-zh": "China",
    "dk-da": "Denmark",
    "fi-fi": "Finland",
    "fr-fr": "France",
    "de-de": "Germany",
    "hk-tzh": "Hong Kong",
    "in-en": "India",
    "id-en": "Indonesia",
    "ie-en": "Ireland",
    "il-he": "Israel",
    "it-it": "Italy",
    "jp-jp": "Japan",
    "kr-kr": "Korea",
    "mx-es": "Mexico",
    "nl-nl": "Netherlands",
    "nz-en": "New Zealand",
    "no-no": "Norway",
    "pl-pl": "Poland",
    "pt-pt": "Portugal",
    "ru-ru": "Russia",
    "sg-en": "Singapore",
    "za-en": "South Africa",
    "es-es": "Spain",
    "se-sv": "Sweden",
    "ch-de": "Switzerland (de)",
    "ch-fr": "Switzerland (fr)",
    "tw-tzh": "Taiwan",
    "tr-tr": "Turkey",
    "ua-uk": "Ukraine",
    "uk-en": "United Kingdom",
    "us-en": "United States",
    "us-es": "United States (es)",
    "vn-vi": "Vietnam",
}

DATE_FRAMES: dict[str, str] = {
    "d": "past day",
    "w": "past week",
    "m": "past month",
    "y": "past year",
}


def normalize_region(region: str | None) -> str:
    """Return a supported ``kl`` code, or ``""`` for no region filter."""
    code = (region or "").strip().lower()
    return code if code in REGIONS else ""


def normalize_date_frame(date_frame: str | None) -> str:
    """Return a supported ``df`` code, or ``""`` for any time."""
    code = (date_frame or "").strip().lower()
    return code if code in DATE_FRAMES else ""

"""Parsing of free-text Peruvian street addresses.

Handles the forms operators and citizens actually type::

    Ca. Santa Teresa 115
    Av. Ejército 450-A
    Jr. Los Olivos Mz B Lt 15
    AV AREQUIPA 450, DPTO 301, URB SANTA ROSA
"""

import re
from dataclasses import dataclass

from territory_api.lib.territory.numbers import parse_municipal_number

_WAY_PREFIX = re.compile(
    r"^(Av\.?|Avenida|Ca\.?|Calle|Jr\.?|Jir[oó]n|Pj\.?|Psje\.?|Pasaje"
    r"|Prol\.?|Prolongaci[oó]n|Malec[oó]n|Alameda)\s+",
    re.IGNORECASE,
)
_BLOCK_LOT = re.compile(
    r"(?:^|[\s,]+)(?:Mz\.?|Manzana)\s+([^\s,]+)(?:[\s,]+(?:Lt\.?|Lote)\s+([^\s,]+))?",
    re.IGNORECASE,
)
_NUMBER = re.compile(r"\s+((?:N[º°o]\.?\s*|#\s*)?\d+-?\w*|S/N)$", re.IGNORECASE)
_NUMBER_MARK = re.compile(r"^(?:N[º°o]\.?\s*|#\s*)", re.IGNORECASE)

_WAY_NAMES: dict[str, str] = {
    "av": "Avenida",
    "avenida": "Avenida",
    "ca": "Calle",
    "calle": "Calle",
    "jr": "Jirón",
    "jiron": "Jirón",
    "jirón": "Jirón",
    "pj": "Pasaje",
    "psje": "Pasaje",
    "pasaje": "Pasaje",
    "prol": "Prolongación",
    "prolongacion": "Prolongación",
    "prolongación": "Prolongación",
    "malecon": "Malecón",
    "malecón": "Malecón",
    "alameda": "Alameda",
}

# (long form, short form); a name starting with either also gets the other
_NAME_ABBREVIATIONS: tuple[tuple[str, str], ...] = (
    ("Santa", "Sta."),
    ("Santo", "Sto."),
    ("San", "S."),
)


@dataclass(frozen=True)
class ParsedAddress:
    """Components of a street address.

    Attributes:
        street_name: Street name without the way type.
        way_prefix: Way type as written (``"Av."``, ``"JR"``), if any.
        number: Municipal number as written, ``None`` for "S/N".
        block: Block (manzana) label.
        lot: Lot label.
        raw: The text the components came from.
    """

    street_name: str
    way_prefix: str | None = None
    number: str | None = None
    block: str | None = None
    lot: str | None = None
    raw: str = ""

    @property
    def house_number(self) -> int | None:
        return parse_municipal_number(self.number)

    @property
    def full_street(self) -> str:
        return f"{self.way_prefix} {self.street_name}" if self.way_prefix else self.street_name

    def display(self) -> str:
        """Text for free-form provider queries."""
        if self.raw:
            return self.raw
        text = self.full_street
        if self.number:
            text = f"{text} {self.number}"
        if self.block:
            text = f"{text} Mz {self.block}" + (f" Lt {self.lot}" if self.lot else "")
        return text


def parse_address(text: str) -> ParsedAddress:
    """Split a free-text address into way type, street name, number, block and lot.

    Anything after the first comma that is not a block/lot (unit, urbanization)
    is ignored.
    """
    trimmed = " ".join(text.split())
    way_prefix = None
    rest = trimmed
    match = _WAY_PREFIX.match(rest)
    if match:
        way_prefix = match.group(1)
        rest = rest[match.end() :]

    block = lot = None
    match = _BLOCK_LOT.search(rest)
    if match:
        block = match.group(1).upper()
        lot = match.group(2).upper() if match.group(2) else None
        rest = rest[: match.start()] + rest[match.end() :]

    rest = rest.split(",", 1)[0].strip()

    number = None
    match = _NUMBER.search(rest)
    if match:
        token = _NUMBER_MARK.sub("", match.group(1)).strip()
        number = None if token.upper() == "S/N" else token.upper()
        rest = rest[: match.start()].strip()

    return ParsedAddress(
        street_name=rest.strip(),
        way_prefix=way_prefix,
        number=number,
        block=block,
        lot=lot,
        raw=trimmed,
    )


def expand_way_prefix(prefix: str | None) -> str | None:
    """Spell out a way-type abbreviation (``"Av."`` or ``"AV"`` -> ``"Avenida"``).

    Unknown prefixes are returned unchanged.
    """
    if not prefix:
        return None
    return _WAY_NAMES.get(prefix.rstrip(".").lower(), prefix)


def street_name_variants(name: str) -> list[str]:
    """The name followed by its Santa/Sta., Santo/Sto. and San/S. alternates."""
    variants = [name]
    lowered = name.lower()
    for long_form, short_form in _NAME_ABBREVIATIONS:
        short_bare = short_form.rstrip(".").lower()
        if lowered.startswith(long_form.lower() + " "):
            variants.append(f"{short_form} {name[len(long_form) + 1 :]}")
            break
        short_match = re.match(rf"^{short_bare}\.?\s+", lowered)
        if short_match:
            variants.append(f"{long_form} {name[short_match.end() :]}")
            break
    return variants

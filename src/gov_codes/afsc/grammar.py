r"""
AFSC Code Grammars
==================
Declarative positional grammars for the three code families, interpreted by
one scanning engine.

Grammars:
- enlisted:  [prefix]{group}{field}{subdivision}{skill}{specialty}[shredout]
             Example: 1A1X2A, A1A1X2A
             Classes: [A-Z]? \d [A-Z] \d [A-Z] \d [A-Z]?
             Facets:  career_field=1A, career_field_subdivision=1A1,
                      specific_afsc=1A1X2, subcategory=1X2, shredout=A

- officer:   [prefix]{group}{area}{level}[shredout]
             Example: 11MX, 11BXA, 11M0
             Classes: [A-Z]? \d{2} [A-Z] [0-4X-Z] [A-Z]?
             Facets:  specific_afsc=11MX, shredout=A

- ri:        {group}{field}{identifier}[suffix]
             Example: 9Z200, 8G000B
             Classes: \d [A-Z] \d{3} [A-Z]?
             Facets:  career_field=8G, specific_ri=8G000, suffix=B

Scanning rules:
- The cursor only moves forward. A required position that does not match
  halts the scan; every later facet stays None.
- Optional positions (leading prefix, trailing shredout/suffix) are skipped
  when they do not match.
- Whatever follows the last position is reported as the remainder.

Usage:
    from gov_codes.afsc.grammar import ENLISTED, Scanner

    scan = Scanner(ENLISTED).scan("1A1X2A")
    scan.facets["subcategory"]   # -> "1X2"
    ENLISTED.parse("1A1X2A")     # -> EnlistedRecord(...)
"""
from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field, fields
from typing import Dict, Optional, Tuple, Type


@dataclass(frozen=True)
class FacetRecord:
    """Base class for the per-family facet records."""

    def compose(self) -> str:
        """Reassemble the code string from the composite facets."""
        raise NotImplementedError

    def as_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)

    @property
    def is_empty(self) -> bool:
        """True if nothing beyond an optional prefix was matched."""
        return all(
            getattr(self, f.name) is None for f in fields(self) if f.name != "prefix"
        )

    @classmethod
    def facet_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))


@dataclass(frozen=True)
class EnlistedRecord(FacetRecord):
    prefix: Optional[str] = None
    career_group: Optional[str] = None
    career_field: Optional[str] = None
    career_field_subdivision: Optional[str] = None
    skill_level: Optional[str] = None
    specific_afsc: Optional[str] = None
    subcategory: Optional[str] = None
    shredout: Optional[str] = None

    def compose(self) -> str:
        return "".join(
            part or "" for part in (self.prefix, self.specific_afsc, self.shredout)
        )


@dataclass(frozen=True)
class OfficerRecord(FacetRecord):
    prefix: Optional[str] = None
    career_group: Optional[str] = None
    functional_area: Optional[str] = None
    qualification_level: Optional[str] = None
    specific_afsc: Optional[str] = None
    shredout: Optional[str] = None

    def compose(self) -> str:
        return "".join(
            part or "" for part in (self.prefix, self.specific_afsc, self.shredout)
        )


@dataclass(frozen=True)
class ReportingIdentifierRecord(FacetRecord):
    career_group: Optional[str] = None
    career_field: Optional[str] = None
    identifier: Optional[str] = None
    specific_ri: Optional[str] = None
    suffix: Optional[str] = None

    def compose(self) -> str:
        return "".join(part or "" for part in (self.specific_ri, self.suffix))


@dataclass(frozen=True)
class Position:
    """
    One grammar position.

    Attributes:
        segment: Name under which the matched text is remembered
        pattern: Regex for the character class consumed at this position
        emits: Facet name -> segment names concatenated to build it
        optional: Skip instead of halting when the pattern does not match
    """
    segment: str
    pattern: str
    emits: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()
    optional: bool = False


@dataclass(frozen=True)
class Scan:
    """Raw scanner output: facet values plus what was left unread."""
    facets: Dict[str, str]
    consumed: int
    remainder: str

    @property
    def at_end(self) -> bool:
        return not self.remainder


@dataclass(frozen=True)
class Grammar:
    """An ordered table of positions plus the record type it fills."""
    family: str
    positions: Tuple[Position, ...]
    record_type: Type[FacetRecord]
    required: Tuple[str, ...] = ()
    max_length: int = 7
    _compiled: Tuple[re.Pattern, ...] = field(default=(), init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(
            self, "_compiled", tuple(re.compile(p.pattern) for p in self.positions)
        )

    def with_pattern(self, segment: str, pattern: str) -> "Grammar":
        """Return a copy with one position's character class replaced."""
        if segment not in {p.segment for p in self.positions}:
            raise ValueError(f"Unknown {self.family} grammar segment: {segment}")
        positions = tuple(
            Position(p.segment, pattern, p.emits, p.optional) if p.segment == segment else p
            for p in self.positions
        )
        return Grammar(
            family=self.family,
            positions=positions,
            record_type=self.record_type,
            required=self.required,
            max_length=self.max_length,
        )

    def parse(self, code: Optional[str]) -> FacetRecord:
        return self.build_record(Scanner(self).scan(code))

    def build_record(self, scan: Scan) -> FacetRecord:
        return self.record_type(**scan.facets)

    def missing(self, record: FacetRecord) -> Tuple[str, ...]:
        """Required facets the record does not carry."""
        return tuple(name for name in self.required if getattr(record, name) is None)


class Scanner:
    """Left-to-right, no-backtrack interpreter for a Grammar."""

    def __init__(self, grammar: Grammar):
        self.grammar = grammar

    def scan(self, code: Optional[str]) -> Scan:
        text = "" if code is None else str(code)
        segments: Dict[str, str] = {}
        facets: Dict[str, str] = {}
        pos = 0

        for position, regex in zip(self.grammar.positions, self.grammar._compiled):
            match = regex.match(text, pos)
            if not match:
                if position.optional:
                    continue
                break

            segments[position.segment] = match.group(0)
            pos = match.end()

            for facet, parts in position.emits:
                facets[facet] = "".join(segments[part] for part in parts)

        return Scan(facets=facets, consumed=pos, remainder=text[pos:])


UPPER = r"[A-Z]"
DIGIT = r"\d"

ENLISTED_SKILL_LEVELS = "A-Z"
OFFICER_QUALIFICATION_LEVELS = "0-4X-Z"


def char_class(body: str) -> str:
    """Wrap a character class body ("0-4X-Z") as a single-character regex."""
    body = body.strip()
    if body.startswith("[") and body.endswith("]"):
        return body
    return f"[{body}]"


ENLISTED = Grammar(
    family="enlisted",
    positions=(
        Position("prefix", UPPER, (("prefix", ("prefix",)),), optional=True),
        Position("group", DIGIT, (("career_group", ("group",)),)),
        Position("field", UPPER, (("career_field", ("group", "field")),)),
        Position(
            "subdivision", DIGIT,
            (("career_field_subdivision", ("group", "field", "subdivision")),),
        ),
        Position("skill", char_class(ENLISTED_SKILL_LEVELS), (("skill_level", ("skill",)),)),
        Position(
            "specialty", DIGIT,
            (
                ("subcategory", ("subdivision", "skill", "specialty")),
                ("specific_afsc", ("group", "field", "subdivision", "skill", "specialty")),
            ),
        ),
        Position("shredout", UPPER, (("shredout", ("shredout",)),), optional=True),
    ),
    record_type=EnlistedRecord,
    required=(
        "career_group",
        "career_field",
        "career_field_subdivision",
        "skill_level",
        "specific_afsc",
        "subcategory",
    ),
    max_length=7,
)

OFFICER = Grammar(
    family="officer",
    positions=(
        Position("prefix", UPPER, (("prefix", ("prefix",)),), optional=True),
        Position("group", r"\d{2}", (("career_group", ("group",)),)),
        Position("area", UPPER, (("functional_area", ("area",)),)),
        Position(
            "level", char_class(OFFICER_QUALIFICATION_LEVELS),
            (
                ("qualification_level", ("level",)),
                ("specific_afsc", ("group", "area", "level")),
            ),
        ),
        Position("shredout", UPPER, (("shredout", ("shredout",)),), optional=True),
    ),
    record_type=OfficerRecord,
    required=("career_group", "functional_area", "qualification_level", "specific_afsc"),
    max_length=6,
)

REPORTING_IDENTIFIER = Grammar(
    family="ri",
    positions=(
        Position("group", DIGIT, (("career_group", ("group",)),)),
        Position("field", UPPER, (("career_field", ("group", "field")),)),
        Position(
            "identifier", r"\d{3}",
            (
                ("identifier", ("identifier",)),
                ("specific_ri", ("group", "field", "identifier")),
            ),
        ),
        Position("suffix", UPPER, (("suffix", ("suffix",)),), optional=True),
    ),
    record_type=ReportingIdentifierRecord,
    required=("career_group", "career_field", "identifier", "specific_ri"),
    max_length=6,
)

"""
Models
======

In-memory data model for the validation engine:

- Rule model produced by the schema parser (RuleDocument, Pattern, Rule, Check)
- Source locations of subject document elements
- Finding / ValidationReport returned to callers

The rule model is immutable.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from core.settings import (
    RESERVED_PREFIXES,
    SEVERITY_ERROR,
    PHASE_ALL,
    PHASE_DEFAULT,
)


# ==============================================================================
# RULE MODEL
# ==============================================================================


@dataclass(frozen=True)
class NamespaceBinding:
    prefix: str
    uri: str


@dataclass(frozen=True)
class MessageText:
    text: str


@dataclass(frozen=True)
class ValueOf:
    select: str


@dataclass(frozen=True)
class NameOf:
    path: Optional[str] = None


MessagePart = Union[MessageText, ValueOf, NameOf]


@dataclass(frozen=True)
class MessageTemplate:
    """Assertion text with embedded value-of / name sub-expressions."""

    parts: Tuple[MessagePart, ...] = ()

    @classmethod
    def from_text(cls, text: str) -> "MessageTemplate":
        return cls((MessageText(text),))

    @property
    def expressions(self) -> List[str]:
        """Expressions referenced by the template, in order."""
        found = []
        for part in self.parts:
            if isinstance(part, ValueOf):
                found.append(part.select)
            elif isinstance(part, NameOf) and part.path:
                found.append(part.path)
        return found

    @property
    def static_text(self) -> str:
        return normalize_space(
            "".join(p.text for p in self.parts if isinstance(p, MessageText))
        )


@dataclass(frozen=True)
class Check:
    kind: str  # 'assert' or 'report'
    test: str
    message: MessageTemplate
    ordinal: int = 1
    id: Optional[str] = None
    role: Optional[str] = None

    @property
    def is_assert(self) -> bool:
        return self.kind == "assert"


@dataclass(frozen=True)
class Rule:
    context: str
    checks: Tuple[Check, ...] = ()
    ordinal: int = 1
    id: Optional[str] = None


@dataclass(frozen=True)
class Pattern:
    rules: Tuple[Rule, ...] = ()
    id: Optional[str] = None
    title: Optional[str] = None


@dataclass(frozen=True)
class Phase:
    id: str
    active_patterns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RuleDocument:
    namespaces: Tuple[NamespaceBinding, ...] = ()
    patterns: Tuple[Pattern, ...] = ()
    title: Optional[str] = None
    query_binding: Optional[str] = None
    phases: Tuple[Phase, ...] = ()
    default_phase: Optional[str] = None

    def namespace_map(self) -> Dict[str, str]:
        """Declared prefix -> URI bindings for XPath evaluation ('xml' is always bound)."""
        return {
            binding.prefix: binding.uri
            for binding in self.namespaces
            if binding.prefix not in RESERVED_PREFIXES
        }

    def find_phase(self, phase_id: str) -> Optional[Phase]:
        for phase in self.phases:
            if phase.id == phase_id:
                return phase
        return None

    def patterns_for_phase(self, phase_id: Optional[str]) -> Optional[List[Pattern]]:
        """
        Patterns active in a phase.

        Args:
            phase_id: Phase id, '#ALL', '#DEFAULT' or None (same as '#DEFAULT')

        Returns:
            Ordered list of patterns, or None if the phase is not declared
        """
        if phase_id in (None, PHASE_DEFAULT):
            phase_id = self.default_phase or PHASE_ALL
        if phase_id == PHASE_ALL:
            return list(self.patterns)

        phase = self.find_phase(phase_id)
        if phase is None:
            return None
        active = set(phase.active_patterns)
        return [p for p in self.patterns if p.id in active]


# ==============================================================================
# LOCATIONS
# ==============================================================================


@dataclass(frozen=True)
class Location:
    line: int
    column: int

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "column": self.column}

    def __str__(self):
        return f"Line {self.line}, Column {self.column}"


def normalize_space(text: str) -> str:
    return " ".join(text.split())


# ==============================================================================
# RESULTS
# ==============================================================================


@dataclass(frozen=True)
class Finding:
    severity: str
    message: str
    kind: str
    location: Optional[Location] = None
    rule_context: Optional[str] = None
    check: Optional[Check] = None
    xpath: Optional[str] = None
    pattern_id: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity == SEVERITY_ERROR

    def to_dict(self, details: bool = False) -> Dict:
        """
        External representation of the finding.

        Args:
            details: Include rule context, test, kind and node path

        Returns:
            Dictionary with 'severity', 'message' and optional 'location'
        """
        data = {"severity": self.severity, "message": self.message}
        if self.location is not None:
            data["location"] = self.location.to_dict()
        if details:
            data["kind"] = self.kind
            if self.rule_context is not None:
                data["context"] = self.rule_context
            if self.check is not None:
                data["test"] = self.check.test
                if self.check.id:
                    data["id"] = self.check.id
                if self.check.role:
                    data["role"] = self.check.role
            if self.xpath is not None:
                data["xpath"] = self.xpath
            if self.pattern_id is not None:
                data["pattern"] = self.pattern_id
        return data

    def __str__(self):
        where = f" ({self.location})" if self.location is not None else ""
        return f"[{self.severity}] {self.message}{where}"


@dataclass(frozen=True)
class FiredRule:
    pattern: Pattern
    rule: Rule
    nodes: Tuple[object, ...]  # lxml elements, attribute/text results or the tree


@dataclass
class ValidationReport:
    """Findings of one validation run plus the rules that fired."""

    findings: List[Finding] = field(default_factory=list)
    fired_rules: List[FiredRule] = field(default_factory=list)
    rule_document: Optional[RuleDocument] = None
    phase: Optional[str] = None

    @property
    def errors(self) -> List[Finding]:
        return [f for f in self.findings if f.is_error]

    def is_valid(self) -> bool:
        return not self.errors

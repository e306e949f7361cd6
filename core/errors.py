"""
Errors
======

Exception hierarchy shared by the parser, loader and validation engine.

Fatal errors (ParseError subclasses, UnknownPhase) abort a validation run.
InvalidContextExpression and ExpressionError are local to one rule or one
check and are turned into inline findings by the engine.
"""

from typing import Optional


class SchematronError(Exception):
    """Base class for every error raised by this project."""


class ParseError(SchematronError):
    """One of the two input documents could not be turned into a model."""


class MalformedXml(ParseError):
    """Input text is not well-formed XML."""

    def __init__(self, line: int, column: int, reason: str, source: str = "document"):
        self.line = line
        self.column = column
        self.reason = reason
        self.source = source
        super().__init__(
            f"Malformed XML in {source} at line {line}, column {column}: {reason}"
        )


class MalformedRule(ParseError):
    """Rules document is well-formed but structurally invalid."""

    def __init__(
        self,
        reason: str,
        rule_context: Optional[str] = None,
        ordinal: Optional[int] = None,
    ):
        self.reason = reason
        self.rule_context = rule_context
        self.ordinal = ordinal

        where = ""
        if rule_context is not None:
            where = f" in rule '{rule_context}'"
        if ordinal is not None:
            where += f" (position {ordinal})"
        super().__init__(f"Malformed rule{where}: {reason}")


class UnknownPhase(SchematronError):
    """Requested phase is not declared by the rules document."""

    def __init__(self, phase: str):
        self.phase = phase
        super().__init__(f"Unknown phase '{phase}'")


class InvalidContextExpression(SchematronError):
    """A rule's context cannot be parsed or is not a location path."""

    def __init__(self, rule, reason: str):
        self.rule = rule
        self.reason = reason
        super().__init__(
            f"Invalid context expression '{rule.context}' "
            f"(rule {rule.ordinal}): {reason}"
        )


class ExpressionError(SchematronError):
    """A single check's test (or message expression) cannot be evaluated."""

    def __init__(self, rule, check, reason: str):
        self.rule = rule
        self.check = check
        self.reason = reason
        super().__init__(
            f"Cannot evaluate {check.kind} test '{check.test}' in rule "
            f"'{rule.context}' (check {check.ordinal}): {reason}"
        )


class ExpressionSyntaxError(SchematronError):
    """Expression text is not a valid XPath 1.0 expression."""

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"{reason} in '{expression}'")


class ExpressionEvaluationError(SchematronError):
    """Expression compiled but failed at evaluation time."""

"""Declarative validation rules and form schemas.

A schema is a set of field specs, each carrying single-field rules, plus
cross-field rules that read the whole draft and report on one target
field. Validation is pure: the same draft always yields the same errors
and nothing here performs I/O.
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError


def is_empty(value: Any) -> bool:
    """Return True for None, blank strings and empty containers."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset, dict, bytes)):
        return len(value) == 0
    return False


class Rule:
    """A constraint on a single field value."""

    def check(self, value: Any) -> str | None:
        """Return an error message, or None if the value passes."""
        raise NotImplementedError


@dataclass(frozen=True)
class Required(Rule):
    message: str = "This field is required."

    def check(self, value: Any) -> str | None:
        return self.message if is_empty(value) else None


@dataclass(frozen=True)
class Length(Rule):
    min: int | None = None
    max: int | None = None
    message: str | None = None

    def check(self, value: Any) -> str | None:
        size = len(str(value).strip())
        if self.min is not None and size < self.min:
            return self.message or f"Must be at least {self.min} characters."
        if self.max is not None and size > self.max:
            return self.message or f"Must be at most {self.max} characters."
        return None


@dataclass(frozen=True)
class Email(Rule):
    message: str = "Invalid email address"

    def check(self, value: Any) -> str | None:
        if not isinstance(value, str):
            return self.message
        try:
            validate_email(value.strip())
        except PydanticCustomError:
            return self.message
        return None


@dataclass(frozen=True)
class Pattern(Rule):
    regex: str
    message: str

    def check(self, value: Any) -> str | None:
        if re.search(self.regex, str(value)) is None:
            return self.message
        return None


@dataclass(frozen=True)
class PasswordComplexity(Rule):
    """At least min_length characters with an upper, a lower and a digit."""

    min_length: int = 8

    def check(self, value: Any) -> str | None:
        password = str(value)
        if len(password) < self.min_length:
            return f"Password must be at least {self.min_length} characters."
        if not re.search(r"[A-Z]", password):
            return "Password must contain at least one uppercase letter."
        if not re.search(r"[a-z]", password):
            return "Password must contain at least one lowercase letter."
        if not re.search(r"\d", password):
            return "Password must contain at least one number."
        return None


@dataclass(frozen=True)
class OneOf(Rule):
    choices: tuple[Any, ...]
    message: str | None = None

    def check(self, value: Any) -> str | None:
        if value not in self.choices:
            options = ", ".join(str(c) for c in self.choices)
            return self.message or f"Must be one of: {options}."
        return None


@dataclass(frozen=True)
class OfType(Rule):
    types: type | tuple[type, ...]
    message: str = "Invalid value."

    def check(self, value: Any) -> str | None:
        return None if isinstance(value, self.types) else self.message


class CrossFieldRule:
    """A constraint evaluated against the whole draft.

    Its message is attached to ``target``.
    """

    target: str

    def check(self, draft: Mapping[str, Any]) -> str | None:
        raise NotImplementedError


@dataclass(frozen=True)
class ConfirmsField(CrossFieldRule):
    """``target`` must repeat ``source`` whenever either one is filled in."""

    source: str
    target: str
    required_message: str = "Both password fields are required."
    mismatch_message: str = "Passwords do not match."

    def check(self, draft: Mapping[str, Any]) -> str | None:
        first = draft.get(self.source)
        second = draft.get(self.target)
        if is_empty(first) and is_empty(second):
            return None
        if is_empty(first) or is_empty(second):
            return self.required_message
        if first != second:
            return self.mismatch_message
        return None


@dataclass(frozen=True)
class FieldSpec:
    """Declaration of one form field.

    Attributes:
        name: Field key in the draft.
        rules: Single-field rules, evaluated in order; the first failure wins.
        default: Value used for a fresh draft.
        read_only: Shown and validated but never editable.
        secret: Never echoed back in snapshots or logs.
        ephemeral: Cleared after a successful submission; never persisted verbatim.
    """

    name: str
    rules: tuple[Rule, ...] = ()
    default: Any = None
    read_only: bool = False
    secret: bool = False
    ephemeral: bool = False

    @property
    def required(self) -> bool:
        return any(isinstance(rule, Required) for rule in self.rules)


class FormSchema:
    """Field specs plus cross-field rules for one form."""

    def __init__(
        self,
        name: str,
        fields: Iterable[FieldSpec],
        cross_field_rules: Iterable[CrossFieldRule] = (),
    ) -> None:
        self.name = name
        self.fields: dict[str, FieldSpec] = {spec.name: spec for spec in fields}
        self.cross_field_rules: tuple[CrossFieldRule, ...] = tuple(cross_field_rules)

        unknown = [r.target for r in self.cross_field_rules if r.target not in self.fields]
        if unknown:
            raise ValueError(f"Cross-field rules target unknown fields: {unknown}")

    def __contains__(self, name: str) -> bool:
        return name in self.fields

    @property
    def ephemeral_fields(self) -> tuple[str, ...]:
        return tuple(name for name, spec in self.fields.items() if spec.ephemeral)

    @property
    def secret_fields(self) -> tuple[str, ...]:
        return tuple(name for name, spec in self.fields.items() if spec.secret)

    def defaults(self) -> dict[str, Any]:
        """Return a fresh draft holding every field's default."""
        return {name: spec.default for name, spec in self.fields.items()}

    def validate_field(self, draft: Mapping[str, Any], name: str) -> str | None:
        """Validate a single field of the draft.

        Runs the field's own rules, then any cross-field rule targeting it.
        An empty optional value skips every rule except ``Required``.

        Raises:
            KeyError: If the schema has no such field.
        """
        spec = self.fields[name]
        value = draft.get(name)

        for rule in spec.rules:
            if is_empty(value) and not isinstance(rule, Required):
                continue
            message = rule.check(value)
            if message:
                return message

        for cross_rule in self.cross_field_rules:
            if cross_rule.target != name:
                continue
            message = cross_rule.check(draft)
            if message:
                return message

        return None

    def validate(self, draft: Mapping[str, Any]) -> dict[str, str]:
        """Validate the whole draft.

        Returns:
            dict: Field name -> message for every failing field. Empty if valid.
        """
        errors: dict[str, str] = {}
        for name in self.fields:
            message = self.validate_field(draft, name)
            if message:
                errors[name] = message
        return errors

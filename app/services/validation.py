"""Rule-table form validation.

A schema maps each field to an ordered list of rules. Values are trimmed before
the rules run; the first failing rule of a field supplies its message and the
remaining rules of that field are skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Collection, Dict, List, Mapping, Optional

from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

Predicate = Callable[[str], bool]


@dataclass(frozen=True)
class Rule:
    predicate: Predicate
    message: str


Schema = Mapping[str, List[Rule]]


def required(message: str) -> Rule:
    return Rule(lambda value: len(value) > 0, message)


def max_length(limit: int, message: str) -> Rule:
    return Rule(lambda value: len(value) <= limit, message)


def is_email_address(value: str) -> bool:
    # validate_email also accepts "Name <addr>"; only a bare address is valid here.
    if "<" in value:
        return False
    try:
        validate_email(value)
    except PydanticCustomError:
        return False
    return True


def email_format(message: str) -> Rule:
    return Rule(is_email_address, message)


def one_of(choices: Collection[str], message: str) -> Rule:
    return Rule(lambda value: value in choices, message)


@dataclass
class ValidationResult:
    values: Dict[str, str] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def validate(schema: Schema, data: Mapping[str, Optional[str]]) -> ValidationResult:
    result = ValidationResult()
    for name, rules in schema.items():
        raw = data.get(name)
        value = raw.strip() if isinstance(raw, str) else ""
        result.values[name] = value
        for rule in rules:
            if not rule.predicate(value):
                result.errors[name] = rule.message
                break
    return result

"""Typed field validation rules for notification submission."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol


class Constraint(Protocol):
  def check(self, value: Any) -> str | None:
    """Return an error message when the value breaks the constraint."""


@dataclass(frozen=True)
class MaxLength:
  """Reject strings longer than ``limit`` characters."""

  limit: int

  def check(self, value: Any) -> str | None:
    if value is None:
      return None
    if len(str(value)) > self.limit:
      return f"must be at most {self.limit} characters"
    return None


@dataclass(frozen=True)
class FieldRule:
  field: str
  constraints: tuple[Constraint, ...]


@dataclass(frozen=True)
class FieldError:
  field: str
  message: str


SUBMISSION_RULES: tuple[FieldRule, ...] = (
  FieldRule("title", (MaxLength(255),)),
  FieldRule("message", (MaxLength(255),)),
)


def validate_fields(data: Mapping[str, Any], rules: Sequence[FieldRule]) -> list[FieldError]:
  """Evaluate every rule against ``data`` and return all violations in rule order."""
  errors: list[FieldError] = []
  for rule in rules:
    value = data.get(rule.field)
    for constraint in rule.constraints:
      message = constraint.check(value)
      if message is not None:
        errors.append(FieldError(field=rule.field, message=f"{rule.field} {message}"))
  return errors


def group_errors(errors: Sequence[FieldError]) -> dict[str, list[str]]:
  """Group field errors into the ``field -> messages`` shape used by API responses."""
  grouped: dict[str, list[str]] = {}
  for error in errors:
    grouped.setdefault(error.field, []).append(error.message)
  return grouped

"""
Form validation: error accumulation plus pure check helpers
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Pattern

# Syntactic sanity check only; says nothing about deliverability
EMAIL_RX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)


@dataclass
class Validator:
    """
    Collects validation failures for one form submission

    ``field_errors`` maps a field name to its first error message;
    ``non_field_errors`` holds messages about the submission as a whole.
    """

    field_errors: Dict[str, str] = field(default_factory=dict)
    non_field_errors: List[str] = field(default_factory=list)

    def valid(self) -> bool:
        """True if no field or non-field errors were recorded"""
        return not self.field_errors and not self.non_field_errors

    def add_field_error(self, key: str, message: str) -> None:
        """Record a message for a field unless it already has one"""
        self.field_errors.setdefault(key, message)

    def add_non_field_error(self, message: str) -> None:
        self.non_field_errors.append(message)

    def check_field(self, ok: bool, key: str, message: str) -> None:
        """Record a field error only if the check failed"""
        if not ok:
            self.add_field_error(key, message)


def not_blank(value: str) -> bool:
    return value.strip() != ""


def max_chars(value: str, n: int) -> bool:
    """True if value holds no more than n characters (code points)"""
    return len(value) <= n


def min_chars(value: str, n: int) -> bool:
    """True if value holds at least n characters (code points)"""
    return len(value) >= n


def permitted_int(value: int, *permitted_values: int) -> bool:
    return value in permitted_values


def matches(value: str, rx: Pattern[str]) -> bool:
    """True if the whole value matches the compiled pattern"""
    return rx.fullmatch(value) is not None


def max_bytes(value: str, n: int) -> bool:
    """True if value is no longer than n bytes once UTF-8 encoded"""
    return len(value.encode("utf-8")) <= n

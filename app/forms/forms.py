"""
Per-endpoint form models

Each form is populated from the decoded POST body and carries its own
Validator. Forms delegate validation calls to that Validator instead of
inheriting from it.
"""

from typing import Dict, List

from pydantic import BaseModel, PrivateAttr

from app.forms.validator import Validator


class ValidatedForm(BaseModel):
    """Base model holding a per-submission Validator"""

    _validator: Validator = PrivateAttr(default_factory=Validator)

    @property
    def validator(self) -> Validator:
        return self._validator

    @property
    def field_errors(self) -> Dict[str, str]:
        return self._validator.field_errors

    @property
    def non_field_errors(self) -> List[str]:
        return self._validator.non_field_errors

    def valid(self) -> bool:
        return self._validator.valid()

    def check_field(self, ok: bool, key: str, message: str) -> None:
        self._validator.check_field(ok, key, message)

    def add_field_error(self, key: str, message: str) -> None:
        self._validator.add_field_error(key, message)

    def add_non_field_error(self, message: str) -> None:
        self._validator.add_non_field_error(message)


class SnippetCreateForm(ValidatedForm):
    """Snippet creation form"""

    title: str = ""
    content: str = ""
    expires: int = 0


class UserSignupForm(ValidatedForm):
    """User signup form"""

    name: str = ""
    email: str = ""
    password: str = ""


class UserLoginForm(ValidatedForm):
    """User login form"""

    email: str = ""
    password: str = ""

"""
Decoding of submitted form data into form models
"""

from typing import Dict, Set, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from app.forms.forms import ValidatedForm

FormT = TypeVar("FormT", bound=BaseModel)


class FormDecodeError(Exception):
    """The submitted data cannot be decoded; the caller can fix this"""

    def __init__(self, form_type: Type[BaseModel], errors: ValidationError):
        self.form_type = form_type
        self.errors = errors
        super().__init__(f"cannot decode form into {form_type.__name__}: {errors.error_count()} error(s)")


class InvalidDecoderError(TypeError):
    """The destination type is not something a form can be decoded into"""


class FormDecoder:
    """
    Decodes POST bodies into registered form models

    Destination types are checked when the decoder is built, so a bad
    destination fails at application start-up rather than per request.
    """

    def __init__(self, *form_types: Type[BaseModel]):
        self._form_types: Set[Type[BaseModel]] = set()
        for form_type in form_types:
            self.register(form_type)

    def register(self, form_type: Type[BaseModel]) -> None:
        """
        Register a destination form type

        Raises:
            InvalidDecoderError: If form_type is not a ValidatedForm subclass
        """
        if not isinstance(form_type, type) or not issubclass(form_type, ValidatedForm):
            raise InvalidDecoderError(f"{form_type!r} is not a form model")
        self._form_types.add(form_type)

    async def decode_post_form(self, request: Request, form_type: Type[FormT]) -> FormT:
        """
        Decode the request's form body into a new form_type instance

        Args:
            request: Incoming request with a form-encoded body
            form_type: A type previously registered with this decoder

        Returns:
            Populated form model

        Raises:
            FormDecodeError: If the submitted values don't fit the form fields
            InvalidDecoderError: If form_type was never registered
        """
        if form_type not in self._form_types:
            raise InvalidDecoderError(f"{form_type.__name__} is not registered with this decoder")

        form_data = await request.form()
        # Empty values count as missing so the field keeps its default
        values: Dict[str, str] = {
            key: value
            for key, value in form_data.items()
            if isinstance(value, str) and value != ""
        }
        try:
            return form_type.model_validate(values)
        except ValidationError as e:
            raise FormDecodeError(form_type, e) from e

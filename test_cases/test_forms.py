import pytest
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from fastapi.testclient import TestClient
from pydantic import BaseModel

from app.forms.decoder import FormDecodeError, FormDecoder, InvalidDecoderError
from app.forms.forms import SnippetCreateForm, UserLoginForm, UserSignupForm


def make_decoder_app():
    decoder = FormDecoder(SnippetCreateForm)
    app = FastAPI()

    @app.post("/decode")
    async def decode(request: Request):
        try:
            form = await decoder.decode_post_form(request, SnippetCreateForm)
        except FormDecodeError:
            return PlainTextResponse("Bad Request", status_code=400)
        return {"title": form.title, "content": form.content, "expires": form.expires}

    return TestClient(app)


def test_each_form_has_its_own_validator():
    first = UserLoginForm(email="a@example.com")
    second = UserLoginForm(email="b@example.com")

    first.check_field(False, "password", "This field cannot be blank")

    assert not first.valid()
    assert first.field_errors == {"password": "This field cannot be blank"}
    assert second.valid()
    assert second.field_errors == {}


def test_form_delegates_non_field_errors():
    form = UserLoginForm()
    form.add_non_field_error("Email or password is incorrect")
    assert form.non_field_errors == ["Email or password is incorrect"]
    assert form.validator.non_field_errors == form.non_field_errors


def test_validator_is_not_part_of_form_data():
    form = UserSignupForm(name="Alice", email="a@example.com", password="secret")
    form.add_field_error("email", "Email address is already in use")
    assert form.model_dump() == {"name": "Alice", "email": "a@example.com", "password": "secret"}


def test_decoder_rejects_non_form_types_at_registration():
    class Plain(BaseModel):
        title: str = ""

    with pytest.raises(InvalidDecoderError):
        FormDecoder(Plain)
    with pytest.raises(InvalidDecoderError):
        FormDecoder(dict)


def test_decode_into_unregistered_form_is_a_programming_error():
    decoder = FormDecoder(SnippetCreateForm)
    app = FastAPI()

    @app.post("/decode")
    async def decode(request: Request):
        await decoder.decode_post_form(request, UserLoginForm)
        return {}

    with pytest.raises(InvalidDecoderError):
        TestClient(app).post("/decode", data={"email": "a@example.com"})


def test_decode_coerces_and_ignores_unknown_fields():
    client = make_decoder_app()
    res = client.post(
        "/decode",
        data={"title": "Hi", "content": "There", "expires": "7", "csrf_token": "x"},
    )
    assert res.status_code == 200
    assert res.json() == {"title": "Hi", "content": "There", "expires": 7}


def test_decode_missing_fields_use_defaults():
    client = make_decoder_app()
    res = client.post("/decode", data={"title": "Only a title"})
    assert res.status_code == 200
    assert res.json() == {"title": "Only a title", "content": "", "expires": 0}


def test_decode_bad_value_is_a_caller_error():
    client = make_decoder_app()
    res = client.post("/decode", data={"title": "Hi", "expires": "soon"})
    assert res.status_code == 400


def test_decode_empty_values_keep_defaults():
    client = make_decoder_app()
    res = client.post("/decode", data={"title": "Hi", "content": "", "expires": ""})
    assert res.status_code == 200
    assert res.json() == {"title": "Hi", "content": "", "expires": 0}

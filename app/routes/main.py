"""
Snippet route handlers
"""

from http import HTTPStatus

from fastapi import Request
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response
from starlette.status import HTTP_303_SEE_OTHER

from app.core.errors import not_found
from app.core.templates import new_template_data
from app.forms.forms import SnippetCreateForm
from app.forms.validator import max_chars, not_blank, permitted_int
from app.models.errors import NoRecordError
from app.services.auth_service import AuthState

# Largest id BSON can store as an int64
MAX_SNIPPET_ID = 2 ** 63 - 1


async def home(request: Request, auth: AuthState) -> HTMLResponse:
    """
    Display the latest snippets

    Args:
        request: FastAPI request object
        auth: Authentication state of the request

    Returns:
        Home page HTML
    """
    snippets = await run_in_threadpool(request.app.state.snippets.latest)

    data = new_template_data(request, auth)
    data["snippets"] = snippets
    return request.app.state.renderer.render(request, "home.html", data)


async def snippet_view(request: Request, auth: AuthState, snippet_id: str) -> Response:
    """
    Display a single snippet

    Args:
        request: FastAPI request object
        auth: Authentication state of the request
        snippet_id: Raw id from the URL path

    Returns:
        Snippet page HTML, or 404 for bad, unknown or expired ids
    """
    # ASCII digits only; int() alone also takes signs, spaces, underscores
    # and non-ASCII digits
    if not (snippet_id.isascii() and snippet_id.isdigit()):
        return not_found()
    parsed_id = int(snippet_id)
    if not 1 <= parsed_id <= MAX_SNIPPET_ID:
        return not_found()

    try:
        snippet = await run_in_threadpool(request.app.state.snippets.get, parsed_id)
    except NoRecordError:
        return not_found()

    data = new_template_data(request, auth)
    data["snippet"] = snippet
    return request.app.state.renderer.render(request, "view.html", data)


async def snippet_create(request: Request, auth: AuthState) -> HTMLResponse:
    """Display the snippet creation form"""
    data = new_template_data(request, auth)
    data["form"] = SnippetCreateForm(expires=365)
    return request.app.state.renderer.render(request, "create.html", data)


async def snippet_create_post(request: Request, auth: AuthState) -> Response:
    """
    Handle snippet creation form submission

    Args:
        request: FastAPI request object
        auth: Authentication state of the request

    Returns:
        Redirect to the new snippet, or the form with errors (422)
    """
    form = await request.app.state.forms.decode_post_form(request, SnippetCreateForm)

    form.check_field(not_blank(form.title), "title", "This field cannot be blank")
    form.check_field(max_chars(form.title, 100), "title", "This field cannot be more than 100 characters long")
    form.check_field(not_blank(form.content), "content", "This field cannot be blank")
    form.check_field(permitted_int(form.expires, 1, 7, 365), "expires", "This field must equal 1, 7 or 365")

    if not form.valid():
        data = new_template_data(request, auth)
        data["form"] = form
        return request.app.state.renderer.render(
            request, "create.html", data, status_code=HTTPStatus.UNPROCESSABLE_ENTITY
        )

    snippet_id = await run_in_threadpool(
        request.app.state.snippets.insert, form.title, form.content, form.expires
    )

    request.app.state.sessions.put(request, "flash", "Snippet successfully created!")
    return RedirectResponse(f"/snippet/view/{snippet_id}", status_code=HTTP_303_SEE_OTHER)

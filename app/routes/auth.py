"""
Authentication route handlers
"""

from http import HTTPStatus

from fastapi import Request
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response
from starlette.status import HTTP_303_SEE_OTHER

from app.core.logger import get_logger
from app.core.templates import new_template_data
from app.forms.forms import UserLoginForm, UserSignupForm
from app.forms.validator import EMAIL_RX, matches, max_bytes, min_chars, not_blank
from app.models.errors import DuplicateEmailError, InvalidCredentialsError
from app.services.auth_service import AuthState, login_user, logout_user

logger = get_logger(__name__)

# bcrypt ignores everything past the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


async def user_signup(request: Request, auth: AuthState) -> HTMLResponse:
    """Display the signup page"""
    data = new_template_data(request, auth)
    data["form"] = UserSignupForm()
    return request.app.state.renderer.render(request, "signup.html", data)


async def user_signup_post(request: Request, auth: AuthState) -> Response:
    """
    Handle signup form submission

    Args:
        request: FastAPI request object
        auth: Authentication state of the request

    Returns:
        Redirect to the login page on success, or the form with errors (422)
    """
    form = await request.app.state.forms.decode_post_form(request, UserSignupForm)

    form.check_field(not_blank(form.name), "name", "This field cannot be blank")
    form.check_field(not_blank(form.email), "email", "This field cannot be blank")
    form.check_field(matches(form.email, EMAIL_RX), "email", "This field must be a valid email address")
    form.check_field(not_blank(form.password), "password", "This field cannot be blank")
    form.check_field(min_chars(form.password, 8), "password", "This field must be at least 8 characters long")
    form.check_field(
        max_bytes(form.password, MAX_PASSWORD_BYTES),
        "password",
        "This field cannot be more than 72 bytes long",
    )

    if form.valid():
        try:
            await run_in_threadpool(
                request.app.state.users.insert, form.name, form.email, form.password
            )
        except DuplicateEmailError:
            form.add_field_error("email", "Email address is already in use")
        else:
            request.app.state.sessions.put(request, "flash", "Your signup was successful. Please log in.")
            return RedirectResponse("/user/login", status_code=HTTP_303_SEE_OTHER)

    data = new_template_data(request, auth)
    data["form"] = form
    return request.app.state.renderer.render(
        request, "signup.html", data, status_code=HTTPStatus.UNPROCESSABLE_ENTITY
    )


async def user_login(request: Request, auth: AuthState) -> HTMLResponse:
    """Display the login page"""
    data = new_template_data(request, auth)
    data["form"] = UserLoginForm()
    return request.app.state.renderer.render(request, "login.html", data)


async def user_login_post(request: Request, auth: AuthState) -> Response:
    """
    Handle login form submission

    Args:
        request: FastAPI request object
        auth: Authentication state of the request

    Returns:
        Redirect to snippet creation on success, or the form with errors (422)
    """
    form = await request.app.state.forms.decode_post_form(request, UserLoginForm)

    form.check_field(not_blank(form.email), "email", "This field cannot be blank")
    form.check_field(matches(form.email, EMAIL_RX), "email", "This field must be a valid email address")
    form.check_field(not_blank(form.password), "password", "This field cannot be blank")

    if form.valid():
        try:
            user_id = await run_in_threadpool(
                request.app.state.users.authenticate, form.email, form.password
            )
        except InvalidCredentialsError as e:
            logger.info("Login rejected: %s", e.reason)
            form.add_non_field_error("Email or password is incorrect")
        else:
            await run_in_threadpool(login_user, request.app.state.sessions, request, user_id)
            return RedirectResponse("/snippet/create", status_code=HTTP_303_SEE_OTHER)

    data = new_template_data(request, auth)
    data["form"] = form
    return request.app.state.renderer.render(
        request, "login.html", data, status_code=HTTPStatus.UNPROCESSABLE_ENTITY
    )


async def user_logout_post(request: Request) -> RedirectResponse:
    """
    Handle user logout

    Args:
        request: FastAPI request object

    Returns:
        Redirect to the home page
    """
    sessions = request.app.state.sessions
    await run_in_threadpool(logout_user, sessions, request)
    sessions.put(request, "flash", "You've been logged out successfully!")
    return RedirectResponse("/", status_code=HTTP_303_SEE_OTHER)

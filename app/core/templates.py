"""
Template rendering
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from app.middleware.csrf import get_csrf_token
from app.services.auth_service import AuthState


def human_date(value: Optional[datetime]) -> str:
    """
    Format a datetime for display, in UTC

    Naive datetimes are taken to be UTC already.
    """
    if value is None:
        return ""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%d %b %Y at %H:%M")


# Filters made available to every template
TEMPLATE_FILTERS: Dict[str, Callable[..., Any]] = {
    "human_date": human_date,
}


class Renderer:
    """
    Renders page templates

    Args:
        directory: Template root holding base.html, partials/ and pages/
        filters: Template filters to register on the environment
    """

    def __init__(self, directory: str, filters: Mapping[str, Callable[..., Any]]):
        self.templates = Jinja2Templates(directory=directory)
        self.templates.env.filters.update(filters)

    def render(self, request: Request, page: str, data: Dict[str, Any], status_code: int = 200) -> Response:
        """
        Render pages/<page> with the given data

        Args:
            request: FastAPI request object
            page: Page template file name, e.g. "home.html"
            data: Template context
            status_code: HTTP status of the response

        Returns:
            Fully rendered HTML response
        """
        return self.templates.TemplateResponse(
            request, f"pages/{page}", data, status_code=status_code
        )


def new_template_data(request: Request, auth: AuthState) -> Dict[str, Any]:
    """
    Common template context for every page

    Reading the flash message removes it from the session.
    """
    sessions = request.app.state.sessions
    return {
        "current_year": datetime.now().year,
        "flash": sessions.pop_string(request, "flash"),
        "is_authenticated": auth.is_authenticated,
        "csrf_token": get_csrf_token(request),
    }

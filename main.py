"""
Snippetbox web application
Main entry point: application factory and route table.
"""

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.staticfiles import StaticFiles
from pymongo.database import Database

# Local imports
from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.logger import get_logger, setup_logging
from app.core.templates import TEMPLATE_FILTERS, Renderer
from app.forms.decoder import FormDecoder
from app.forms.forms import SnippetCreateForm, UserLoginForm, UserSignupForm
from app.middleware.auth import AuthenticateMiddleware, RequireAuthenticationMiddleware
from app.middleware.common import RequestLogMiddleware, SecureHeadersMiddleware
from app.middleware.csrf import verify_csrf_token
from app.middleware.sessions import SessionManager, SessionMiddleware
from app.models.snippets import SnippetModel
from app.models.users import UserModel
from app.routes.auth import user_login, user_login_post, user_logout_post, user_signup, user_signup_post
from app.routes.main import home, snippet_create, snippet_create_post, snippet_view
from app.services.auth_service import AuthState, get_auth_state
from database.mongo_client import get_mongo_client
from database.session_store import MongoSessionStore

logger = get_logger(__name__)

# Routes that require an authenticated user
PROTECTED_ROUTES = {
    "/snippet/create",
    "/user/logout",
}

router = APIRouter()


# ==================== ROUTE DEFINITIONS ====================

# Snippet routes
@router.get("/")
async def get_home(request: Request, auth: AuthState = Depends(get_auth_state)):
    """Home page"""
    return await home(request, auth)


@router.get("/snippet/view/{snippet_id}")
async def get_snippet_view(request: Request, snippet_id: str, auth: AuthState = Depends(get_auth_state)):
    """Single snippet page"""
    return await snippet_view(request, auth, snippet_id)


@router.get("/snippet/create")
async def get_snippet_create(request: Request, auth: AuthState = Depends(get_auth_state)):
    """Snippet creation form"""
    return await snippet_create(request, auth)


@router.post("/snippet/create")
async def post_snippet_create(request: Request, auth: AuthState = Depends(get_auth_state)):
    """Snippet creation form submission"""
    return await snippet_create_post(request, auth)


# Authentication routes
@router.get("/user/signup")
async def get_user_signup(request: Request, auth: AuthState = Depends(get_auth_state)):
    """Signup page"""
    return await user_signup(request, auth)


@router.post("/user/signup")
async def post_user_signup(request: Request, auth: AuthState = Depends(get_auth_state)):
    """Signup form submission"""
    return await user_signup_post(request, auth)


@router.get("/user/login")
async def get_user_login(request: Request, auth: AuthState = Depends(get_auth_state)):
    """Login page"""
    return await user_login(request, auth)


@router.post("/user/login")
async def post_user_login(request: Request, auth: AuthState = Depends(get_auth_state)):
    """Login form submission"""
    return await user_login_post(request, auth)


@router.post("/user/logout")
async def post_user_logout(request: Request):
    """User logout"""
    return await user_logout_post(request)


# ==================== APPLICATION FACTORY ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database indexes before serving requests"""
    app.state.users.ensure_indexes()
    app.state.snippets.ensure_indexes()
    app.state.session_store.ensure_indexes()
    logger.info("Starting %s", settings.APP_NAME)
    yield


def create_app(db: Optional[Database] = None, bcrypt_rounds: Optional[int] = None) -> FastAPI:
    """
    Create and configure FastAPI application

    Args:
        db: MongoDB database to use; the configured one by default
        bcrypt_rounds: Password hashing cost; settings.BCRYPT_ROUNDS by default

    Returns:
        Configured FastAPI application instance
    """
    setup_logging(settings.LOG_LEVEL)

    if db is None:
        db = get_mongo_client()

    # Initialize FastAPI app
    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan,
        dependencies=[Depends(verify_csrf_token)],
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    # Application-wide dependencies
    session_store = MongoSessionStore(db)
    sessions = SessionManager(
        session_store,
        secret_key=settings.SECRET_KEY,
        lifetime=timedelta(hours=settings.SESSION_LIFETIME_HOURS),
        cookie_name=settings.SESSION_COOKIE_NAME,
        secure=settings.SESSION_COOKIE_SECURE,
    )
    users = UserModel(db, rounds=bcrypt_rounds or settings.BCRYPT_ROUNDS)

    app.state.users = users
    app.state.snippets = SnippetModel(db)
    app.state.session_store = session_store
    app.state.sessions = sessions
    app.state.renderer = Renderer(settings.TEMPLATES_DIR, filters=TEMPLATE_FILTERS)
    app.state.forms = FormDecoder(SnippetCreateForm, UserSignupForm, UserLoginForm)

    # Add middleware (order matters - last added executes first)
    app.add_middleware(RequireAuthenticationMiddleware, protected_routes=PROTECTED_ROUTES)
    app.add_middleware(AuthenticateMiddleware, users=users, sessions=sessions)
    app.add_middleware(SessionMiddleware, manager=sessions)
    app.add_middleware(SecureHeadersMiddleware)
    app.add_middleware(RequestLogMiddleware)

    register_exception_handlers(app)

    # Create necessary directories
    settings.create_directories()

    # Mount static files
    app.mount("/static", StaticFiles(directory=settings.STATIC_DIR), name="static")

    app.include_router(router)

    return app


# Create app instance
app = create_app()


# ==================== APPLICATION STARTUP ====================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )

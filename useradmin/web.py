"""Browser-based interface: login page and the user management table."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, Optional

import httpx
from fastapi import FastAPI, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from .config import ClientSettings, load_settings
from .controller import ActionResult, UserListController
from .gateway import ApiGateway
from .login import LoginController, LoginForm
from .notices import NoticeBoard
from .sessions import SessionStore
from .storage import LocalStorage

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

logger = logging.getLogger("useradmin.web")

_PAGE_DIRECTIONS = {"next": 1, "previous": -1}


def _format_delay(seconds: float) -> str:
    if float(seconds).is_integer():
        return str(int(seconds))
    return f"{seconds:g}"


def create_app(
    settings: Optional[ClientSettings] = None,
    *,
    storage: Optional[LocalStorage] = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create the administration web application.

    The app serves a single operator: one session store, one gateway and one
    user list controller live for the lifetime of the process.
    """

    if settings is None:
        settings = load_settings()
    if storage is None:
        storage = LocalStorage(settings.storage_path)

    notices = NoticeBoard()
    session = SessionStore(storage, secret=settings.secret)
    gateway = ApiGateway(
        session,
        notices,
        base_url=settings.base_url,
        timeout=settings.request_timeout,
        transport=transport,
    )
    users = UserListController(gateway, session, notices)
    login = LoginController(gateway, session, notices, redirect_delay=settings.redirect_delay)
    session.subscribe(lambda _reason: users.reset())

    @asynccontextmanager
    async def _lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        await gateway.aclose()

    app = FastAPI(
        title="User Administration",
        lifespan=_lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.notices = notices
    app.state.session = session
    app.state.gateway = gateway
    app.state.users = users
    app.state.login = login

    templates = Jinja2Templates(directory=str(TEMPLATE_DIR))

    def _render(
        request: Request,
        template: str,
        context: Dict[str, object],
        *,
        status_code: int = status.HTTP_200_OK,
    ) -> HTMLResponse:
        payload: Dict[str, object] = {"notices": notices.drain()}
        payload.update(context)
        return templates.TemplateResponse(request, template, payload, status_code=status_code)

    def _redirect(request: Request, name: str) -> RedirectResponse:
        return RedirectResponse(request.url_for(name), status_code=status.HTTP_303_SEE_OTHER)

    def _after_action(request: Request, result: ActionResult) -> RedirectResponse:
        if result is ActionResult.AUTH_EXPIRED or session.get_token() is None:
            return _redirect(request, "show_login")
        return _redirect(request, "list_users")

    @app.get("/", response_class=HTMLResponse, name="show_login")
    async def login_form(request: Request):
        form = login.initialise_form()
        return _render(request, "login.html", {"form": form})

    @app.post("/login", name="process_login")
    async def process_login(
        request: Request,
        email: str = Form(""),
        password: str = Form(""),
        remember_me: Optional[str] = Form(None),
    ):
        form = LoginForm(
            email=email,
            password=password,
            remember_me=remember_me is not None,
            initialised=True,
        )
        result = await login.submit(form)
        if result.success:
            users.reset()
            return _render(
                request,
                "login_success.html",
                {
                    "redirect_delay": _format_delay(result.redirect_delay or 0),
                    "redirect_url": request.url_for("list_users"),
                },
            )

        status_code = (
            status.HTTP_400_BAD_REQUEST if result.invalid else status.HTTP_401_UNAUTHORIZED
        )
        if not result.invalid:
            logger.warning("Failed login attempt for %s", email)
        return _render(request, "login.html", {"form": form}, status_code=status_code)

    @app.post("/logout", name="logout")
    async def logout(request: Request):
        login.logout()
        return _redirect(request, "show_login")

    @app.get("/users", response_class=HTMLResponse, name="list_users")
    async def list_users(request: Request, q: Optional[str] = None):
        result = await users.mount()
        if result is ActionResult.AUTH_EXPIRED:
            return _redirect(request, "show_login")
        if q is not None:
            users.search(q)
        return _render(request, "users.html", {"users": users})

    @app.post("/users/page/{direction}", name="change_page")
    async def change_page(request: Request, direction: str):
        delta = _PAGE_DIRECTIONS.get(direction)
        if delta is None:
            return _redirect(request, "list_users")
        if users.busy:
            logger.info("Ignoring page change while a fetch is outstanding")
            return _redirect(request, "list_users")
        result = await users.change_page(delta)
        return _after_action(request, result)

    @app.post("/users/edit", name="submit_edit")
    async def submit_edit(
        request: Request,
        first_name: str = Form(""),
        last_name: str = Form(""),
        email: str = Form(""),
    ):
        if users.editing is None:
            return _redirect(request, "list_users")
        users.update_pending("first_name", first_name)
        users.update_pending("last_name", last_name)
        users.update_pending("email", email)
        result = await users.submit_edit()
        return _after_action(request, result)

    @app.post("/users/edit/cancel", name="cancel_edit")
    async def cancel_edit(request: Request):
        users.cancel_edit()
        return _redirect(request, "list_users")

    @app.post("/users/{user_id}/edit", name="begin_edit")
    async def begin_edit(request: Request, user_id: int):
        if not users.ensure_session():
            return _redirect(request, "show_login")
        users.begin_edit_by_id(user_id)
        return _redirect(request, "list_users")

    @app.post("/users/{user_id}/delete", name="delete_user")
    async def delete_user(request: Request, user_id: int):
        result = await users.delete_record(user_id)
        return _after_action(request, result)

    return app


__all__ = ["create_app"]

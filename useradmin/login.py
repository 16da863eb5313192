"""Login and logout flows."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from .gateway import ApiGateway, RequestError
from .models import LoginRequest, validation_errors
from .notices import NoticeBoard
from .sessions import SessionStore

logger = logging.getLogger("useradmin.login")

LOGIN_PATH = "/api/login"
DEFAULT_REDIRECT_DELAY = 1.0


@dataclass
class LoginForm:
    """Values and field errors of the login form."""

    email: str = ""
    password: str = ""
    remember_me: bool = False
    errors: Dict[str, str] = field(default_factory=dict)
    initialised: bool = False


@dataclass(frozen=True)
class LoginResult:
    success: bool
    redirect_delay: Optional[float] = None
    invalid: bool = False


class LoginController:
    def __init__(
        self,
        gateway: ApiGateway,
        session: SessionStore,
        notices: NoticeBoard,
        *,
        redirect_delay: float = DEFAULT_REDIRECT_DELAY,
    ) -> None:
        self._gateway = gateway
        self._session = session
        self._notices = notices
        self._redirect_delay = redirect_delay

    @property
    def redirect_delay(self) -> float:
        return self._redirect_delay

    def initialise_form(self, form: Optional[LoginForm] = None) -> LoginForm:
        """Pre-fill ``form`` from remembered credentials, at most once."""

        form = form or LoginForm()
        if form.initialised:
            return form
        form.initialised = True

        credentials = self._session.load_remembered_credentials()
        if credentials is not None:
            form.email = credentials.email
            form.password = credentials.password
            form.remember_me = True
        return form

    async def submit(self, form: LoginForm) -> LoginResult:
        try:
            request = LoginRequest(email=form.email, password=form.password)
        except PydanticValidationError as exc:
            form.errors = validation_errors(exc)
            return LoginResult(success=False, invalid=True)
        form.errors = {}

        try:
            response = await self._gateway.post(LOGIN_PATH, request.model_dump())
        except RequestError:
            self._notices.error("Invalid credentials. Please try again.")
            return LoginResult(success=False)

        token = response.get("token")
        if not isinstance(token, str) or not token:
            logger.warning("Login response for %s did not include a token", request.email)
            self._notices.error("Invalid credentials. Please try again.")
            return LoginResult(success=False)

        self._session.save_session(token, form.remember_me, request.email, request.password)
        logger.info("Operator %s signed in", request.email)
        self._notices.success("Login Successful!")
        return LoginResult(success=True, redirect_delay=self._redirect_delay)

    def logout(self) -> None:
        self._session.clear_session(forget_credentials=True, reason="logout")
        self._notices.info("Signed out.")


__all__ = ["DEFAULT_REDIRECT_DELAY", "LoginController", "LoginForm", "LoginResult"]

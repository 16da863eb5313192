"""State for the paginated user management table."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from .gateway import ApiGateway, RequestError, Unauthorized
from .models import (
    EDITABLE_FIELDS,
    UserRecord,
    UserUpdate,
    ValidationError,
    first_validation_error,
)
from .notices import NoticeBoard
from .sessions import SessionStore

logger = logging.getLogger("useradmin.controller")

USERS_PATH = "/api/users"


class FetchState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class ActionResult(str, Enum):
    OK = "ok"
    INVALID = "invalid"
    FAILED = "failed"
    AUTH_EXPIRED = "auth_expired"
    IGNORED = "ignored"


def filter_records(records: List[UserRecord], term: str) -> List[UserRecord]:
    """Return the records matching ``term``, preserving their order."""

    if not term:
        return list(records)
    return [record for record in records if record.matches(term)]


def _failure_result(exc: RequestError) -> ActionResult:
    if isinstance(exc, Unauthorized):
        return ActionResult.AUTH_EXPIRED
    return ActionResult.FAILED


class UserListController:
    """Keep the on-screen user list consistent with the remote directory.

    Remote state is only ever applied after the server has answered, and a
    page response is dropped when the operator has moved to another page in
    the meantime. Every operation reports an :class:`ActionResult`; request
    failures never escape.
    """

    def __init__(
        self,
        gateway: ApiGateway,
        session: SessionStore,
        notices: NoticeBoard,
    ) -> None:
        self._gateway = gateway
        self._session = session
        self._notices = notices

        self.page = 1
        self.records: List[UserRecord] = []
        self.filtered: List[UserRecord] = []
        self.search_term = ""
        self.editing: Optional[UserRecord] = None
        self.pending_edit: Dict[str, str] = {}
        self.edit_error: Optional[ValidationError] = None
        self.state = FetchState.IDLE
        self._outstanding = 0

    def reset(self) -> None:
        """Forget all view state, as when the table is unmounted."""
        self.page = 1
        self.records = []
        self.filtered = []
        self.search_term = ""
        self.cancel_edit()
        self.state = FetchState.IDLE

    @property
    def busy(self) -> bool:
        return self._outstanding > 0

    @property
    def is_empty(self) -> bool:
        return not self.filtered

    def ensure_session(self) -> bool:
        if self._session.get_token():
            return True
        self._notices.error("Session expired, please log in again.")
        return False

    async def mount(self) -> ActionResult:
        if not self.ensure_session():
            return ActionResult.AUTH_EXPIRED
        if self.state is FetchState.IDLE:
            return await self.refresh()
        return ActionResult.OK

    async def refresh(self) -> ActionResult:
        requested_page = self.page
        self.state = FetchState.LOADING
        self._outstanding += 1
        try:
            try:
                payload = await self._gateway.get(USERS_PATH, {"page": requested_page})
                records = self._parse_page(payload)
            except Unauthorized:
                self._notices.error("Failed to fetch users")
                self.state = FetchState.IDLE
                return ActionResult.AUTH_EXPIRED
            except RequestError:
                if requested_page != self.page:
                    logger.debug("Ignoring failure for superseded page %s", requested_page)
                    return ActionResult.IGNORED
                self._notices.error("Failed to fetch users")
                self.state = FetchState.ERROR
                return ActionResult.FAILED
        finally:
            self._outstanding -= 1

        if requested_page != self.page:
            logger.debug(
                "Discarding response for page %s; page %s is current", requested_page, self.page
            )
            return ActionResult.IGNORED

        self.records = records
        self.filtered = filter_records(records, self.search_term)
        self.state = FetchState.LOADED
        logger.info("Loaded %d user(s) for page %s", len(records), requested_page)
        return ActionResult.OK

    def _parse_page(self, payload: Dict[str, object]) -> List[UserRecord]:
        data = payload.get("data")
        if not isinstance(data, list):
            raise self._gateway.reject_payload("GET", "User list response is missing 'data'")
        try:
            return [UserRecord.from_payload(item) for item in data]
        except ValueError as exc:
            raise self._gateway.reject_payload(
                "GET", f"User list response is malformed: {exc}", cause=exc
            ) from exc

    async def change_page(self, delta: int) -> ActionResult:
        self.page = max(1, self.page + delta)
        return await self.refresh()

    def search(self, term: str) -> List[UserRecord]:
        self.search_term = term or ""
        self.filtered = filter_records(self.records, self.search_term)
        return self.filtered

    def find(self, user_id: int) -> Optional[UserRecord]:
        for record in self.records:
            if record.id == user_id:
                return record
        return None

    def begin_edit(self, record: UserRecord) -> None:
        self.editing = record
        self.pending_edit = record.editable_fields()
        self.edit_error = None

    def begin_edit_by_id(self, user_id: int) -> ActionResult:
        record = self.find(user_id)
        if record is None:
            return ActionResult.IGNORED
        self.begin_edit(record)
        return ActionResult.OK

    def update_pending(self, field: str, value: str) -> None:
        if self.editing is None:
            raise RuntimeError("No edit is in progress")
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"'{field}' is not an editable field")
        self.pending_edit[field] = value

    def cancel_edit(self) -> None:
        self.editing = None
        self.pending_edit = {}
        self.edit_error = None

    async def submit_edit(self) -> ActionResult:
        target = self.editing
        if target is None:
            return ActionResult.IGNORED

        try:
            update = UserUpdate(**self.pending_edit)
        except PydanticValidationError as exc:
            self.edit_error = first_validation_error(exc)
            self._notices.error(self.edit_error.message)
            return ActionResult.INVALID
        self.edit_error = None

        try:
            await self._gateway.put(f"{USERS_PATH}/{target.id}", update.model_dump())
        except RequestError as exc:
            self._notices.error("Failed to update user")
            return _failure_result(exc)

        self._notices.success(f"{update.first_name} {update.last_name} edited successfully!")
        self.cancel_edit()
        return await self.refresh()

    async def delete_record(self, user_id: int) -> ActionResult:
        try:
            await self._gateway.delete(f"{USERS_PATH}/{user_id}")
        except RequestError as exc:
            self._notices.error("Failed to delete user")
            return _failure_result(exc)

        self._notices.success("User deleted successfully")
        self.records = [record for record in self.records if record.id != user_id]
        self.filtered = [record for record in self.filtered if record.id != user_id]
        if self.editing is not None and self.editing.id == user_id:
            self.cancel_edit()
        return ActionResult.OK


__all__ = ["ActionResult", "FetchState", "UserListController", "filter_records"]

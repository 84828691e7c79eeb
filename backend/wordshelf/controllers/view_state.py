"""
WordShelf Backend: View State Controller
=========================================

What:  The state machine behind every list and detail page.
How:   A page fetches its data through a record store, renders whichever
       state it is in, and runs form submissions through validation, the
       image uploader and the store.
Who:   Built per request by the routes (`list_page`, `detail_page`); also
       usable directly by any other presentation layer.

States:
    Loading          fetch in flight
    Ready(data)      data is shown; forms may be submitted
    Failed(message)  fetch failed; only retry() or refresh() leave it
    Saving(data)     a submission is in flight; data stays on screen

Transitions:
    mount / refresh       any       → Loading → Ready | Failed
    retry                 Failed    → Loading → Ready | Failed
    submit_create/update  Ready     → Saving  → Loading → Ready   (success)
                                      Saving  → Ready(previous data)  (failure)
    submit_delete         Ready     → (confirm) → same as above
    invalid form          Ready     → Ready, notice, no store call

Every failure leaves a dismissible error notice; every successful save
leaves an info notice. A fetch that finishes after a newer fetch started,
or after close(), is dropped. Nothing is cancelled upstream, so a write
that was already sent still lands in the store.

A page accepts one submission at a time: submitting while Saving raises
InvalidTransition. Separate pages (one per HTTP request) are not
coordinated, so duplicate or concurrent writes from them all reach the
store and the last write wins.

A failed submission puts the page back to Ready(previous data) unless a
fetch finished while it was saving; then the fetched data stays.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Callable,
    ClassVar,
    List,
    Mapping,
    Optional,
    Union,
)

from pydantic import BaseModel

from wordshelf.exceptions import (
    InvalidTransition,
    NotFound,
    StoreUnavailable,
    UploadFailed,
    ValidationFailed,
    WordShelfError,
)
from wordshelf.schemas.kinds import RecordKind
from wordshelf.services.blob_service import ImageUploader
from wordshelf.services.validation import (
    attach_image_url,
    parse_create_form,
    parse_update_form,
)
from wordshelf.stores.base import RecordStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# States
# ══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Loading:
    name: ClassVar[str] = "loading"


@dataclass(frozen=True)
class Ready:
    name: ClassVar[str] = "ready"
    data: Any


@dataclass(frozen=True)
class Failed:
    name: ClassVar[str] = "failed"
    message: str
    error: Optional[WordShelfError] = None


@dataclass(frozen=True)
class Saving:
    name: ClassVar[str] = "saving"
    data: Any


ViewState = Union[Loading, Ready, Failed, Saving]


# ══════════════════════════════════════════════════════════════════════════
# Values exchanged with the presentation layer
# ══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Notice:
    """A message the page shows until the user dismisses it."""

    level: str  # "error" or "info"
    message: str

    @classmethod
    def error(cls, message: str) -> "Notice":
        return cls("error", message)

    @classmethod
    def info(cls, message: str) -> "Notice":
        return cls("info", message)


@dataclass(frozen=True)
class ImageUpload:
    """An image picked in the form, not yet stored."""

    content: bytes
    filename: str


@dataclass(frozen=True)
class SubmitOutcome:
    """
    Result of a submission.

    On failure `form` is the submitted form, so the page can show the
    user's input again instead of clearing it.
    """

    ok: bool
    record_id: Optional[str] = None
    message: Optional[str] = None
    error: Optional[WordShelfError] = None
    form: Optional[Mapping[str, Any]] = None
    cancelled: bool = False


Listener = Callable[[ViewState], None]
ConfirmCallback = Callable[[str], Union[bool, Awaitable[bool]]]

_PAST_TENSE = {"add": "added", "update": "updated", "delete": "deleted"}


class ViewStateController:
    """
    Args:
        kind:      Record kind shown on the page
        store:     Store every fetch and write goes through
        fetch:     The page's data fetch (store.list, or a get_by_id wrapper)
        uploader:  Image uploader; submissions with an image fail without one
        confirm:   Asked before every delete with the question to show
    """

    def __init__(
        self,
        kind: RecordKind,
        store: RecordStore,
        fetch: Callable[[], Awaitable[Any]],
        uploader: Optional[ImageUploader] = None,
        confirm: Optional[ConfirmCallback] = None,
    ):
        self.kind = kind
        self.store = store
        self._fetch = fetch
        self._uploader = uploader
        self._confirm = confirm
        self._state: ViewState = Loading()
        self._notice: Optional[Notice] = None
        self._listeners: List[Listener] = []
        self._generation = 0
        self._closed = False

    # ── Observation ───────────────────────────────────────────────────────

    def current_state(self) -> ViewState:
        return self._state

    def current_notice(self) -> Optional[Notice]:
        return self._notice

    def dismiss_notice(self) -> None:
        self._notice = None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with every new state; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """The page was navigated away from; later results are dropped."""
        self._closed = True
        self._listeners.clear()

    # ── Fetching ──────────────────────────────────────────────────────────

    async def mount(self) -> None:
        await self._load()

    async def refresh(self) -> None:
        await self._load()

    async def retry(self) -> None:
        if not isinstance(self._state, Failed):
            raise InvalidTransition("retry", self._state.name)
        await self._load()

    async def _load(self) -> None:
        self._generation += 1
        generation = self._generation
        self._set_state(Loading())
        try:
            data = await self._fetch()
        except (StoreUnavailable, NotFound) as e:
            if self._is_stale(generation):
                return
            self._set_state(Failed(e.message, e))
            self._notice = Notice.error(e.message)
            return
        if self._is_stale(generation):
            return
        self._set_state(Ready(data))

    def _is_stale(self, generation: int) -> bool:
        if self._closed or generation != self._generation:
            logger.debug("%s page: dropping stale fetch result #%d", self.kind, generation)
            return True
        return False

    # ── Submissions ───────────────────────────────────────────────────────

    async def submit_create(
        self,
        form: Mapping[str, Any],
        image: Optional[ImageUpload] = None,
    ) -> SubmitOutcome:
        data = self._require_ready("submit")
        try:
            fields = parse_create_form(self.kind, form)
        except ValidationFailed as e:
            return self._rejected(e, form)
        return await self._save("add", data, form, fields, image, self.store.create)

    async def submit_update(
        self,
        record_id: str,
        form: Mapping[str, Any],
        image: Optional[ImageUpload] = None,
    ) -> SubmitOutcome:
        data = self._require_ready("submit")
        try:
            patch = parse_update_form(self.kind, form)
        except ValidationFailed as e:
            return self._rejected(e, form)

        async def write(payload: BaseModel) -> str:
            await self.store.update(record_id, payload)
            return record_id

        return await self._save("update", data, form, patch, image, write)

    async def submit_delete(self, record_id: str) -> SubmitOutcome:
        data = self._require_ready("delete")
        if not await self._confirmed(f"Are you sure you want to delete this {self.kind.name}?"):
            logger.debug("%s page: delete of %s declined", self.kind, record_id)
            return SubmitOutcome(ok=False, record_id=record_id, cancelled=True)

        generation = self._begin_saving(data)
        try:
            await self.store.delete(record_id)
        except StoreUnavailable as e:
            return self._save_failed("delete", data, generation, e, form=None)
        except Exception:
            self._restore(data, generation)
            raise
        return await self._saved("delete", record_id)

    async def _save(
        self,
        verb: str,
        data: Any,
        form: Mapping[str, Any],
        payload: BaseModel,
        image: Optional[ImageUpload],
        write: Callable[[BaseModel], Awaitable[str]],
    ) -> SubmitOutcome:
        generation = self._begin_saving(data)
        try:
            if image is not None:
                payload = attach_image_url(payload, await self._upload(image))
            record_id = await write(payload)
        except (UploadFailed, StoreUnavailable, ValidationFailed) as e:
            return self._save_failed(verb, data, generation, e, form)
        except Exception:
            self._restore(data, generation)
            raise
        return await self._saved(verb, record_id)

    async def _upload(self, image: ImageUpload) -> str:
        if self._uploader is None:
            raise UploadFailed(message="Image uploads are not available on this page.")
        return await self._uploader.upload(image.content, image.filename)

    async def _saved(self, verb: str, record_id: str) -> SubmitOutcome:
        message = f"{self.kind.label} {_PAST_TENSE[verb]} successfully!"
        self._notice = Notice.info(message)
        await self._load()
        return SubmitOutcome(ok=True, record_id=record_id, message=message)

    def _save_failed(
        self,
        verb: str,
        data: Any,
        generation: int,
        error: WordShelfError,
        form: Optional[Mapping[str, Any]],
    ) -> SubmitOutcome:
        if isinstance(error, UploadFailed):
            message = f"Image upload failed. The {self.kind.name} was not saved."
        elif isinstance(error, ValidationFailed):
            message = error.message
        else:
            message = f"Failed to {verb} {self.kind.name}. Please try again."
        logger.warning("%s page: %s failed: %s", self.kind, verb, error.message)
        self._restore(data, generation)
        self._notice = Notice.error(message)
        return SubmitOutcome(ok=False, message=message, error=error, form=form)

    def _rejected(self, error: ValidationFailed, form: Mapping[str, Any]) -> SubmitOutcome:
        self._notice = Notice.error(error.message)
        return SubmitOutcome(ok=False, message=error.message, error=error, form=form)

    async def _confirmed(self, question: str) -> bool:
        if self._confirm is None:
            return False
        answer = self._confirm(question)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    # ── State bookkeeping ─────────────────────────────────────────────────

    def _begin_saving(self, data: Any) -> int:
        self._set_state(Saving(data))
        return self._generation

    def _restore(self, data: Any, generation: int) -> None:
        """Leave Saving for Ready(data), unless a fetch ran since saving began."""
        if generation != self._generation:
            logger.debug("%s page: keeping data fetched while saving", self.kind)
            return
        self._set_state(Ready(data))

    def _require_ready(self, action: str) -> Any:
        if not isinstance(self._state, Ready):
            raise InvalidTransition(action, self._state.name)
        return self._state.data

    def _set_state(self, state: ViewState) -> None:
        if self._closed:
            return
        logger.debug("%s page: %s -> %s", self.kind, self._state.name, state.name)
        self._state = state
        for listener in list(self._listeners):
            listener(state)


# ══════════════════════════════════════════════════════════════════════════
# Page factories
# ══════════════════════════════════════════════════════════════════════════


def list_page(
    store: RecordStore,
    uploader: Optional[ImageUploader] = None,
    confirm: Optional[ConfirmCallback] = None,
) -> ViewStateController:
    """Page showing every record of the store's kind, newest first."""
    return ViewStateController(store.kind, store, store.list, uploader, confirm)


def detail_page(
    store: RecordStore,
    record_id: str,
    uploader: Optional[ImageUploader] = None,
    confirm: Optional[ConfirmCallback] = None,
) -> ViewStateController:
    """Page showing one record; a missing record puts it in Failed."""

    async def fetch() -> BaseModel:
        record = await store.get_by_id(record_id)
        if record is None:
            raise NotFound(resource=store.kind.name, resource_id=record_id)
        return record

    return ViewStateController(store.kind, store, fetch, uploader, confirm)

"""
WordShelf Backend: View State Controller Tests
===============================================

Pages run against InMemoryRecordStore (see conftest.py); `store.calls`
shows exactly which store operations a page issued.

What we test:
    ✅ mount → Ready, store failure → Failed → retry → Ready
    ✅ Detail page not-found
    ✅ Invalid forms: notice, still Ready, zero store calls
    ✅ Create / update / delete flows and their notices
    ✅ Upload failure: record not written, form retained
    ✅ Confirmation before delete
    ✅ Stale fetch results dropped; close() drops late results
    ✅ A failed save never leaves the page in Saving or hides fresher data
    ✅ Illegal transitions raise InvalidTransition
"""

import asyncio

import pytest

from wordshelf.controllers.view_state import (
    Failed,
    ImageUpload,
    Loading,
    Ready,
    Saving,
    ViewStateController,
    detail_page,
    list_page,
)
from wordshelf.exceptions import InvalidTransition, NotFound, StoreUnavailable, UploadFailed
from wordshelf.schemas.kinds import WORD
from wordshelf.schemas.word import WordFields
from wordshelf.services.blob_service import BlobStorage, ImageUploader

WORD_FORM = {
    "chinese_word": "你好",
    "pinyin": "nǐ hǎo",
    "meaning": "hello",
    "part_of_speech": "phrase",
}

QUOTE_FORM = {"text": "路遥知马力，日久见人心", "meaning": "Time reveals a person's heart"}


class RejectingStorage(BlobStorage):
    """Blob storage whose every write fails."""

    backend = "rejecting"

    async def put(self, path, content, content_type):
        raise UploadFailed(context={"path": path})

    def public_url(self, path):
        return f"http://unused/{path}"


class BrokenStorage(BlobStorage):
    """Blob storage failing with an error outside the upload contract."""

    backend = "broken"

    async def put(self, path, content, content_type):
        raise RuntimeError("storage driver crashed")

    def public_url(self, path):
        return f"http://unused/{path}"


def _state_names(transitions):
    return [state.name for state in transitions]


class TestMountAndRetry:

    @pytest.mark.asyncio
    async def test_mount_lists_records(self, word_store):
        await word_store.create(WordFields(chinese_word="一", meaning="one"))
        page = list_page(word_store)
        transitions = []
        page.subscribe(transitions.append)

        await page.mount()

        assert _state_names(transitions) == ["loading", "ready"]
        state = page.current_state()
        assert isinstance(state, Ready)
        assert [r.chinese_word for r in state.data] == ["一"]

    @pytest.mark.asyncio
    async def test_failed_list_then_retry(self, word_store):
        word_store.failing.add("list")
        page = list_page(word_store)
        transitions = []
        page.subscribe(transitions.append)

        await page.mount()
        state = page.current_state()
        assert isinstance(state, Failed)
        assert isinstance(state.error, StoreUnavailable)
        assert page.current_notice().level == "error"

        word_store.failing.clear()
        await page.retry()

        assert _state_names(transitions) == ["loading", "failed", "loading", "ready"]
        assert page.current_state() == Ready([])

    @pytest.mark.asyncio
    async def test_retry_outside_failed_is_invalid(self, word_store):
        page = list_page(word_store)
        await page.mount()
        with pytest.raises(InvalidTransition):
            await page.retry()

    @pytest.mark.asyncio
    async def test_detail_not_found(self, word_store):
        page = detail_page(word_store, "word-404")
        await page.mount()

        state = page.current_state()
        assert isinstance(state, Failed)
        assert isinstance(state.error, NotFound)
        assert "not found" in state.message

    @pytest.mark.asyncio
    async def test_detail_shows_record(self, word_store):
        record_id = await word_store.create(WordFields(chinese_word="你好", meaning="hello"))
        page = detail_page(word_store, record_id)
        await page.mount()
        assert page.current_state().data.id == record_id

    @pytest.mark.asyncio
    async def test_unsubscribe(self, word_store):
        page = list_page(word_store)
        transitions = []
        unsubscribe = page.subscribe(transitions.append)
        unsubscribe()
        await page.mount()
        assert transitions == []


class TestSubmitCreate:

    @pytest.mark.asyncio
    async def test_word_scenario(self, word_store):
        page = list_page(word_store)
        await page.mount()
        transitions = []
        page.subscribe(transitions.append)

        outcome = await page.submit_create(WORD_FORM)

        assert outcome.ok
        assert _state_names(transitions) == ["saving", "loading", "ready"]
        assert page.current_notice().message == "Word added successfully!"
        [record] = page.current_state().data
        assert record.id == outcome.record_id
        assert record.pinyin == "nǐ hǎo"
        assert record.example is None

        detail = detail_page(word_store, outcome.record_id)
        await detail.mount()
        assert detail.current_state().data.chinese_word == "你好"

    @pytest.mark.asyncio
    async def test_invalid_form_makes_no_store_call(self, word_store):
        page = list_page(word_store)
        await page.mount()
        word_store.calls.clear()
        form = {"chinese_word": "你好", "meaning": "   "}

        outcome = await page.submit_create(form)

        assert not outcome.ok
        assert outcome.form is form
        assert word_store.calls == []
        assert isinstance(page.current_state(), Ready)
        assert page.current_notice().message == "Chinese word and meaning are required!"

    @pytest.mark.asyncio
    async def test_store_failure_returns_to_ready_with_previous_data(self, word_store):
        await word_store.create(WordFields(chinese_word="一", meaning="one"))
        page = list_page(word_store)
        await page.mount()
        before = page.current_state()
        word_store.failing.add("create")

        outcome = await page.submit_create(WORD_FORM)

        assert not outcome.ok
        assert isinstance(outcome.error, StoreUnavailable)
        assert outcome.form == WORD_FORM
        assert page.current_state() == before
        assert page.current_notice().message == "Failed to add word. Please try again."

    @pytest.mark.asyncio
    async def test_upload_failure_leaves_record_uncreated(self, quote_store):
        uploader = ImageUploader(RejectingStorage(), prefix="quotes", max_file_size=1024)
        page = list_page(quote_store, uploader)
        await page.mount()

        outcome = await page.submit_create(
            QUOTE_FORM, ImageUpload(content=b"\x89PNG", filename="sunrise.png")
        )

        assert not outcome.ok
        assert isinstance(outcome.error, UploadFailed)
        assert outcome.form == QUOTE_FORM
        assert "create" not in quote_store.calls
        assert quote_store.records == {}
        assert page.current_state() == Ready([])
        assert page.current_notice().message == "Image upload failed. The quote was not saved."

    @pytest.mark.asyncio
    async def test_uploaded_image_url_is_saved(self, quote_store, uploaders, sample_image_bytes):
        page = list_page(quote_store, uploaders["quote"])
        await page.mount()

        outcome = await page.submit_create(
            {**QUOTE_FORM, "image_url": "https://example.com/typed.png"},
            ImageUpload(content=sample_image_bytes, filename="sunrise.png"),
        )

        record = quote_store.records[outcome.record_id]
        assert record.image_url == "http://test/files/quotes/1718000000000_sunrise.png"

    @pytest.mark.asyncio
    async def test_unexpected_upload_error_returns_to_ready(self, quote_store):
        uploader = ImageUploader(BrokenStorage(), prefix="quotes", max_file_size=1024)
        page = list_page(quote_store, uploader)
        await page.mount()

        with pytest.raises(RuntimeError):
            await page.submit_create(QUOTE_FORM, ImageUpload(b"\x89PNG", "a.png"))

        assert page.current_state() == Ready([])
        assert quote_store.records == {}
        outcome = await page.submit_create(QUOTE_FORM)
        assert outcome.ok

    @pytest.mark.asyncio
    async def test_image_without_uploader_fails_upload(self, quote_store):
        page = list_page(quote_store)
        await page.mount()
        outcome = await page.submit_create(QUOTE_FORM, ImageUpload(b"\x89PNG", "a.png"))
        assert isinstance(outcome.error, UploadFailed)
        assert quote_store.records == {}

    @pytest.mark.asyncio
    async def test_submit_while_failed_is_invalid(self, word_store):
        word_store.failing.add("list")
        page = list_page(word_store)
        await page.mount()
        word_store.calls.clear()

        with pytest.raises(InvalidTransition):
            await page.submit_create(WORD_FORM)
        assert word_store.calls == []

    @pytest.mark.asyncio
    async def test_submit_while_loading_is_invalid(self, word_store):
        page = list_page(word_store)
        assert page.current_state() == Loading()
        with pytest.raises(InvalidTransition):
            await page.submit_create(WORD_FORM)


class TestSubmitUpdate:

    @pytest.mark.asyncio
    async def test_partial_update(self, word_store):
        record_id = await word_store.create(WordFields(chinese_word="你好", meaning="hi", pinyin="ni hao"))
        page = detail_page(word_store, record_id)
        await page.mount()

        outcome = await page.submit_update(record_id, {"meaning": "hello"})

        assert outcome.ok
        assert page.current_notice().message == "Word updated successfully!"
        record = page.current_state().data
        assert record.meaning == "hello"
        assert record.pinyin == "ni hao"
        assert record.chinese_word == "你好"

    @pytest.mark.asyncio
    async def test_update_failure_keeps_pre_edit_data(self, word_store):
        record_id = await word_store.create(WordFields(chinese_word="你好", meaning="hi"))
        page = detail_page(word_store, record_id)
        await page.mount()
        before = page.current_state()
        word_store.failing.add("update")

        outcome = await page.submit_update(record_id, {"meaning": "hello"})

        assert not outcome.ok
        assert outcome.form == {"meaning": "hello"}
        assert page.current_state() == before
        assert page.current_notice().message == "Failed to update word. Please try again."


class TestSubmitDelete:

    @pytest.mark.asyncio
    async def test_declined_confirmation_does_nothing(self, word_store):
        record_id = await word_store.create(WordFields(chinese_word="你好", meaning="hi"))
        questions = []

        def decline(question):
            questions.append(question)
            return False

        page = list_page(word_store, confirm=decline)
        await page.mount()
        before = page.current_state()
        word_store.calls.clear()

        outcome = await page.submit_delete(record_id)

        assert outcome.cancelled
        assert questions == ["Are you sure you want to delete this word?"]
        assert word_store.calls == []
        assert page.current_state() is before

    @pytest.mark.asyncio
    async def test_confirmed_delete(self, word_store):
        record_id = await word_store.create(WordFields(chinese_word="你好", meaning="hi"))

        async def accept(question):
            return True

        page = list_page(word_store, confirm=accept)
        await page.mount()

        outcome = await page.submit_delete(record_id)

        assert outcome.ok
        assert word_store.records == {}
        assert page.current_state() == Ready([])
        assert page.current_notice().message == "Word deleted successfully!"

    @pytest.mark.asyncio
    async def test_no_confirm_callback_means_declined(self, word_store):
        record_id = await word_store.create(WordFields(chinese_word="你好", meaning="hi"))
        page = list_page(word_store)
        await page.mount()

        outcome = await page.submit_delete(record_id)

        assert outcome.cancelled
        assert record_id in word_store.records

    @pytest.mark.asyncio
    async def test_unexpected_delete_error_returns_to_ready(self, word_store):
        record_id = await word_store.create(WordFields(chinese_word="你好", meaning="hi"))
        page = list_page(word_store, confirm=lambda q: True)
        await page.mount()
        before = page.current_state()

        async def crash(record_id):
            raise RuntimeError("connection reset")

        word_store.delete = crash

        with pytest.raises(RuntimeError):
            await page.submit_delete(record_id)

        assert page.current_state() == before

    @pytest.mark.asyncio
    async def test_delete_failure(self, word_store):
        record_id = await word_store.create(WordFields(chinese_word="你好", meaning="hi"))
        page = list_page(word_store, confirm=lambda q: True)
        await page.mount()
        word_store.failing.add("delete")

        outcome = await page.submit_delete(record_id)

        assert not outcome.ok
        assert isinstance(page.current_state(), Ready)
        assert page.current_notice().message == "Failed to delete word. Please try again."
        page.dismiss_notice()
        assert page.current_notice() is None


class TestStaleResults:

    @pytest.mark.asyncio
    async def test_superseded_fetch_is_dropped(self, word_store):
        gate = asyncio.Event()
        results = ["old", "new"]

        async def fetch():
            value = results.pop(0)
            if value == "old":
                await gate.wait()
            return value

        page = ViewStateController(WORD, word_store, fetch)
        first = asyncio.create_task(page.mount())
        await asyncio.sleep(0)

        await page.refresh()
        gate.set()
        await first

        assert page.current_state() == Ready("new")

    @pytest.mark.asyncio
    async def test_failed_save_keeps_data_fetched_meanwhile(self, word_store):
        gate = asyncio.Event()
        store_create = word_store.create

        async def create_after_gate(fields):
            await gate.wait()
            raise StoreUnavailable(message="Could not save the word.")

        page = list_page(word_store)
        await page.mount()
        word_store.create = create_after_gate
        saving = asyncio.create_task(page.submit_create(WORD_FORM))
        await asyncio.sleep(0)
        assert page.current_state() == Saving([])

        record_id = await store_create(WordFields(chinese_word="新", meaning="new"))
        await page.refresh()
        gate.set()
        outcome = await saving

        assert not outcome.ok
        assert [r.id for r in page.current_state().data] == [record_id]
        assert page.current_notice().message == "Failed to add word. Please try again."

    @pytest.mark.asyncio
    async def test_result_after_close_is_dropped(self, word_store):
        gate = asyncio.Event()

        async def fetch():
            await gate.wait()
            return ["late"]

        page = ViewStateController(WORD, word_store, fetch)
        mounting = asyncio.create_task(page.mount())
        await asyncio.sleep(0)

        page.close()
        gate.set()
        await mounting

        assert page.current_state() == Loading()

    @pytest.mark.asyncio
    async def test_saving_state_holds_previous_data(self, word_store):
        page = list_page(word_store)
        await page.mount()
        seen = []
        page.subscribe(seen.append)

        await page.submit_create(WORD_FORM)

        assert seen[0] == Saving([])

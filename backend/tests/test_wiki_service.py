"""
Biowiki — Wiki Service Unit Tests
==================================

What:  Request orchestration: body parsing, client-input checks that must
       run before any write, web/page resolution, and locking.
How:   A real WikiService over tmp_path; bodies are the raw bytes a route
       would hand over.
"""

import asyncio
import base64
import json

import pytest

from biowiki.exceptions import (
    DecodeError,
    NameMismatchError,
    NotFoundError,
    OverwriteError,
    ValidationError,
)
from biowiki.locks import StoreLocks
from biowiki.schemas.wiki import PageDetail
from biowiki.services.wiki_service import WikiService


def page_body(name="WebHome", title="Welcome", content="Hello.", parent=""):
    return json.dumps(
        {"name": name, "title": title, "content": content, "parent": parent}
    ).encode()


def upload_body(file_name, data=b"payload"):
    return json.dumps(
        {"file_name": file_name, "encoded_data": base64.b64encode(data).decode("ascii")}
    ).encode()


@pytest.fixture
def home(wiki_service):
    wiki_service.webs.create("Home")
    return wiki_service


class TestParseBody:

    def test_valid_body(self, wiki_service):
        detail = wiki_service.parse_body(PageDetail, page_body())
        assert detail.name == "WebHome"

    def test_parent_defaults_to_empty(self, wiki_service):
        body = json.dumps({"name": "A", "title": "B", "content": "C"}).encode()
        assert wiki_service.parse_body(PageDetail, body).parent == ""

    def test_not_json(self, wiki_service):
        with pytest.raises(ValidationError) as excinfo:
            wiki_service.parse_body(PageDetail, b"{ nope")
        assert excinfo.value.field == "body"

    def test_missing_field_is_reported(self, wiki_service):
        with pytest.raises(ValidationError) as excinfo:
            wiki_service.parse_body(PageDetail, b'{"name": "A"}')
        locs = [err["loc"] for err in excinfo.value.context["errors"]]
        assert ["title"] in locs
        assert ["content"] in locs

    def test_body_too_large(self, webs):
        service = WikiService(webs=webs, locks=StoreLocks(), max_body_size=16)
        with pytest.raises(ValidationError) as excinfo:
            service.parse_body(PageDetail, page_body())
        assert excinfo.value.context["max_size"] == 16


class TestWebOperations:

    @pytest.mark.asyncio
    async def test_create_and_list(self, wiki_service):
        await wiki_service.create_web(b'{"name": "Home"}')
        await wiki_service.create_web(b'{"name": "Archive"}')
        names = [stub.name for stub in await wiki_service.list_webs()]
        assert names == ["Archive", "Home"]

    @pytest.mark.asyncio
    async def test_create_existing_web(self, home):
        with pytest.raises(OverwriteError):
            await home.create_web(b'{"name": "Home"}')

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["..", "a/b", ""])
    async def test_create_web_with_unsafe_name(self, wiki_service, temp_storage, name):
        with pytest.raises(ValidationError):
            await wiki_service.create_web(json.dumps({"name": name}).encode())
        assert list(temp_storage.iterdir()) == []


class TestPageOperations:

    @pytest.mark.asyncio
    async def test_create_and_show(self, home):
        version_hash = await home.create_page("Home", page_body())
        detail = await home.show_page("Home", "WebHome")
        assert detail.title == "Welcome"
        assert [stub.hash for stub in await home.list_versions("Home", "WebHome")] == [version_hash]

    @pytest.mark.asyncio
    async def test_create_in_unknown_web(self, wiki_service):
        with pytest.raises(NotFoundError):
            await wiki_service.create_page("Nowhere", page_body())

    @pytest.mark.asyncio
    async def test_create_existing_page(self, home):
        await home.create_page("Home", page_body())
        with pytest.raises(OverwriteError):
            await home.create_page("Home", page_body(content="again"))

    @pytest.mark.asyncio
    async def test_list_pages(self, home):
        await home.create_page("Home", page_body(name="B"))
        await home.create_page("Home", page_body(name="A"))
        assert [stub.name for stub in await home.list_pages("Home")] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_list_pages_of_unknown_web(self, wiki_service):
        with pytest.raises(NotFoundError):
            await wiki_service.list_pages("Nowhere")

    @pytest.mark.asyncio
    async def test_show_with_dot_dot_is_not_found(self, home):
        with pytest.raises(NotFoundError):
            await home.show_page("Home", "..")

    @pytest.mark.asyncio
    async def test_update_records_new_version(self, home):
        first = await home.create_page("Home", page_body())
        second = await home.update_page("Home", "WebHome", page_body(content="Edited."))

        assert first != second
        assert (await home.show_page("Home", "WebHome")).content == "Edited."
        old = await home.show_version("Home", "WebHome", first)
        assert old.content == "Hello."

    @pytest.mark.asyncio
    async def test_update_with_mismatched_name_writes_nothing(self, home, temp_storage):
        await home.create_page("Home", page_body())
        page_file = temp_storage / "Home" / "WebHome" / "page.json"
        before = page_file.read_bytes()

        with pytest.raises(NameMismatchError):
            await home.update_page("Home", "WebHome", page_body(name="Other"))

        assert page_file.read_bytes() == before
        assert not (temp_storage / "Home" / "Other").exists()
        assert len(await home.list_versions("Home", "WebHome")) == 1

    @pytest.mark.asyncio
    async def test_update_missing_page(self, home):
        with pytest.raises(NotFoundError):
            await home.update_page("Home", "WebHome", page_body())

    @pytest.mark.asyncio
    async def test_show_unknown_version(self, home):
        await home.create_page("Home", page_body())
        with pytest.raises(NotFoundError):
            await home.show_version("Home", "WebHome", "f" * 64)

    @pytest.mark.asyncio
    async def test_concurrent_updates_keep_page_and_versions_consistent(self, home):
        await home.create_page("Home", page_body())
        bodies = [page_body(content=f"draft {i}") for i in range(10)]

        await asyncio.gather(
            *(home.update_page("Home", "WebHome", body) for body in bodies)
        )

        current = await home.show_page("Home", "WebHome")
        versions = await home.list_versions("Home", "WebHome")
        assert len(versions) == 11
        contents = set()
        for stub in versions:
            contents.add((await home.show_version("Home", "WebHome", stub.hash)).content)
        assert current.content in contents


class TestAttachmentOperations:

    @pytest.mark.asyncio
    async def test_upload_list_and_serve(self, home, sample_png_bytes):
        await home.create_page("Home", page_body())
        file_name = await home.create_attachment(
            "Home", "WebHome", upload_body("photo.png", sample_png_bytes)
        )

        assert file_name == "photo.png"
        stubs = await home.list_attachments("Home", "WebHome")
        assert [stub.file_name for stub in stubs] == ["photo.png"]
        content, media_type = await home.serve_attachment("Home", "WebHome", "photo.png")
        assert content == sample_png_bytes
        assert media_type == "image/png"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("file_name", ["noext", "../page.json", ".hidden", "a.b.c"])
    async def test_invalid_filename_rejected_before_any_write(self, home, temp_storage, file_name):
        await home.create_page("Home", page_body())
        with pytest.raises(ValidationError) as excinfo:
            await home.create_attachment("Home", "WebHome", upload_body(file_name))
        assert excinfo.value.field == "file_name"
        assert not (temp_storage / "Home" / "WebHome" / "attachments").exists()

    @pytest.mark.asyncio
    async def test_invalid_filename_checked_before_page_lookup(self, home):
        with pytest.raises(ValidationError):
            await home.create_attachment("Home", "Missing", upload_body("noext"))

    @pytest.mark.asyncio
    async def test_upload_to_missing_page(self, home):
        with pytest.raises(NotFoundError):
            await home.create_attachment("Home", "Missing", upload_body("a.png"))

    @pytest.mark.asyncio
    async def test_bad_base64(self, home):
        await home.create_page("Home", page_body())
        body = json.dumps({"file_name": "a.png", "encoded_data": "%%%"}).encode()
        with pytest.raises(DecodeError):
            await home.create_attachment("Home", "WebHome", body)

    @pytest.mark.asyncio
    async def test_serve_missing_attachment(self, home):
        await home.create_page("Home", page_body())
        with pytest.raises(NotFoundError):
            await home.serve_attachment("Home", "WebHome", "missing.png")


class TestStoreLocks:

    def test_same_scope_same_lock(self):
        locks = StoreLocks()
        assert locks.lock_for("Home", "WebHome") is locks.lock_for("Home", "WebHome")
        assert len(locks) == 1

    def test_different_scopes_different_locks(self):
        locks = StoreLocks()
        assert locks.lock_for("Home") is not locks.lock_for("Home", "WebHome")
        assert locks.lock_for() is not locks.lock_for("Home")
        assert len(locks) == 3

    @pytest.mark.asyncio
    async def test_hold_serializes_same_scope(self):
        locks = StoreLocks()
        events = []

        async def worker(tag):
            async with locks.hold("Home", "WebHome"):
                events.append(f"{tag}-start")
                await asyncio.sleep(0.01)
                events.append(f"{tag}-end")

        await asyncio.gather(worker("a"), worker("b"))
        assert events == ["a-start", "a-end", "b-start", "b-end"]

    @pytest.mark.asyncio
    async def test_different_pages_do_not_wait(self):
        locks = StoreLocks()
        async with locks.hold("Home", "A"):
            # Would deadlock if scopes shared a lock
            async with locks.hold("Home", "B"):
                assert locks.lock_for("Home", "A").locked()
                assert locks.lock_for("Home", "B").locked()

    @pytest.mark.asyncio
    async def test_released_scopes_are_forgotten(self):
        locks = StoreLocks()
        async with locks.hold("Home", "WebHome"):
            assert len(locks) == 1
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_scope_kept_while_others_wait(self):
        locks = StoreLocks()
        entered = asyncio.Event()
        release = asyncio.Event()

        async def first():
            async with locks.hold("Home", "WebHome"):
                entered.set()
                await release.wait()

        async def second():
            await entered.wait()
            async with locks.hold("Home", "WebHome"):
                assert len(locks) == 1

        tasks = [asyncio.create_task(first()), asyncio.create_task(second())]
        await entered.wait()
        await asyncio.sleep(0)
        release.set()
        await asyncio.gather(*tasks)
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_lookups_of_missing_resources_leave_no_locks(self, wiki_service):
        wiki_service.webs.create("Home")
        for i in range(50):
            with pytest.raises(NotFoundError):
                await wiki_service.show_page(f"nope{i}", f"x{i}")
            with pytest.raises(NotFoundError):
                await wiki_service.list_pages(f"nope{i}")
            with pytest.raises(NotFoundError):
                await wiki_service.list_versions("Home", f"x{i}")
        assert len(wiki_service.locks) == 0

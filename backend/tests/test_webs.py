"""
Biowiki — Web and WebCollection Unit Tests
===========================================
"""

import pytest

from biowiki.exceptions import InvalidPathError, NotFoundError, OverwriteError
from biowiki.stores.pages import Page
from biowiki.stores.webs import Web, WebCollection


class TestWebCollection:
    """Tests for the storage root: listing, lookup and creation of webs."""

    def test_empty_root_lists_nothing(self, webs):
        assert webs.list() == []

    def test_create_makes_directory(self, webs, temp_storage):
        web = webs.create("Home")
        assert isinstance(web, Web)
        assert (temp_storage / "Home").is_dir()

    def test_create_twice_fails(self, webs):
        webs.create("Home")
        with pytest.raises(OverwriteError):
            webs.create("Home")

    def test_create_over_existing_file_fails(self, webs, temp_storage):
        (temp_storage / "Notes").write_text("not a web")
        with pytest.raises(OverwriteError):
            webs.create("Notes")

    @pytest.mark.parametrize("name", ["", ".", "..", "a/b", "a\\b"])
    def test_create_rejects_unsafe_names(self, webs, temp_storage, name):
        with pytest.raises(InvalidPathError):
            webs.create(name)
        assert list(temp_storage.iterdir()) == []

    def test_list_is_sorted_and_skips_files(self, webs, temp_storage):
        for name in ["Zoo", "Alpha", "Middle"]:
            webs.create(name)
        (temp_storage / "README.txt").write_text("stray file")

        assert [stub.name for stub in webs.list()] == ["Alpha", "Middle", "Zoo"]

    def test_list_missing_root(self, tmp_path):
        with pytest.raises(NotFoundError):
            WebCollection(tmp_path / "gone").list()

    def test_get_existing(self, webs):
        webs.create("Home")
        web = webs.get("Home")
        assert web is not None
        assert web.name == "Home"

    @pytest.mark.parametrize("name", ["Missing", "..", ".", ""])
    def test_get_unknown_returns_none(self, webs, name):
        assert webs.get(name) is None

    def test_get_file_returns_none(self, webs, temp_storage):
        (temp_storage / "Notes").write_text("x")
        assert webs.get("Notes") is None


class TestWeb:
    """Tests for the pages inside one web."""

    def test_new_web_has_no_pages(self, home_web):
        assert home_web.list_pages() == []

    @pytest.mark.asyncio
    async def test_new_page_then_open(self, home_web, sample_detail):
        page = home_web.new_page(sample_detail)
        assert isinstance(page, Page)
        await page.create()

        opened = await home_web.open_page("WebHome")
        assert opened.detail == sample_detail
        assert [stub.name for stub in home_web.list_pages()] == ["WebHome"]

    @pytest.mark.asyncio
    async def test_list_pages_sorted(self, home_web, sample_detail):
        for name in ["Zeta", "Beta", "Alpha"]:
            await home_web.new_page(sample_detail.model_copy(update={"name": name})).create()
        assert [stub.name for stub in home_web.list_pages()] == ["Alpha", "Beta", "Zeta"]

    @pytest.mark.asyncio
    async def test_open_missing_page(self, home_web):
        with pytest.raises(NotFoundError):
            await home_web.open_page("Nope")

    @pytest.mark.asyncio
    async def test_open_page_with_unsafe_name(self, home_web):
        with pytest.raises(InvalidPathError):
            await home_web.open_page("..")

    def test_page_directory_is_inside_web(self, home_web):
        assert home_web.page_directory("WebHome") == home_web.directory / "WebHome"

import pytest

from locale_lint.key_locator import KeyLocator, compute_line_starts, find_key_offset, offset_range
from locale_lint.models import TextRange


def test_offset_range_maps_offsets_to_lines():
    text = "ab\ncde\n\nf"
    starts = compute_line_starts(text)

    assert starts == [0, 3, 7, 8]
    text_range = offset_range(starts, 4, 9)
    assert (text_range.start_line, text_range.start_character) == (1, 1)
    assert (text_range.end_line, text_range.end_character) == (3, 1)


def test_unknown_extension_is_not_searched():
    assert find_key_offset("title: x", "title", ".yaml") is None


class TestKeyLocator:

    @pytest.mark.asyncio
    async def test_nested_json_key_is_found_under_its_parent(self, workspace):
        path = workspace.write("locales/en.json", {"title": "Top", "a": {"title": "A"}})

        text_range = await KeyLocator(4).locate(path, "a.title")

        assert text_range.start_line == 3
        assert text_range.start_character == 5
        assert text_range.end_character == 10

    @pytest.mark.asyncio
    async def test_namespace_segment_missing_from_file_is_skipped(self, workspace):
        path = workspace.write("locales/en/common.json", {"save": "Save"})

        text_range = await KeyLocator(4).locate(path, "common.save")

        assert (text_range.start_line, text_range.start_character) == (1, 3)

    @pytest.mark.asyncio
    async def test_po_key(self, workspace):
        path = workspace.write("locale/fr/LC_MESSAGES/app.po",
                               'msgid ""\nmsgstr ""\n\nmsgid "hello"\nmsgstr "Bonjour"\n')

        text_range = await KeyLocator(4).locate(path, "hello")

        assert (text_range.start_line, text_range.start_character, text_range.end_character) == (3, 7, 12)

    @pytest.mark.asyncio
    async def test_resx_key(self, workspace):
        path = workspace.write("Resources/Strings.resx",
                               '<root>\n  <data name="Greeting" xml:space="preserve">\n'
                               '    <value>Hello</value>\n  </data>\n</root>\n')

        text_range = await KeyLocator(4).locate(path, "Greeting")

        assert (text_range.start_line, text_range.start_character) == (1, 14)
        assert text_range.end_character == 22

    @pytest.mark.asyncio
    async def test_php_key(self, workspace):
        path = workspace.write("resources/lang/en/auth.php",
                               "<?php\nreturn [\n    'auth' => [\n        'failed' => 'Nope',\n    ],\n];\n")

        text_range = await KeyLocator(4).locate(path, "auth.failed")

        assert (text_range.start_line, text_range.start_character) == (3, 9)

    @pytest.mark.asyncio
    async def test_missing_key_and_missing_file_give_empty_range(self, workspace):
        path = workspace.write("locales/en.json", {"a": "A"})
        locator = KeyLocator(4)

        assert await locator.locate(path, "b") == TextRange.empty()
        assert await locator.locate(workspace.path("locales/none.json"), "a") == TextRange.empty()

    @pytest.mark.asyncio
    async def test_cached_text_is_reused_until_invalidated(self, workspace):
        path = workspace.write("locales/en.json", {"a": "A"})
        locator = KeyLocator(4)
        first = await locator.locate(path, "a")

        workspace.write("locales/en.json", {"z": "Z", "a": "A"})
        assert await locator.locate(path, "a") == first

        locator.invalidate(path)
        moved = await locator.locate(path, "a")
        assert moved.start_line == 2

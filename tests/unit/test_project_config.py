import logging

import pytest

from locale_lint.project_config import ProjectConfigService, project_config_from_package


class TestProjectConfigFromPackage:

    def test_declared_locales_and_src_root(self):
        config = project_config_from_package(
            {"name": "web", "aiI18n": {"locales": ["en", "fr", None, ""], "srcRoot": "src"}}, "en")

        assert config.declared_locales == ["en", "fr"]
        assert config.default_locale == "en"
        assert config.src_root == "src"

    @pytest.mark.parametrize("package", [{}, {"aiI18n": "nope"}, {"aiI18n": {"locales": "fr"}}, []])
    def test_locales_default_to_english(self, package):
        config = project_config_from_package(package, "de")

        assert config.declared_locales == ["en"]
        assert config.default_locale == "de"
        assert config.src_root is None


class TestProjectConfigService:

    @pytest.mark.asyncio
    async def test_no_package_json(self, workspace):
        assert await ProjectConfigService().read_config(workspace.root) is None

    @pytest.mark.asyncio
    async def test_result_is_cached_until_invalidated(self, workspace):
        service = ProjectConfigService("en")
        workspace.write("package.json", {"aiI18n": {"locales": ["en", "fr"]}})
        first = await service.read_config(workspace.root)

        workspace.write("package.json", {"aiI18n": {"locales": ["en", "de"]}})
        assert await service.read_config(workspace.root) is first

        service.invalidate(workspace.root)
        refreshed = await service.read_config(workspace.root)
        assert refreshed.declared_locales == ["en", "de"]

    @pytest.mark.asyncio
    async def test_unreadable_package_json_logs_warning(self, workspace, caplog):
        workspace.write("package.json", "{ broken")

        with caplog.at_level(logging.WARNING, logger="locale_lint"):
            assert await ProjectConfigService().read_config(workspace.root) is None

        assert "Failed to read project config" in caplog.text

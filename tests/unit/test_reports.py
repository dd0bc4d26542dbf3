import logging

from locale_lint.models import StyleSuggestion
from locale_lint.reports import (
    load_ignore_patterns,
    load_style_report,
    load_untranslated_allow_list,
    read_report_json,
    LOCALE_REPORT_SCHEMA,
)


def _style_report(*files):
    return {"files": list(files)}


class TestStyleReport:

    def test_entries_are_keyed_by_key_and_locale(self, workspace):
        workspace.write("scripts/.i18n-untranslated-style.json", _style_report({
            "locale": "fr",
            "issues": [
                {"keyPath": "Nav.home", "english": "Home", "current": "Acceuil", "suggested": "Accueil"},
                {"keyPath": "Nav.about", "suggested": 42},
                {"english": "no key path"},
            ],
        }))

        report = load_style_report([workspace.root])

        assert report == {
            ("Nav.home", "fr"): StyleSuggestion("Nav.home", "fr", "Home", "Acceuil", "Accueil"),
            ("Nav.about", "fr"): StyleSuggestion("Nav.about", "fr"),
        }

    def test_first_root_wins(self, tmp_path):
        first = tmp_path / "first"
        second = tmp_path / "second"
        for root, suggestion in ((first, "A"), (second, "B")):
            (root / "scripts").mkdir(parents=True)
            (root / "scripts" / ".i18n-untranslated-style.json").write_text(
                '{"files": [{"locale": "de", "issues": [{"keyPath": "k", "suggested": "%s"}]}]}' % suggestion,
                encoding="utf-8",
            )

        report = load_style_report([str(first), str(second)])

        assert report[("k", "de")].suggested == "A"

    def test_missing_report_is_empty(self, workspace):
        assert load_style_report([workspace.root]) == {}


class TestUntranslatedAllowList:

    def test_pairs_are_collected(self, workspace):
        workspace.write("scripts/.i18n-untranslated-untranslated.json", {
            "files": [
                {"locale": "fr", "issues": [{"keyPath": "a"}, {"keyPath": "b"}]},
                {"locale": "", "issues": [{"keyPath": "c"}]},
                {"locale": "de", "issues": []},
            ],
        })

        assert load_untranslated_allow_list([workspace.root]) == {("a", "fr"), ("b", "fr")}

    def test_malformed_report_is_logged_at_debug_and_ignored(self, workspace, caplog):
        workspace.write("scripts/.i18n-untranslated-untranslated.json", "{not json")

        with caplog.at_level(logging.DEBUG, logger="locale_lint"):
            assert load_untranslated_allow_list([workspace.root]) == set()

        assert any("invalid JSON" in message for message in caplog.messages)


class TestIgnorePatterns:

    def test_both_files_and_both_spellings_are_merged(self, workspace):
        workspace.write("scripts/i18n-ignore-patterns.json", {
            "exact": ["OK"],
            "exactInsensitive": ["Lorem"],
            "contains": ["©"],
        })
        workspace.write("scripts/.i18n-auto-ignore.json", {
            "exact": ["Beta", 7],
            "exact_insensitive": ["Ipsum"],
        })

        patterns = load_ignore_patterns([workspace.root])

        assert patterns.exact == {"OK", "Beta"}
        assert patterns.exact_case_insensitive == {"Lorem", "Ipsum"}
        assert patterns.contains == {"©"}

    def test_wrong_structure_is_rejected_by_schema(self, workspace):
        workspace.write("scripts/i18n-ignore-patterns.json", {"exact": "OK"})

        assert load_ignore_patterns([workspace.root]).is_empty()


def test_read_report_json_rejects_non_object(workspace):
    path = workspace.write("scripts/report.json", [1, 2, 3])

    assert read_report_json(path, LOCALE_REPORT_SCHEMA) is None

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Dict, List, Optional, Sequence

from locale_lint.app_config import LintConfig, load_app_config, parse_severity
from locale_lint.diagnostic_engine import DiagnosticEngine
from locale_lint.errors import LocaleLintError
from locale_lint.locale_index import LocaleIndex
from locale_lint.models import DiagnosticIssue, Severity
from locale_lint.project_config import ProjectConfigService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="locale-lint",
        description="Index translation catalogs and report missing, untranslated or inconsistent entries.",
    )
    parser.add_argument(
        "roots",
        nargs="*",
        help="Workspace roots to scan (default: workspace_roots from the config file, or the current directory)",
    )
    parser.add_argument(
        "--config",
        help="Path to the YAML configuration file (default: $LOCALE_LINT_CONFIG_FILE or ./locale-lint.yaml)",
    )
    parser.add_argument(
        "--source",
        action="append",
        default=[],
        metavar="FILE",
        help="Application source file to check for references to unknown keys; may be repeated",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print diagnostics as JSON",
    )
    parser.add_argument(
        "--dump-index",
        action="store_true",
        help="Print the indexed keys and values as JSON and exit",
    )
    parser.add_argument(
        "--severity-threshold",
        default="warning",
        choices=[severity.value for severity in Severity],
        help="Exit with status 1 when a diagnostic at or above this severity is reported (default: warning)",
    )
    return parser


def _display_path(file_path: str) -> str:
    relative = os.path.relpath(file_path)
    return file_path if relative.startswith('..') else relative


def format_issue(file_path: str, issue: DiagnosticIssue) -> str:
    """``path:line:col: severity [code] message`` with 1-based positions."""
    return (f"{_display_path(file_path)}:{issue.range.start_line + 1}:{issue.range.start_character + 1}: "
            f"{issue.severity.value} [{issue.code.value}] {issue.message}")


def exceeds_threshold(results: Dict[str, List[DiagnosticIssue]], threshold: Severity) -> bool:
    return any(issue.severity.rank <= threshold.rank for issues in results.values() for issue in issues)


async def run_lint(config: LintConfig, sources: Sequence[str], as_json: bool = False,
                   dump_index: bool = False, threshold: Severity = Severity.WARNING) -> int:
    """Build the index, analyze every locale file and the given sources, print the results."""
    index = LocaleIndex(config)
    await index.ensure_initialized()

    if dump_index:
        print(json.dumps(index.snapshot(), indent=2, ensure_ascii=False, sort_keys=True))
        return 0

    engine = DiagnosticEngine(index, ProjectConfigService(config.default_locale), config.cache_capacity)
    await engine.load_reports(config.workspace_roots)
    batch = await engine.analyze_all(config)
    results: Dict[str, List[DiagnosticIssue]] = dict(batch.diagnostics)
    for source in sources:
        source_path = os.path.abspath(source)
        results[source_path] = await engine.analyze_source_file(source_path, config)

    if as_json:
        payload = {
            path: [issue.to_dict() for issue in issues]
            for path, issues in sorted(results.items()) if issues
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        for path in sorted(results):
            for issue in results[path]:
                print(format_issue(path, issue))

    total = sum(len(issues) for issues in results.values())
    logger.info("%d diagnostic(s) in %d file(s)", total, len(results))
    return 1 if exceeds_threshold(results, threshold) else 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_app_config(args.config, args.roots or None)
    except LocaleLintError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    return asyncio.run(run_lint(
        config,
        args.source,
        as_json=args.json,
        dump_index=args.dump_index,
        threshold=parse_severity(args.severity_threshold),
    ))


if __name__ == "__main__":
    sys.exit(main())

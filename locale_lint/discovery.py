import logging
import os
import re
from typing import Iterable, List, Optional, Pattern, Sequence

logger = logging.getLogger(__name__)

DEFAULT_LOCALE_GLOBS = [
    'resources/js/i18n/auto/**/*.json',
    'src/i18n/**/*.json',
    'src/locales/**/*.json',
    'locales/**/*.json',
    '**/locales/**/*.json',
    'i18n/**/*.json',
    # gettext catalogs (Django, Flask, Babel)
    '**/locale/*/LC_MESSAGES/*.po',
    '**/locales/*/LC_MESSAGES/*.po',
    '**/translations/*/LC_MESSAGES/*.po',
    # Laravel
    '**/lang/**/*.php',
    '**/resources/lang/**/*.php',
    # .NET resources
    '**/Resources/**/*.resx',
]

# Appended even when the user supplies their own globs, so a Laravel app
# nested below the workspace root is never invisible to the scanner.
ALWAYS_SCANNED_GLOBS = [
    'lang/**/*.php',
    'resources/lang/**/*.php',
    '**/lang/**/*.php',
    '**/resources/lang/**/*.php',
]

EXCLUDED_DIRECTORIES = frozenset({'node_modules', '.git'})


def resolve_globs(user_globs: Optional[Sequence[str]]) -> List[str]:
    """User globs replace the defaults; the always-scanned globs are appended once."""
    globs = list(user_globs) if user_globs else list(DEFAULT_LOCALE_GLOBS)
    for glob in ALWAYS_SCANNED_GLOBS:
        if glob not in globs:
            globs.append(glob)
    return globs


def glob_to_regex(glob: str) -> Pattern[str]:
    """
    Compile a workspace glob into a regular expression over POSIX relative paths.

    ``**/`` matches zero or more directories, ``*`` and ``?`` never cross a
    path separator.
    """
    pattern = glob.replace('\\', '/').lstrip('/')
    out = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if pattern.startswith('**/', i):
            out.append('(?:.*/)?')
            i += 3
        elif pattern.startswith('**', i):
            out.append('.*')
            i += 2
        elif ch == '*':
            out.append('[^/]*')
            i += 1
        elif ch == '?':
            out.append('[^/]')
            i += 1
        else:
            out.append(re.escape(ch))
            i += 1
    return re.compile('^' + ''.join(out) + '$')


def find_locale_files(root: str, globs: Iterable[str]) -> List[str]:
    """
    Walk ``root`` once and return absolute paths of files matching any glob.

    ``node_modules`` and ``.git`` directories are pruned. Results are sorted
    for deterministic processing order.
    """
    patterns = [glob_to_regex(glob) for glob in globs]
    matches = []
    root = os.path.abspath(root)
    for dir_path, dir_names, file_names in os.walk(root):
        dir_names[:] = [name for name in dir_names if name not in EXCLUDED_DIRECTORIES]
        rel_dir = os.path.relpath(dir_path, root)
        rel_dir = '' if rel_dir == '.' else rel_dir.replace(os.sep, '/') + '/'
        for file_name in file_names:
            rel_path = rel_dir + file_name
            if any(pattern.match(rel_path) for pattern in patterns):
                matches.append(os.path.join(dir_path, file_name))
    matches.sort()
    logger.debug("Discovered %d locale file(s) under %s", len(matches), root)
    return matches


def find_workspace_root(file_path: str, roots: Sequence[str]) -> Optional[str]:
    """Return the most specific workspace root containing ``file_path``."""
    path = os.path.abspath(file_path)
    best = None
    for root in roots:
        root_abs = os.path.abspath(root)
        if path == root_abs or path.startswith(root_abs.rstrip(os.sep) + os.sep):
            if best is None or len(root_abs) > len(best):
                best = root_abs
    return best

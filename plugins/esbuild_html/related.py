"""
Discovery of outputs that belong next to an entry point's main output.

Without an `entryNames` pattern esbuild writes related files (the extracted
stylesheet, for example) beside the main output with the same stem. With a
pattern such as `[dir]/[name]-[hash]` every output gets its own hash, so the
pattern itself is turned into a regex: first to recover `[name]`/`[dir]` from
the main output, then, with those fixed and `[hash]` left open, to find the
siblings.
"""

import posixpath
import re
from typing import List, Optional, Tuple

from plugins.esbuild_html.manifest import BuildManifest, OutputRecord
from plugins.esbuild_html.paths import posix_join

DIR_REGEX = r"(?P<dir>\S+/?)"
NAME_REGEX = r"(?P<name>[^\s/]+)"
HASH_REGEX = r"(?P<hash>[A-Z2-7]{8})"

PLACEHOLDER_SPLIT = re.compile(r"(\[(?:dir|name|hash)\])")

# Group regexes by placeholder, and the pattern to reuse for repeated occurrences.
GROUPS = {
    "[dir]": (DIR_REGEX, "(?P=dir)"),
    "[name]": (NAME_REGEX, "(?P=name)"),
    "[hash]": (HASH_REGEX, "[A-Z2-7]{8}"),
}


class NamePattern:
    """Compiled form of an esbuild `entryNames` template."""

    def __init__(self, pattern: str):
        self.pattern = pattern
        self._tokens: List[str] = [t for t in PLACEHOLDER_SPLIT.split(pattern) if t]
        self._extract_re = re.compile(self._build_extract_regex())

    def _build_extract_regex(self) -> str:
        seen = set()
        parts: List[str] = []
        for token in self._tokens:
            if token in GROUPS:
                first, repeat = GROUPS[token]
                parts.append(repeat if token in seen else first)
                seen.add(token)
            else:
                parts.append(re.escape(token))
        return "".join(parts)

    def sibling_regex(self, name: str, dir: str) -> "re.Pattern[str]":
        parts: List[str] = []
        for token in self._tokens:
            if token == "[name]":
                parts.append(re.escape(name))
            elif token == "[dir]":
                parts.append(re.escape(dir))
            elif token == "[hash]":
                parts.append(GROUPS["[hash]"][1])
            else:
                parts.append(re.escape(token))
        return re.compile("".join(parts))

    def extract(self, path: str) -> Tuple[str, str]:
        """Return `(name, dir)` for an output path, or empty strings if the pattern does not apply."""
        stem_path = posix_join(*_split_stem(path))
        match = self._extract_re.search(stem_path)
        if not match:
            return "", ""
        groups = match.groupdict()
        return groups.get("name") or "", groups.get("dir") or ""

    def matches(self, path: str, name: str, dir: str) -> bool:
        return self.sibling_regex(name, dir).search(path) is not None


def compile_name_pattern(pattern: str) -> NamePattern:
    return NamePattern(pattern)


def find_related_outputs(
    entry: OutputRecord, manifest: BuildManifest, entry_names: Optional[str] = None
) -> List[OutputRecord]:
    """Return every output related to `entry`, in manifest order. `entry` itself is always included."""
    if entry_names:
        pattern = compile_name_pattern(entry_names)
        name, dir = pattern.extract(entry.path)
        sibling_re = pattern.sibling_regex(name, dir)
        related = [record for record in manifest if sibling_re.search(record.path)]
    else:
        entry_stem = _split_stem(entry.path)
        related = [record for record in manifest if _split_stem(record.path) == entry_stem]

    if not any(record.path == entry.path for record in related):
        related.insert(0, entry)
    return related


def _split_stem(path: str) -> Tuple[str, str]:
    directory, basename = posixpath.split(path)
    return directory, posixpath.splitext(basename)[0]

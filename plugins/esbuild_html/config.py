"""
Page definitions for the esbuild HTML plugin.

Raw page dictionaries (as written under `files:` in mkdocs.yml) are parsed once
into frozen dataclasses. The union-shaped options `inline` and `hash` are
normalized here into `InlinePolicy` / `HashPolicy` so the injector never has
to look at the raw shapes again.
"""

import fnmatch
import hashlib
import posixpath
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

SCRIPT_LOADING_MODES: Tuple[str, ...] = ("blocking", "defer", "module")

PAGE_KEYS = frozenset(
    {
        "filename",
        "entry_points",
        "title",
        "html_template",
        "define",
        "script_loading",
        "favicon",
        "find_related_css_files",
        "find_related_output_files",
        "extra_scripts",
        "inline",
        "hash",
        "minify",
    }
)

InlineOption = Union[None, bool, Mapping[str, bool], List[str], Callable[[str], bool]]
HashOption = Union[None, bool, str]


@dataclass(frozen=True)
class InlinePolicy:
    """Decides whether an output file is embedded instead of linked."""

    predicate: Callable[[str], bool] = field(default=lambda path: False)

    @classmethod
    def from_option(cls, option: InlineOption) -> "InlinePolicy":
        if option is None or option is False:
            return cls()
        if option is True:
            return cls(lambda path: True)
        if callable(option):
            return cls(lambda path: bool(option(path)))
        if isinstance(option, Mapping):
            unknown = set(option) - {"css", "js"}
            if unknown:
                raise ValueError(f"inline: unsupported keys {sorted(unknown)}, expected 'css' and/or 'js'")
            by_ext = {ext: value is True for ext, value in option.items()}
            return cls(lambda path: by_ext.get(_ext_without_dot(path), False))
        if isinstance(option, list):
            patterns = [str(p) for p in option]
            return cls(lambda path: any(fnmatch.fnmatch(path, p) for p in patterns))
        raise ValueError(f"inline: expected a bool, a mapping, a list of globs or a callable, got {option!r}")

    def applies(self, path: str) -> bool:
        return self.predicate(path)


@dataclass(frozen=True)
class HashPolicy:
    """Cache-busting query string appended to every injected asset URL.

    A literal seed gives a stable digest. `hash: true` is seeded with the
    build token, so every build produces a new query string.
    """

    digest: Optional[str] = None

    @classmethod
    def from_option(cls, option: HashOption, build_token: str) -> "HashPolicy":
        if not option:
            return cls()
        if option is True:
            seed = build_token
        elif isinstance(option, str):
            seed = option
        else:
            raise ValueError(f"hash: expected a bool or a string, got {option!r}")
        return cls(hashlib.md5(seed.encode("utf8")).hexdigest())

    def apply(self, target: str) -> str:
        if self.digest is None:
            return target
        return f"{target}?{self.digest}"


@dataclass(frozen=True)
class ExtraScript:
    src: str
    attrs: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_option(cls, option: Any) -> "ExtraScript":
        if isinstance(option, str):
            return cls(src=option)
        if isinstance(option, Mapping) and isinstance(option.get("src"), str):
            attrs = option.get("attrs") or {}
            if not isinstance(attrs, Mapping):
                raise ValueError(f"extra_scripts: attrs of {option['src']!r} must be a mapping")
            return cls(src=option["src"], attrs={str(k): _attr_value(v) for k, v in attrs.items()})
        raise ValueError(f"extra_scripts: expected a string or a mapping with 'src', got {option!r}")


@dataclass(frozen=True)
class PageConfig:
    """One HTML file to generate from the build outputs."""

    filename: str
    entry_points: Tuple[str, ...]
    title: Optional[str] = None
    html_template: Optional[str] = None
    define: Mapping[str, str] = field(default_factory=dict)
    script_loading: str = "defer"
    favicon: Optional[str] = None
    find_related_css_files: bool = True
    find_related_output_files: bool = False
    extra_scripts: Tuple[ExtraScript, ...] = ()
    inline: InlineOption = None
    hash: HashOption = None
    minify: bool = False

    def __post_init__(self):
        if self.script_loading not in SCRIPT_LOADING_MODES:
            raise ValueError(
                f"{self.filename}: script_loading must be one of {', '.join(SCRIPT_LOADING_MODES)}, "
                f"got {self.script_loading!r}"
            )
        # Fails early on unsupported shapes.
        InlinePolicy.from_option(self.inline)
        HashPolicy.from_option(self.hash, "")

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "PageConfig":
        if not isinstance(raw, Mapping):
            raise ValueError(f"page definitions must be mappings, got {raw!r}")

        unknown = set(raw) - PAGE_KEYS
        if unknown:
            raise ValueError(f"unknown page option(s): {', '.join(sorted(unknown))}")

        filename = raw.get("filename")
        if not filename or not isinstance(filename, str):
            raise ValueError("every page needs a 'filename'")

        entry_points = raw.get("entry_points") or []
        if isinstance(entry_points, str) or not isinstance(entry_points, list):
            raise ValueError(f"{filename}: entry_points must be a list")

        define: Dict[str, str] = {str(k): str(v) for k, v in (raw.get("define") or {}).items()}

        kwargs: Dict[str, Any] = {
            "filename": filename,
            "entry_points": tuple(str(e) for e in entry_points),
            "define": define,
            "extra_scripts": tuple(ExtraScript.from_option(s) for s in raw.get("extra_scripts") or []),
        }
        for key in ("title", "html_template", "favicon", "script_loading", "inline", "hash"):
            if raw.get(key) is not None:
                kwargs[key] = raw[key]
        for key in ("find_related_css_files", "find_related_output_files", "minify"):
            if key in raw:
                kwargs[key] = bool(raw[key])
        return cls(**kwargs)

    @property
    def inline_policy(self) -> InlinePolicy:
        return InlinePolicy.from_option(self.inline)


def _attr_value(value: Any) -> str:
    # YAML booleans are written the way the DOM stringifies them.
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _ext_without_dot(path: str) -> str:
    return posixpath.splitext(path)[1].lstrip(".")

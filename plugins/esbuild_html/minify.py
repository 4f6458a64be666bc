"""
Minifiers for inlined assets and generated pages (the `minify` page option).
"""

from typing import Callable, Dict

import csscompressor
import htmlmin
import jsmin
from packaging import version

# Minifier dispatch table for inlined JS/CSS. HTML is handled via `htmlmin2` package.
MINIFIERS: Dict[str, Callable[[str], str]] = {
    ".js": lambda data: jsmin.jsmin(data, quote_chars="'\"`"),
    ".css": csscompressor.compress,
}

# Compatibility: csscompressor<=0.9.5. Preserve whitespace in url() to avoid breaking SVG data URIs.
if version.parse(csscompressor.__version__) <= version.parse("0.9.5"):
    # See https://github.com/sprymix/csscompressor/issues/9#issuecomment-1024417374
    _preserve_call_tokens_original = csscompressor._preserve_call_tokens
    _url_re = csscompressor._url_re

    def _preserve_call_tokens_keep_url_ws(*args, **kwargs):
        if _url_re == args[1]:
            kwargs["remove_ws"] = False
        return _preserve_call_tokens_original(*args, **kwargs)

    csscompressor._preserve_call_tokens = _preserve_call_tokens_keep_url_ws


def minify_asset(data: str, extension: str) -> str:
    """Minify inlined file contents; unknown extensions are returned unchanged."""
    minify_func = MINIFIERS.get(extension)
    if minify_func is None:
        return data
    return minify_func(data)


def minify_html(markup: str) -> str:
    # Comments and boolean attributes are kept as written.
    return htmlmin.minify(
        markup,
        remove_comments=False,
        remove_empty_space=False,
        reduce_boolean_attributes=False,
        remove_optional_attribute_quotes=False,
        keep_pre=False,
    )

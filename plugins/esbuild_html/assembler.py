import logging
import os
import shutil
import time
from pathlib import Path
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup, Doctype
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter
from jinja2 import Environment, TemplateError
from mkdocs.exceptions import PluginError

from plugins.esbuild_html.config import HashPolicy, PageConfig
from plugins.esbuild_html.entrypoints import collect_page_assets
from plugins.esbuild_html.injector import AssetInjector
from plugins.esbuild_html.manifest import BuildManifest, OutputRecord
from plugins.esbuild_html.minify import minify_html
from plugins.esbuild_html.paths import posix_join, public_path_join

log = logging.getLogger("mkdocs.plugins.esbuild_html")

DEFAULT_HTML_TEMPLATE = '<!DOCTYPE html><html><head><meta charset="utf-8"/></head><body></body></html>'


class InsertionOrderFormatter(HTMLFormatter):
    """Minimal HTML formatter that writes attributes in the order they were set."""

    def attributes(self, tag):
        if not tag.attrs:
            return []
        return list(tag.attrs.items())


HTML_FORMATTER = InsertionOrderFormatter(entity_substitution=EntitySubstitution.substitute_xml)


class DocumentAssembler:
    """Builds one HTML file per configured page from the bundler's outputs.

    Every page goes through the same steps, in order: template, parse, title,
    favicon, extra scripts and assets, serialize, write.
    """

    def __init__(
        self,
        outdir: str,
        public_path: Optional[str] = None,
        entry_names: Optional[str] = None,
        working_dir: Optional[Path] = None,
        log_info: bool = False,
    ):
        if not outdir:
            raise PluginError("[esbuild_html] outdir must be set")
        self.outdir = outdir
        self.public_path = public_path or None
        self.entry_names = entry_names or None
        self.working_dir = Path(working_dir) if working_dir else Path.cwd()
        self.log_info = log_info
        self.injector = AssetInjector(outdir, self.public_path, self.working_dir, log_info)
        # Only `{{ dotted.path }}` interpolation is recognized. Block and comment
        # delimiters contain NUL, which never occurs in HTML text.
        self._jinja = Environment(
            autoescape=False,
            keep_trailing_newline=True,
            block_start_string="\x00{%",
            block_end_string="%}\x00",
            comment_start_string="\x00{#",
            comment_end_string="#}\x00",
        )

    def _info(self, msg: str) -> None:
        if self.log_info:
            log.info(msg)

    # -------------------------------
    # Per-page steps
    # -------------------------------

    def render_template(self, page: PageConfig) -> str:
        """Render the page template with `define` as the only context."""
        template = page.html_template or ""
        if template:
            template_path = self.working_dir / template
            try:
                is_file = template_path.is_file()
            except (OSError, ValueError):
                # Literal markup is not always a valid path (too long, NUL bytes).
                is_file = False
            if is_file:
                template = template_path.read_text(encoding="utf8")

        try:
            return self._jinja.from_string(template or DEFAULT_HTML_TEMPLATE).render(define=page.define)
        except TemplateError as e:
            raise PluginError(f"[esbuild_html] {page.filename}: failed to render template: {e}") from e

    @staticmethod
    def parse(markup: str) -> BeautifulSoup:
        """Parse markup, creating `html`, `head` and `body` when the template omits them."""
        soup = BeautifulSoup(markup, "html.parser")

        html = soup.find("html")
        if html is None:
            html = soup.new_tag("html")
            for child in [c for c in soup.contents if not isinstance(c, Doctype)]:
                html.append(child.extract())
            soup.append(html)

        if soup.head is None:
            html.insert(0, soup.new_tag("head"))

        if soup.body is None:
            body = soup.new_tag("body")
            for child in [c for c in html.contents if c is not soup.head]:
                body.append(child.extract())
            html.append(body)

        return soup

    @staticmethod
    def set_title(soup: BeautifulSoup, title: str) -> None:
        if soup.title is None:
            soup.head.append(soup.new_tag("title"))
        soup.title.string = title

    def add_favicon(self, soup: BeautifulSoup, favicon: str) -> None:
        source = self.working_dir / favicon
        if not source.is_file():
            raise PluginError(f"[esbuild_html] favicon '{favicon}' does not exist")

        filename = f"favicon{source.suffix}"
        target_dir = self.working_dir / self.outdir
        target_dir.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, target_dir / filename)

        href = f"/{filename}"
        if self.public_path:
            href = public_path_join(self.public_path, filename)

        tag = soup.new_tag("link")
        tag["rel"] = "icon"
        tag["href"] = href
        soup.head.append(tag)

    def assemble(self, page: PageConfig, assets: Iterable[OutputRecord], hash_policy: Optional[HashPolicy] = None) -> str:
        """Return the final markup of a page referencing `assets`."""
        soup = self.parse(self.render_template(page))

        if page.title:
            self.set_title(soup, page.title)

        if page.favicon:
            self.add_favicon(soup, page.favicon)

        self.injector.inject(soup, assets, page, hash_policy)

        markup = soup.decode(formatter=HTML_FORMATTER)
        if page.minify:
            markup = minify_html(markup)
        return markup

    def write(self, page: PageConfig, markup: str) -> Path:
        out = posix_join(self.outdir, page.filename)
        out_path = self.working_dir / out
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(markup, encoding="utf8")
        self._info(f"  {out} - {out_path.stat().st_size}")
        return out_path

    # -------------------------------
    # Whole run
    # -------------------------------

    def build(self, pages: Iterable[PageConfig], manifest: BuildManifest) -> List[Path]:
        """Assemble and write every page, sequentially and in configuration order."""
        start_time = time.monotonic()
        # One token per run: `hash: true` gives every asset of this build the same query string.
        build_token = str(time.time_ns())

        written: List[Path] = []
        for page in pages:
            assets = collect_page_assets(page, manifest, self.entry_names)
            hash_policy = HashPolicy.from_option(page.hash, build_token)
            markup = self.assemble(page, assets, hash_policy)
            written.append(self.write(page, markup))

        self._info(f"  HTML Plugin Done in {int((time.monotonic() - start_time) * 1000)}ms")
        return written


def relative_outdir(outdir: str, working_dir: Path) -> str:
    """Express an absolute `outdir` relative to `working_dir`, as esbuild does in metafile paths."""
    if os.path.isabs(outdir):
        return os.path.relpath(outdir, working_dir).replace(os.sep, "/")
    return outdir

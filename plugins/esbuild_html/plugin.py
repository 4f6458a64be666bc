"""
An MkDocs plugin that writes HTML pages for the outputs of an esbuild build.

esbuild runs outside of MkDocs with `--metafile` enabled. After the site is
built, the plugin reads that metafile, finds the outputs that belong to every
configured page and writes an HTML document referencing them.
"""

import json
import logging
from pathlib import Path
from typing import List

from mkdocs.config import config_options as c
from mkdocs.config.defaults import MkDocsConfig
from mkdocs.exceptions import PluginError
from mkdocs.plugins import BasePlugin

from plugins.esbuild_html.assembler import DocumentAssembler, relative_outdir
from plugins.esbuild_html.config import PageConfig
from plugins.esbuild_html.manifest import BuildManifest

log = logging.getLogger("mkdocs.plugins.esbuild_html")

# esbuild log levels that print informational output.
VERBOSE_LOG_LEVELS = ("info", "debug", "verbose")


class EsbuildHtmlPlugin(BasePlugin):
    """MkDocs plugin generating HTML files for esbuild entry points.

    Configuration options mirror the esbuild build options the plugin depends on:
    - metafile (str): Path of the metafile written by esbuild. Required.
    - outdir (str): esbuild `outdir`. Required; pages are written below it.
    - public_path (str): esbuild `publicPath`, used to rewrite asset URLs.
    - entry_names (str): esbuild `entryNames`, e.g. `[dir]/[name]-[hash]`.
    - working_dir (str): esbuild `absWorkingDir`. Defaults to the directory of mkdocs.yml.
    - log_level (str): esbuild `logLevel`; `info` and `debug` print per-page output.
    - files (list): Page definitions, see `PageConfig`.
    """

    config_scheme = (
        ('metafile',    c.Type(str, default="")),
        ('outdir',      c.Type(str, default="")),
        ('public_path', c.Type(str, default="")),
        ('entry_names', c.Type(str, default="")),
        ('working_dir', c.Type(str, default="")),
        ('log_level',   c.Type(str, default="warning")),
        ('files',       c.Type(list, default=[])),
    )

    def __init__(self):
        super().__init__()
        self.pages: List[PageConfig] = []
        self.working_dir: Path = Path.cwd()

    def _log_info(self) -> bool:
        return self.config.get("log_level", "") in VERBOSE_LOG_LEVELS

    def on_config(self, config: MkDocsConfig, **kwargs) -> MkDocsConfig:
        """Validate the esbuild options and parse page definitions."""
        if not self.config.get("metafile"):
            raise PluginError("[esbuild_html] metafile is not enabled")
        if not self.config.get("outdir"):
            raise PluginError("[esbuild_html] outdir must be set")

        working_dir = self.config.get("working_dir")
        if working_dir:
            self.working_dir = Path(working_dir)
        elif config.get("config_file_path"):
            self.working_dir = Path(config["config_file_path"]).resolve().parent

        try:
            self.pages = [PageConfig.from_dict(raw) for raw in self.config.get("files") or []]
        except ValueError as e:
            raise PluginError(f"[esbuild_html] invalid page configuration: {e}") from e

        if not self.pages:
            log.warning("[esbuild_html] no pages configured under 'files'")
        return config

    def load_manifest(self) -> BuildManifest:
        metafile = self.working_dir / self.config["metafile"]
        if not metafile.is_file():
            raise PluginError(f"[esbuild_html] metafile '{metafile}' not found, was esbuild run with --metafile?")
        try:
            return BuildManifest.load(metafile)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise PluginError(f"[esbuild_html] failed to parse metafile '{metafile}': {e}") from e

    def on_post_build(self, config: MkDocsConfig, **kwargs) -> None:
        manifest = self.load_manifest()
        assembler = DocumentAssembler(
            outdir=relative_outdir(self.config["outdir"], self.working_dir),
            public_path=self.config.get("public_path"),
            entry_names=self.config.get("entry_names"),
            working_dir=self.working_dir,
            log_info=self._log_info(),
        )
        assembler.build(self.pages, manifest)

import logging
import os
import time
from pathlib import Path
from typing import Iterable, Optional

from bs4 import BeautifulSoup

from plugins.esbuild_html.config import HashPolicy, PageConfig
from plugins.esbuild_html.manifest import OutputRecord
from plugins.esbuild_html.minify import minify_asset
from plugins.esbuild_html.paths import posix_join, public_path_join, relative_path

log = logging.getLogger("mkdocs.plugins.esbuild_html")


class AssetInjector:
    """Adds script and stylesheet elements for resolved outputs to a parsed page.

    `outdir` and output paths are relative to `working_dir`, exactly as esbuild
    records them in the metafile.
    """

    def __init__(
        self,
        outdir: str,
        public_path: Optional[str] = None,
        working_dir: Optional[Path] = None,
        log_info: bool = False,
        build_token: Optional[str] = None,
    ):
        self.outdir = outdir
        self.public_path = public_path or None
        self.working_dir = Path(working_dir) if working_dir else Path.cwd()
        self.log_info = log_info
        # Seed for `hash: true`, shared by every asset injected by this instance.
        self.build_token = build_token or str(time.time_ns())

    def target_path(self, asset: OutputRecord, page: PageConfig, hash_policy: HashPolicy) -> str:
        if self.public_path:
            target = public_path_join(self.public_path, relative_path(self.outdir, asset.path))
        else:
            # Relative to the page itself, so nested pages still resolve.
            page_dir = os.path.dirname(posix_join(self.outdir, page.filename))
            target = relative_path(page_dir, asset.path)
        return hash_policy.apply(target)

    def read_asset(self, asset: OutputRecord, page: PageConfig) -> str:
        data = (self.working_dir / asset.path).read_text(encoding="utf8")
        if page.minify:
            data = minify_asset(data, asset.extension)
        return data

    def inject_extra_scripts(self, soup: BeautifulSoup, page: PageConfig) -> None:
        for script in page.extra_scripts:
            tag = soup.new_tag("script")
            tag["src"] = script.src
            for key, value in script.attrs.items():
                tag[key] = value
            soup.body.append(tag)

    def inject(
        self,
        soup: BeautifulSoup,
        assets: Iterable[OutputRecord],
        page: PageConfig,
        hash_policy: Optional[HashPolicy] = None,
    ) -> None:
        """Append extra scripts, then one element per asset, in order."""
        if hash_policy is None:
            hash_policy = HashPolicy.from_option(page.hash, self.build_token)
        inline_policy = page.inline_policy

        self.inject_extra_scripts(soup, page)

        for asset in assets:
            target = self.target_path(asset, page, hash_policy)
            inline = inline_policy.applies(asset.path)

            if asset.extension == ".js":
                tag = soup.new_tag("script")
                if inline:
                    tag.string = self.read_asset(asset, page)
                else:
                    tag["src"] = target

                if page.script_loading == "module":
                    tag["type"] = "module"
                elif page.script_loading == "defer" and not inline:
                    tag["defer"] = ""

                soup.body.append(tag)
            elif asset.extension == ".css":
                if inline:
                    tag = soup.new_tag("style")
                    tag.string = self.read_asset(asset, page)
                else:
                    tag = soup.new_tag("link")
                    tag["rel"] = "stylesheet"
                    tag["href"] = target
                soup.head.append(tag)
            elif self.log_info:
                log.info(f"[esbuild_html] found file {target}, but it was neither .js nor .css")

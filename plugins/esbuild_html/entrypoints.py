import logging
from typing import Dict, List, Optional

from plugins.esbuild_html.config import PageConfig
from plugins.esbuild_html.manifest import BuildManifest, OutputRecord
from plugins.esbuild_html.related import find_related_outputs

log = logging.getLogger("mkdocs.plugins.esbuild_html")


def resolve_entrypoints(page: PageConfig, manifest: BuildManifest) -> List[OutputRecord]:
    """Return the main outputs of the page's entry points.

    Results follow manifest order, not the order of `page.entry_points`.
    Entry points without a matching output are reported and skipped.
    """
    wanted = set(page.entry_points)
    matched = [record for record in manifest if record.entry_point and record.entry_point in wanted]

    found = {record.entry_point for record in matched}
    for entry_point in dict.fromkeys(page.entry_points):
        if entry_point not in found:
            log.warning(f"[esbuild_html] {page.filename}: found no output for entry point '{entry_point}'")

    return matched


def collect_page_assets(
    page: PageConfig, manifest: BuildManifest, entry_names: Optional[str] = None
) -> List[OutputRecord]:
    """Return every output the page references, deduplicated by path.

    For each entry, in resolution order: the entry itself, its css bundle
    (when `find_related_css_files`), then the name-related outputs (when
    `find_related_output_files`). The first occurrence of a path wins.
    """
    assets: Dict[str, OutputRecord] = {}

    def add(record: OutputRecord) -> None:
        assets.setdefault(record.path, record)

    for entry in resolve_entrypoints(page, manifest):
        add(entry)
        if page.find_related_css_files and entry.css_bundle:
            add(manifest.get(entry.css_bundle) or OutputRecord(path=entry.css_bundle))
        if page.find_related_output_files:
            for record in find_related_outputs(entry, manifest, entry_names):
                add(record)

    return list(assets.values())

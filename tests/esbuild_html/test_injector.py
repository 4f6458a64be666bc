"""
Tests for injecting resolved outputs into a parsed page.
"""

import hashlib
import logging

from bs4 import BeautifulSoup

from plugins.esbuild_html.config import ExtraScript, HashPolicy, PageConfig
from plugins.esbuild_html.injector import AssetInjector
from plugins.esbuild_html.manifest import OutputRecord

SKELETON = '<!DOCTYPE html><html><head><meta charset="utf-8"/></head><body></body></html>'


def inject(assets, page, injector=None, hash_policy=None):
    soup = BeautifulSoup(SKELETON, "html.parser")
    injector = injector or AssetInjector("out")
    injector.inject(soup, [OutputRecord(path=p) for p in assets], page, hash_policy)
    return soup


def page(**kwargs):
    kwargs.setdefault("filename", "index.html")
    kwargs.setdefault("entry_points", ("src/index.ts",))
    return PageConfig(**kwargs)


class TestScriptLoading:
    def test_defer_by_default(self):
        soup = inject(["out/index.js"], page())
        script = soup.body.find("script")
        assert script["src"] == "index.js"
        assert script.has_attr("defer")
        assert not script.has_attr("type")

    def test_defer(self):
        script = inject(["out/index.js"], page(script_loading="defer")).body.find("script")
        assert script.has_attr("defer")
        assert script["src"] == "index.js"

    def test_module(self):
        script = inject(["out/index.js"], page(script_loading="module")).body.find("script")
        assert script["type"] == "module"
        assert not script.has_attr("defer")

    def test_blocking(self):
        script = inject(["out/index.js"], page(script_loading="blocking")).body.find("script")
        assert not script.has_attr("defer")
        assert not script.has_attr("type")
        assert str(script) == '<script src="index.js"></script>'


class TestTargetPath:
    def test_relative_to_nested_page(self):
        script = inject(["out/index.js"], page(filename="sub/page.html")).body.find("script")
        assert script["src"] == "../index.js"

    def test_public_path(self):
        injector = AssetInjector("out", public_path="https://cdn.example.com/")
        soup = inject(["out/js/index.js"], page(filename="sub/page.html"), injector)
        assert soup.body.find("script")["src"] == "https://cdn.example.com/js/index.js"

    def test_hash_query(self):
        policy = HashPolicy.from_option("v1", "ignored")
        soup = inject(["out/index.js", "out/index.css"], page(), hash_policy=policy)
        digest = hashlib.md5(b"v1").hexdigest()
        assert soup.body.find("script")["src"] == f"index.js?{digest}"
        assert soup.head.find("link")["href"] == f"index.css?{digest}"

    def test_page_hash_without_policy(self):
        soup = inject(["out/index.js"], page(hash="v1"))
        digest = hashlib.md5(b"v1").hexdigest()
        assert soup.body.find("script")["src"] == f"index.js?{digest}"

    def test_page_hash_true_uses_build_token(self):
        injector = AssetInjector("out", build_token="run-1")
        soup = inject(["out/index.js", "out/index.css"], page(hash=True), injector)
        digest = hashlib.md5(b"run-1").hexdigest()
        assert soup.body.find("script")["src"] == f"index.js?{digest}"
        assert soup.head.find("link")["href"] == f"index.css?{digest}"


class TestInlining:
    def test_inline_js_has_no_src(self, tmp_path):
        (tmp_path / "out").mkdir()
        (tmp_path / "out" / "index.js").write_text("console.log('hi');", encoding="utf8")
        injector = AssetInjector("out", working_dir=tmp_path)

        for mode in ("defer", "blocking", "module"):
            script = inject(["out/index.js"], page(inline=True, script_loading=mode), injector).body.find("script")
            assert not script.has_attr("src")
            assert script.string == "console.log('hi');"
            assert not script.has_attr("defer")

    def test_inline_module_keeps_type(self, tmp_path):
        (tmp_path / "out").mkdir()
        (tmp_path / "out" / "index.js").write_text("", encoding="utf8")
        injector = AssetInjector("out", working_dir=tmp_path)

        script = inject(["out/index.js"], page(inline=True, script_loading="module"), injector).body.find("script")
        assert str(script) == '<script type="module"></script>'

    def test_inline_css_only(self, tmp_path):
        (tmp_path / "out").mkdir()
        (tmp_path / "out" / "index.css").write_text("body { color: red; }", encoding="utf8")
        injector = AssetInjector("out", working_dir=tmp_path)

        soup = inject(["out/index.js", "out/index.css"], page(inline={"css": True}), injector)

        assert soup.head.find("style").string == "body { color: red; }"
        assert soup.head.find("link") is None
        assert soup.body.find("script")["src"] == "index.js"

    def test_inline_minified(self, tmp_path):
        (tmp_path / "out").mkdir()
        (tmp_path / "out" / "index.css").write_text(".test {\n    color: red;\n}", encoding="utf8")
        injector = AssetInjector("out", working_dir=tmp_path)

        soup = inject(["out/index.css"], page(inline=True, minify=True), injector)

        style = soup.head.find("style").string
        assert ".test{" in style and "color:red" in style


class TestDispatch:
    def test_stylesheet_link_in_head(self):
        soup = inject(["out/index.css"], page())
        link = soup.head.find("link")
        assert link["href"] == "index.css"
        assert link["rel"] == "stylesheet" or link["rel"] == ["stylesheet"]
        assert soup.body.find("link") is None

    def test_other_extensions_are_skipped(self, caplog):
        injector = AssetInjector("out", log_info=True)
        with caplog.at_level(logging.INFO, logger="mkdocs.plugins.esbuild_html"):
            soup = inject(["out/index.js.map", "out/logo.png"], page(), injector)

        assert soup.body.find_all() == []
        assert "logo.png" in caplog.text
        assert "index.js.map" in caplog.text

    def test_other_extensions_silent_without_log_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="mkdocs.plugins.esbuild_html"):
            inject(["out/logo.png"], page())
        assert "logo.png" not in caplog.text

    def test_extra_scripts_come_first(self):
        extra = (
            ExtraScript(src="https://example.com/what", attrs={"type": "module"}),
            ExtraScript(src="vendor.js"),
        )
        soup = inject(["out/index.js"], page(extra_scripts=extra))

        assert [list(s.attrs.items()) for s in soup.body.find_all("script")] == [
            [("src", "https://example.com/what"), ("type", "module")],
            [("src", "vendor.js")],
            [("src", "index.js"), ("defer", "")],
        ]

    def test_preserves_asset_order(self):
        soup = inject(["out/a.js", "out/a.css", "out/b.js", "out/b.css"], page())
        assert [s["src"] for s in soup.body.find_all("script")] == ["a.js", "b.js"]
        assert [link["href"] for link in soup.head.find_all("link")] == ["a.css", "b.css"]

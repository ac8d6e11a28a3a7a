import asyncio
import json
import shutil

import pytest
import yaml

from conftest import FAILING_COMPILER, create_project, page_message
from pagestream.assets import AssetStager
from pagestream.build import (
    DEFAULT_CONFIG,
    BuildPipeline,
    BuildResult,
    BuildStatus,
    build_site,
    load_config,
)
from pagestream.errors import AssetStagingError, CompileError, ProtocolViolation

MANIFEST = {"name": "Test Site", "short_name": "Test", "icons": [], "background_color": "#fff"}


def _initial_data(files=()):
    return {
        "tag": "InitialData",
        "args": [{"manifest": MANIFEST, "filesToGenerate": list(files)}],
    }


def test_load_config_defaults_and_overrides(tmp_path):
    assert load_config(tmp_path) == DEFAULT_CONFIG
    (tmp_path / "pagestream.yaml").write_text("output_dir: public\nminifier: null\n", encoding="utf-8")
    config = load_config(tmp_path)
    assert config["output_dir"] == "public"
    assert config["minifier"] is None
    assert config["compiler"] == "elm-optimize-level-2"


def test_load_config_ignores_non_mapping(tmp_path):
    (tmp_path / "pagestream.yaml").write_text("- just\n- a list\n", encoding="utf-8")
    assert load_config(tmp_path) == DEFAULT_CONFIG


def test_build_result_lifecycle(tmp_path):
    result = BuildResult(output_dir=tmp_path)
    assert result.status is BuildStatus.SUCCESS
    assert result.exit_code == 0
    result.record_error("first")
    result.record_error("second")
    assert result.status is BuildStatus.FAILURE
    assert result.exit_code == 1


def test_asset_stager_copies_everything(tmp_path):
    project = create_project(tmp_path)
    output = project / "dist"
    asyncio.run(AssetStager(project, output, load_config(project)).run())

    assert "Elm.Main.init" in (output / "elm-pages.js").read_text(encoding="utf-8")
    assert (output / "index.js").read_text(encoding="utf-8").startswith("export default")
    assert (output / "style.css").read_text(encoding="utf-8") == "body { margin: 0; }\n"
    assert (output / "robots.txt").exists()
    assert (output / "fonts" / "body.woff").read_bytes() == b"\x00font"
    assert (output / "images" / "logo.png").read_bytes() == b"\x89PNG\r\n"
    assert (output / "images" / "icons" / "menu.svg").exists()

    # a second run replaces the images tree instead of failing on it
    asyncio.run(AssetStager(project, output, load_config(project)).run())
    assert (output / "images" / "icons" / "menu.svg").exists()


def test_asset_stager_requires_client_files(tmp_path):
    project = create_project(tmp_path)
    (project / "beta-style.css").unlink()
    with pytest.raises(AssetStagingError) as excinfo:
        asyncio.run(AssetStager(project, project / "dist", load_config(project)).run())
    assert excinfo.value.path == project / "beta-style.css"


def test_asset_stager_without_optional_folders(tmp_path):
    project = create_project(tmp_path)
    shutil.rmtree(project / "static")
    shutil.rmtree(project / "images")
    output = project / "dist"
    asyncio.run(AssetStager(project, output, load_config(project)).run())
    assert (output / "images").is_dir()
    assert list((output / "images").iterdir()) == []


def test_full_build(tmp_path, monkeypatch):
    monkeypatch.setenv("PAGESTREAM_TEST_TOKEN", "abc123")
    project = create_project(
        tmp_path,
        messages=[
            {"command": "log", "value": "Starting"},
            _initial_data([{"path": "feed.xml", "content": "<rss/>"}]),
            page_message("", html="<h1>Home</h1>", title="Home"),
            page_message("blog/post-1", html="<p>hi</p>", content_json={"a": 1}, title="Post"),
        ],
    )

    result = build_site(project)

    dist = project / "dist"
    assert result.status is BuildStatus.SUCCESS
    assert result.routes == ["", "blog/post-1"]
    assert json.loads((dist / "manifest.json").read_text(encoding="utf-8")) == MANIFEST
    assert (dist / "feed.xml").read_text(encoding="utf-8") == "<rss/>"
    assert "<h1>Home</h1>" in (dist / "index.html").read_text(encoding="utf-8")
    post = (dist / "blog" / "post-1" / "index.html").read_text(encoding="utf-8")
    assert '<base href="../../">' in post
    assert "<title>Post</title>" in post
    assert (dist / "blog" / "post-1" / "content.json").read_text(encoding="utf-8") == (
        '{"body":"<p>hi</p>","staticData":{"a":1}}'
    )

    bundle = (dist / "elm.js").read_text(encoding="utf-8")
    assert "}(scope));" in bundle
    assert "export" in bundle
    support = (project / "elm-stuff" / "elm-pages" / "elm.js").read_text(encoding="utf-8")
    assert "return x;" in support
    assert "../../src/Main.elm" in support
    assert (project / "elm-stuff" / "elm-pages" / "renderer-host.cjs").exists()

    for name in ("elm-pages.js", "index.js", "style.css", "robots.txt", "images/logo.png"):
        assert (dist / name).exists(), name

    flags = json.loads((project / "flags.json").read_text(encoding="utf-8"))
    assert flags["mode"] == "elm-to-html-beta"
    assert flags["staticHttpCache"] == {}
    assert flags["secrets"]["PAGESTREAM_TEST_TOKEN"] == "abc123"


def test_errors_then_pages_still_written(tmp_path):
    project = create_project(
        tmp_path,
        messages=[
            _initial_data(),
            {"tag": "Errors", "args": ["Could not render /broken"]},
            page_message("after-error-1"),
            page_message("after-error-2/index"),
        ],
    )
    result = build_site(project)
    dist = project / "dist"
    assert (dist / "after-error-1" / "index.html").exists()
    assert (dist / "after-error-2" / "index.html").exists()
    assert (dist / "manifest.json").exists()
    assert result.errors == ["Could not render /broken"]
    assert result.exit_code == 1


def test_compile_failure_prevents_renderer(tmp_path):
    project = create_project(tmp_path, messages=[page_message("")], compiler=FAILING_COMPILER)
    pipeline = BuildPipeline(project)
    called = []

    async def fake_run_program(host_script):
        called.append(True)

    pipeline.run_program = fake_run_program
    with pytest.raises(CompileError):
        asyncio.run(pipeline.run())
    assert called == []
    assert not (project / "flags.json").exists()
    assert not (project / "dist" / "index.html").exists()


def test_content_compile_failure_cancels_before_render(tmp_path):
    project = create_project(tmp_path, messages=[page_message("")])
    pipeline = BuildPipeline(project)
    original_invoke = pipeline.compiler.invoke

    async def invoke(entrypoint, output_path, cwd=None):
        if cwd is None:
            raise CompileError("content program failed")
        return await original_invoke(entrypoint, output_path, cwd=cwd)

    pipeline.compiler.invoke = invoke
    with pytest.raises(CompileError, match="content program failed"):
        asyncio.run(pipeline.run())
    assert not (project / "flags.json").exists()


def test_protocol_violation_aborts_build(tmp_path):
    project = create_project(tmp_path, messages=[{"tag": "Bogus", "args": []}])
    with pytest.raises(ProtocolViolation):
        build_site(project)


def test_renderer_crash_fails_build(tmp_path):
    project = create_project(tmp_path, messages=[page_message("")])
    config = yaml.safe_load((project / "pagestream.yaml").read_text(encoding="utf-8"))
    crash = tmp_path / "tools" / "crash.py"
    crash.write_text("import sys\nsys.stdin.read()\nsys.exit(5)\n", encoding="utf-8")
    config["renderer"] = [config["renderer"][0], str(crash)]
    (project / "pagestream.yaml").write_text(yaml.safe_dump(config), encoding="utf-8")

    result = build_site(project)
    assert result.exit_code == 1
    assert result.errors == ["Renderer exited with status 5"]


def test_output_dir_override(tmp_path):
    project = create_project(tmp_path, messages=[page_message("about")])
    target = tmp_path / "elsewhere"
    result = build_site(project, output_dir_override=target)
    assert result.output_dir == target
    assert (target / "about" / "index.html").exists()
    assert (target / "elm.js").exists()

import json
import sys
from pathlib import Path

import pytest
import yaml

FAKE_COMPILER = '''
import sys
from pathlib import Path

args = sys.argv[1:]
entry = args[0]
output = Path(args[args.index("--output") + 1])
output.parent.mkdir(parents=True, exist_ok=True)
output.write_text(
    "(function(scope){'use strict';\\n"
    "var $elm$json$Json$Encode$string = function (x) { return x; };\\n"
    "var encode = function (x) { return $elm$json$Json$Encode$string('REPLACE_ME_WITH_JSON_STRINGIFY'); };\\n"
    "scope['Elm'] = {Main: {entry: '" + entry + "'}};\\n"
    "}(this));\\n",
    encoding="utf-8",
)
'''

FAILING_COMPILER = '''
import sys

sys.stderr.write("compile error\\n")
sys.exit(1)
'''

SILENT_COMPILER = '''
import sys

sys.exit(0)
'''

FAKE_RENDERER = '''
import json
import sys
from pathlib import Path

flags = json.loads(sys.stdin.read() or "{}")
Path("flags.json").write_text(json.dumps(flags), encoding="utf-8")
Path("renderer-args.json").write_text(json.dumps(sys.argv[1:]), encoding="utf-8")
for message in json.loads(Path("messages.json").read_text(encoding="utf-8")):
    sys.stdout.write(json.dumps(message) + "\\n")
    sys.stdout.write("\\n")
sys.stdout.flush()
'''


def write_script(directory: Path, name: str, source: str) -> list[str]:
    """Write a Python script and return the command that runs it."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(source, encoding="utf-8")
    return [sys.executable, str(path)]


def page_message(route, html="<p>hi</p>", title="Page", content_json=None, head=None):
    return {
        "tag": "PageProgress",
        "args": [
            {
                "route": route,
                "html": html,
                "head": head or [],
                "contentJson": content_json if content_json is not None else {},
                "title": title,
            }
        ],
    }


def create_project(tmp_path: Path, messages=None, compiler=FAKE_COMPILER) -> Path:
    project = tmp_path / "site"
    (project / "src").mkdir(parents=True)
    (project / "static" / "fonts").mkdir(parents=True)
    (project / "images" / "icons").mkdir(parents=True)

    (project / "src" / "Main.elm").write_text("module Main exposing (main)\n", encoding="utf-8")
    (project / "static" / "robots.txt").write_text("User-agent: *\n", encoding="utf-8")
    (project / "static" / "fonts" / "body.woff").write_bytes(b"\x00font")
    (project / "images" / "logo.png").write_bytes(b"\x89PNG\r\n")
    (project / "images" / "icons" / "menu.svg").write_text("<svg/>", encoding="utf-8")
    (project / "beta-index.js").write_text("export default function () {}\n", encoding="utf-8")
    (project / "beta-style.css").write_text("body { margin: 0; }\n", encoding="utf-8")

    tools = tmp_path / "tools"
    config = {
        "compiler": write_script(tools, "compiler.py", compiler),
        "renderer": write_script(tools, "renderer.py", FAKE_RENDERER),
        "minifier": "pagestream-test-missing-minifier",
    }
    (project / "pagestream.yaml").write_text(yaml.safe_dump(config), encoding="utf-8")
    (project / "messages.json").write_text(json.dumps(messages or []), encoding="utf-8")
    return project


@pytest.fixture
def scripts(tmp_path):
    tools = tmp_path / "tools"

    def make(name, source):
        return write_script(tools, name, source)

    return make

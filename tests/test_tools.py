"""Tests for the built-in tools."""

import base64
from typing import List

import httpx
import pytest

from agentcrew.agent.tool_executor import dispatch_tool
from agentcrew.config import settings
from agentcrew.core.event_log import LOG_FILE
from agentcrew.core.workspace import (
    META_DIR,
    Workspace,
)
from agentcrew.tools import (
    OMITTED,
    ToolExecutionError,
    build_tool_registry,
)
from agentcrew.tools.file_tools import (
    FileReaderArgs,
    FileReaderTool,
    FileWriterArgs,
    FileWriterTool,
)
from agentcrew.tools.image_tool import (
    GetImageArgs,
    GetImageTool,
)
from agentcrew.tools.shell_tool import (
    ShellCommandArgs,
    ShellCommandTool,
)
from agentcrew.tools.web_tools import (
    GetHttpContentsArgs,
    GetHttpContentsTool,
    WebSearchArgs,
    WebSearchTool,
    html_to_text,
    parse_search_results,
)

SEARCH_PAGE = """
<html><body><div id="links">
  <div class="result">
    <h2 class="result__title"><a href="https://a.example/">First result</a></h2>
    <a class="result__snippet">About the first page</a>
  </div>
  <div class="result">
    <h2 class="result__title"><a href="https://b.example/">Second result</a></h2>
  </div>
  <div class="result"><span>no link here</span></div>
</div></body></html>
"""


def test_registry_contains_every_builtin_tool(workspace: Workspace) -> None:
    """All tool modules register themselves."""

    registry = build_tool_registry(workspace)
    assert set(registry.names()) >= {
        "FileReaderTool",
        "FileWriterTool",
        "GetImageTool",
        "ShellCommandTool",
        "WebSearchTool",
        "GetHttpContentsTool",
    }
    for entry in registry.catalog():
        assert entry["description"]
        assert entry["args"]["type"] == "object"


def test_file_writer_and_reader(workspace: Workspace) -> None:
    """Written files can be read back; old arguments and results are redacted."""

    writer = FileWriterTool(workspace)
    args = {"artifacts": [{"filename": "docs/req.md", "contents": "# Requirements"}]}
    message = writer.execute(FileWriterArgs.model_validate(args))
    assert "docs/req.md" in message
    assert writer.omit_args(30, args) == {
        "artifacts": [{"filename": "docs/req.md", "contents": OMITTED}]
    }

    reader = FileReaderTool(workspace)
    result = reader.execute(FileReaderArgs(filenames=["docs/req.md", "nope.md"]))
    assert result["docs/req.md"] == "# Requirements"
    assert result["nope.md"].startswith("ERROR")
    assert reader.omit_result(30, result) == {"docs/req.md": OMITTED, "nope.md": OMITTED}

    with pytest.raises(ToolExecutionError):
        reader.execute(FileReaderArgs(filenames=[]))


def test_file_writer_cannot_touch_the_log(workspace: Workspace) -> None:
    """Writing into ``_meta`` fails as a tool error and leaves every file untouched."""

    workspace.save_artifact(LOG_FILE, "entry\n", META_DIR)
    registry = build_tool_registry(workspace)
    args = {
        "FileWriterTool": {
            "artifacts": [
                {"filename": "notes.md", "contents": "fine"},
                {"filename": f"{META_DIR}/{LOG_FILE}", "contents": ""},
            ]
        }
    }

    result = dispatch_tool(registry, "FileWriterTool", args)

    assert result.error is True
    assert META_DIR in result.result
    assert workspace.read_artifact(LOG_FILE, META_DIR) == "entry\n"
    assert not (workspace.project_path / "notes.md").exists()


def test_image_tool(workspace: Workspace) -> None:
    """Images come back as base64; bad paths raise ToolExecutionError."""

    (workspace.project_path / "shot.png").write_bytes(b"\x89PNG\r\n")
    tool = GetImageTool(workspace)

    assert tool.carries_attachment is True
    assert tool.execute(GetImageArgs(file_path="shot.png")) == base64.b64encode(
        b"\x89PNG\r\n"
    ).decode("ascii")
    for bad in ("missing.png", "../outside.png", " "):
        with pytest.raises(ToolExecutionError):
            tool.execute(GetImageArgs(file_path=bad))


def test_shell_command(workspace: Workspace) -> None:
    """Commands run in the project directory and report exit code and output."""

    tool = ShellCommandTool(workspace, timeout=10)
    result = tool.execute(ShellCommandArgs(command="echo hello && pwd && exit 3"))

    assert result["exit_code"] == 3
    assert "hello" in result["stdout"].splitlines()
    assert str(workspace.project_path) in result["stdout"].splitlines()

    old = tool.omit_result(50, {"exit_code": 0, "stdout": "x" * 2000, "stderr": ""})
    assert old["stdout"].endswith("x" * 500)
    assert "truncated" in old["stdout"]


def test_shell_command_timeout(workspace: Workspace) -> None:
    """A command that outlives its timeout is killed and reported."""

    tool = ShellCommandTool(workspace, timeout=0.5)
    with pytest.raises(ToolExecutionError, match="timed out"):
        tool.execute(ShellCommandArgs(command="sleep 5"))


def test_shell_command_in_container(workspace: Workspace) -> None:
    """With a container configured the command goes through ``docker exec``."""

    tool = ShellCommandTool(workspace, container="sandbox")
    assert tool._argv("ls") == [
        "docker",
        "exec",
        "-w",
        "/workspace/demo",
        "sandbox",
        "bash",
        "-lc",
        "ls",
    ]


def test_parse_search_results() -> None:
    """Only results with a title link are kept."""

    assert parse_search_results(SEARCH_PAGE) == [
        {"title": "First result", "snippet": "About the first page", "url": "https://a.example/"},
        {"title": "Second result", "snippet": "", "url": "https://b.example/"},
    ]


def test_web_search(workspace: Workspace) -> None:
    """Queries go to the HTML endpoint with rotating browser headers."""

    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.params["q"] == "nothing":
            return httpx.Response(200, html="<html><div id='links'></div></html>")
        if request.url.params["q"] == "broken":
            return httpx.Response(503, html="busy")
        return httpx.Response(200, html=SEARCH_PAGE)

    tool = WebSearchTool(workspace, transport=httpx.MockTransport(handler), delay=0)

    results = tool.execute(WebSearchArgs(query="python agents"))
    assert [r["url"] for r in results] == ["https://a.example/", "https://b.example/"]
    assert tool.execute(WebSearchArgs(query="nothing")) == "No results were found."
    with pytest.raises(ToolExecutionError):
        tool.execute(WebSearchArgs(query="broken"))

    assert seen[0].url.host == "html.duckduckgo.com"
    assert seen[0].headers["user-agent"] != seen[1].headers["user-agent"]

    assert tool.omit_result(2, results) == results
    assert [r["snippet"] for r in tool.omit_result(5, results)] == [OMITTED, OMITTED]


def test_web_search_pauses_between_requests(workspace: Workspace) -> None:
    """The configured delay is applied through the injected sleep."""

    pauses: List[float] = []
    tool = WebSearchTool(
        workspace,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, html=SEARCH_PAGE)),
        delay=1.0,
        sleep=pauses.append,
    )
    tool.execute(WebSearchArgs(query="x"))
    assert len(pauses) == 1
    assert 3.0 <= pauses[0] <= 6.0


def test_get_http_contents(workspace: Workspace, monkeypatch: pytest.MonkeyPatch) -> None:
    """Pages are reduced to visible text and truncated."""

    page = "<html><head><script>var x=1;</script><style>p{}</style></head>"
    page += "<body><h1>Title</h1><p>Hello   world</p></body></html>"

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/missing":
            return httpx.Response(404, html="not found")
        if request.url.path == "/plain":
            return httpx.Response(200, text="0123456789abcdef")
        return httpx.Response(200, html=page)

    tool = GetHttpContentsTool(workspace, transport=httpx.MockTransport(handler), delay=0)

    assert tool.execute(GetHttpContentsArgs(url="https://site.example/")) == "Title\nHello   world"
    with pytest.raises(ToolExecutionError, match="failed"):
        tool.execute(GetHttpContentsArgs(url="https://site.example/missing"))

    monkeypatch.setattr(settings, "HTTP_MAX_CHARS", 10)
    text = tool.execute(GetHttpContentsArgs(url="https://site.example/plain"))
    assert text.startswith("0123456789\n...(truncated, 6 more characters)")
    assert tool.omit_result(1, text) == OMITTED


def test_html_to_text_drops_scripts() -> None:
    """Script and style contents never reach the agent."""

    assert html_to_text("<p>a</p><script>b()</script><noscript>c</noscript><div>d</div>") == "a\nd"

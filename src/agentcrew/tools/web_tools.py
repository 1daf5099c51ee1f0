"""Tools that reach the web: a DuckDuckGo search and a page fetcher."""

import logging
import random
import time
from typing import (
    Any,
    Callable,
    Dict,
    List,
)

import httpx
from bs4 import BeautifulSoup
from pydantic import (
    BaseModel,
    Field,
)

from agentcrew.config import settings
from agentcrew.core.workspace import Workspace
from agentcrew.tools import (
    OMITTED,
    Tool,
    ToolExecutionError,
    register_tool,
)

logger = logging.getLogger(__name__)

# Rotated between searches; the HTML endpoint throttles clients that look automated
_BROWSER_HEADERS: List[Dict[str, str]] = [
    {
        "User-Agent": (
            "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/125.0.0.0 Safari/537.36"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Referer": "https://www.google.com/",
    },
    {
        "User-Agent": "Mozilla/5.0 (X11; Linux x86_64; rv:126.0) Gecko/20100101 Firefox/126.0",
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
    },
    {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/125.0.0.0 Safari/537.36 Edg/125.0.0.0"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Referer": "https://www.bing.com/",
    },
    {
        "User-Agent": (
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
            "(KHTML, like Gecko) Version/17.5 Safari/605.1.15"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US",
    },
]

_SNIPPETS_KEPT_FOR = 5


class _HttpTool(Tool):
    """Shared httpx plumbing; *transport* and *sleep* are injectable for tests."""

    def __init__(
        self,
        workspace: Workspace,
        transport: httpx.BaseTransport | None = None,
        delay: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(workspace)
        self._transport = transport
        self._delay = settings.WEB_REQUEST_DELAY if delay is None else delay
        self._sleep = sleep

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=settings.HTTP_TIMEOUT, follow_redirects=True, transport=self._transport
        )

    def _pause(self, low: float, high: float) -> None:
        if self._delay > 0:
            self._sleep(random.uniform(low, high) * self._delay)


class WebSearchArgs(BaseModel):
    """Arguments of :class:`WebSearchTool`."""

    query: str = Field(..., description="Search keywords")


@register_tool("WebSearchTool")
class WebSearchTool(_HttpTool):
    """Keyword search through the DuckDuckGo HTML endpoint."""

    description = (
        "Searches the web and returns titles, snippets and URLs of matching pages. "
        "Use GetHttpContentsTool to read a page in detail."
    )
    args_model = WebSearchArgs
    TARGET_URL = "https://html.duckduckgo.com/html/"

    def __init__(self, workspace: Workspace, **kwargs: Any):
        super().__init__(workspace, **kwargs)
        self._header_index = 0

    def _next_headers(self) -> Dict[str, str]:
        headers = _BROWSER_HEADERS[self._header_index]
        self._header_index = (self._header_index + 1) % len(_BROWSER_HEADERS)
        return headers

    def execute(self, args: WebSearchArgs) -> List[Dict[str, str]] | str:
        if not args.query.strip():
            raise ToolExecutionError("'query' is empty.")
        try:
            with self._client() as client:
                resp = client.get(
                    self.TARGET_URL, params={"q": args.query}, headers=self._next_headers()
                )
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise ToolExecutionError(f"Web search failed: {exc}") from exc
        finally:
            self._pause(3.0, 6.0)

        results = parse_search_results(resp.text)
        logger.info("Web search '%s' returned %d results", args.query, len(results))
        if not results:
            return "No results were found."
        return results

    def omit_result(self, turns_elapsed: int, result: Any) -> Any:
        if turns_elapsed < _SNIPPETS_KEPT_FOR or not isinstance(result, list):
            return result
        return [{**item, "snippet": OMITTED} for item in result if isinstance(item, dict)]


def parse_search_results(html: str) -> List[Dict[str, str]]:
    """Extract ``{title, snippet, url}`` items from a DuckDuckGo HTML result page."""
    soup = BeautifulSoup(html, "html.parser")
    results: List[Dict[str, str]] = []
    for element in soup.select("#links .result"):
        link = element.select_one(".result__title a")
        if link is None:
            continue
        title = link.get_text(strip=True)
        url = str(link.get("href") or "")
        snippet_el = element.select_one(".result__snippet")
        snippet = snippet_el.get_text(strip=True) if snippet_el is not None else ""
        if title and url:
            results.append({"title": title, "snippet": snippet, "url": url})
    return results


class GetHttpContentsArgs(BaseModel):
    """Arguments of :class:`GetHttpContentsTool`."""

    url: str = Field(..., description="Address to fetch, e.g. https://example.com")


@register_tool("GetHttpContentsTool")
class GetHttpContentsTool(_HttpTool):
    """Fetch a URL and return its readable text."""

    description = (
        "Fetches a web page and returns its text content (HTML is stripped). "
        "Save anything you need into a file: old page contents are dropped from your history."
    )
    args_model = GetHttpContentsArgs

    def execute(self, args: GetHttpContentsArgs) -> str:
        if not args.url.strip():
            raise ToolExecutionError("'url' is empty.")
        try:
            with self._client() as client:
                resp = client.get(args.url, headers=_BROWSER_HEADERS[0])
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise ToolExecutionError(f"Fetching {args.url} failed: {exc}") from exc
        finally:
            self._pause(1.0, 1.0)

        content_type = resp.headers.get("content-type", "")
        text = html_to_text(resp.text) if "html" in content_type or not content_type else resp.text
        limit = settings.HTTP_MAX_CHARS
        if len(text) > limit:
            text = text[:limit] + f"\n...(truncated, {len(text) - limit} more characters)"
        return text

    def omit_result(self, turns_elapsed: int, result: Any) -> Any:
        return OMITTED


def html_to_text(html: str) -> str:
    """Visible text of an HTML document, one block per line."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    lines = (line.strip() for line in soup.get_text("\n").splitlines())
    return "\n".join(line for line in lines if line)

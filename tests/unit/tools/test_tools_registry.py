"""
Tests for the Docker Hub registry tool.
"""

import httpx
import pytest

from devenv.tools.base import ToolConfig
from devenv.tools.registry import RegistryTool

TAGS_PAYLOAD = {
    "count": 4,
    "results": [
        {"name": "backup-20240103_090000"},
        {"name": "latest-backup"},
        {"name": "backup-20240102_090000"},
        {"name": ""},
    ],
}


def make_handler(requests):
    """Build a transport handler that records requests."""

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path.endswith("/alice/devbox/tags/"):
            return httpx.Response(200, json=TAGS_PAYLOAD)
        if request.url.host == "down.example.com":
            raise httpx.ConnectError("connection refused", request=request)
        if request.url.host == "broken.example.com":
            return httpx.Response(503)
        if request.url.path.endswith("/tags/"):
            return httpx.Response(404, json={"message": "object not found"})
        return httpx.Response(200)

    return handler


class TestRegistryTool:
    """Test registry tool functionality."""

    @pytest.fixture
    def requests(self):
        return []

    @pytest.fixture
    def registry_tool(self, registry_config, requests):
        """Create registry tool backed by a mock transport."""
        return RegistryTool(
            registry_config, transport=httpx.MockTransport(make_handler(requests))
        )

    @pytest.mark.asyncio
    async def test_list_tags(self, registry_tool, requests):
        """Test tags are listed in API order, skipping empty names."""
        await registry_tool.initialize()

        result = await registry_tool.execute(
            "list_tags", {"repository": "alice/devbox"}
        )
        await registry_tool.cleanup()

        assert result.success is True
        assert result.output["tags"] == [
            "backup-20240103_090000",
            "latest-backup",
            "backup-20240102_090000",
        ]
        assert str(requests[0].url).startswith(
            "https://registry.example.com/v2/repositories/alice/devbox/tags/"
        )
        assert requests[0].url.params["page_size"] == "100"

    @pytest.mark.asyncio
    async def test_list_tags_contains_filter(self, registry_tool):
        await registry_tool.initialize()

        result = await registry_tool.execute(
            "list_tags", {"repository": "alice/devbox", "contains": "backup-2024"}
        )
        await registry_tool.cleanup()

        assert result.output["tags"] == [
            "backup-20240103_090000",
            "backup-20240102_090000",
        ]

    @pytest.mark.asyncio
    async def test_list_tags_http_error(self, registry_tool):
        """Test an API error becomes an unsuccessful result."""
        await registry_tool.initialize()

        result = await registry_tool.execute("list_tags", {"repository": "bob/other"})
        await registry_tool.cleanup()

        assert result.success is False
        assert "Unable to fetch Docker Hub tags" in result.error

    @pytest.mark.asyncio
    async def test_list_tags_invalid_repository(self, registry_tool):
        await registry_tool.initialize()

        result = await registry_tool.execute("list_tags", {"repository": "devbox"})
        await registry_tool.cleanup()

        assert result.success is False
        assert "owner/name" in result.error

    @pytest.mark.asyncio
    async def test_probe_url(self, registry_tool, requests):
        """Test reachability reporting for up, failing and unreachable URLs."""
        await registry_tool.initialize()

        up = await registry_tool.execute(
            "probe_url", {"url": "https://pypi.org/simple/"}
        )
        broken = await registry_tool.execute(
            "probe_url", {"url": "https://broken.example.com/"}
        )
        down = await registry_tool.execute(
            "probe_url", {"url": "https://down.example.com/", "method": "get"}
        )
        await registry_tool.cleanup()

        assert up.output["reachable"] is True
        assert requests[0].method == "HEAD"
        assert broken.output["reachable"] is False
        assert broken.output["status_code"] == 503
        assert down.success is True
        assert down.output["reachable"] is False
        assert down.output["status_code"] is None
        assert requests[-1].method == "GET"

    @pytest.mark.asyncio
    async def test_probe_url_rejects_non_http(self, registry_tool):
        await registry_tool.initialize()

        result = await registry_tool.execute("probe_url", {"url": "ftp://example.com"})
        await registry_tool.cleanup()

        assert result.success is False
        assert "Invalid URL" in result.error

    @pytest.mark.asyncio
    async def test_execute_requires_initialization(self, registry_tool):
        result = await registry_tool.execute(
            "list_tags", {"repository": "alice/devbox"}
        )

        assert result.success is False
        assert "not initialized" in result.error

    def test_api_url_default(self):
        tool = RegistryTool(ToolConfig(name="registry"))

        assert tool.api_url == "https://registry.hub.docker.com/v2/repositories"

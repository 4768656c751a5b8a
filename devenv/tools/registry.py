"""
Registry tool for Docker Hub tag listing and URL reachability checks.
"""

from typing import Any, Dict, List, Optional

import httpx

from .base import Tool, ToolConfig, ToolError, ToolSchema, ValidationResult

DEFAULT_API_URL = "https://registry.hub.docker.com/v2/repositories"


class RegistryTool(Tool):
    """
    HTTP tool for the Docker Hub registry API.

    Provides functionality for:
    - Listing the tags of a repository (optionally filtered by substring)
    - Probing whether a URL answers with a successful status
    """

    def __init__(
        self,
        config: ToolConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config)
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    @property
    def api_url(self) -> str:
        return str(self.config.environment.get("api_url", DEFAULT_API_URL)).rstrip("/")

    async def get_schema(self) -> ToolSchema:
        """Return the registry tool schema."""
        return ToolSchema(
            name="registry",
            description="Docker Hub registry API tool",
            version=self.config.version,
            actions={
                "list_tags": {
                    "description": "List tags of a repository",
                    "parameters": {
                        "repository": {"type": "string", "required": True},
                        "page_size": {"type": "integer", "default": 100},
                        "contains": {"type": "string"},
                    },
                },
                "probe_url": {
                    "description": "Check that a URL is reachable",
                    "parameters": {
                        "url": {"type": "string", "required": True},
                        "method": {"type": "string", "default": "HEAD"},
                    },
                },
            },
            required_permissions=["network"],
            dependencies=[],
        )

    async def _create_client(self) -> Any:
        """Create the HTTP client."""
        timeout = float(self.config.environment.get("http_timeout", 10.0))
        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            transport=self._transport,
        )
        return self._http

    async def _create_validator(self) -> Any:
        """Create parameter validator."""

        class RegistryValidator:
            def validate(self, action: str, params: Dict[str, Any]) -> ValidationResult:
                errors = []
                normalized_params = params.copy()

                if action == "list_tags":
                    repository = params.get("repository") or ""
                    if repository.count("/") != 1:
                        errors.append("repository must be in the form 'owner/name'")
                    normalized_params.setdefault("page_size", 100)

                elif action == "probe_url":
                    url = params.get("url") or ""
                    if not url.startswith(("http://", "https://")):
                        errors.append(f"Invalid URL: {url}")
                    method = str(params.get("method", "HEAD")).upper()
                    if method not in ["HEAD", "GET"]:
                        errors.append(f"Unsupported method: {method}")
                    normalized_params["method"] = method

                return ValidationResult(
                    valid=len(errors) == 0,
                    errors=errors,
                    normalized_params=normalized_params,
                )

        return RegistryValidator()

    async def _execute_action(
        self, action: str, params: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Execute registry action."""
        if self._http is None:
            raise ToolError("Registry client is not initialized")

        if action == "list_tags":
            return await self._list_tags(params)
        elif action == "probe_url":
            return await self._probe_url(params)
        else:
            raise ToolError(f"Unknown action: {action}")

    async def _list_tags(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """List tag names of a repository, in the order the API returns them."""
        url = f"{self.api_url}/{params['repository']}/tags/"

        try:
            response = await self._http.get(
                url,
                params={"page_size": params["page_size"]},
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ToolError(f"Unable to fetch Docker Hub tags: {e}")

        tags = [
            result.get("name", "")
            for result in data.get("results", [])
            if result.get("name")
        ]

        contains = params.get("contains")
        if contains:
            tags = [tag for tag in tags if contains in tag]

        return {"repository": params["repository"], "tags": tags, "success": True}

    async def _probe_url(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Request a URL and report whether it answered successfully."""
        try:
            response = await self._http.request(params["method"], params["url"])
        except httpx.HTTPError as e:
            return {
                "url": params["url"],
                "reachable": False,
                "status_code": None,
                "error": str(e),
                "success": True,
            }

        return {
            "url": params["url"],
            "reachable": response.is_success,
            "status_code": response.status_code,
            "success": True,
        }

    async def cleanup(self) -> None:
        """Close the HTTP client."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def _get_supported_actions(self) -> List[str]:
        """Get list of supported actions."""
        return ["list_tags", "probe_url"]

"""
Base tool interface.

This module defines the tool abstraction layer that wraps the external
programs (container engine, compose tool, host filesystem, registry API)
behind a consistent validate/execute interface.
"""

import asyncio
import inspect
import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ToolStatus(Enum):
    """Tool operation status."""

    IDLE = "idle"
    VALIDATING = "validating"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


class ToolResult(BaseModel):
    """Result of a tool operation."""

    success: bool
    tool_name: str
    action: str
    output: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None
    duration: Optional[float] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ValidationResult(BaseModel):
    """Result of parameter validation."""

    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    normalized_params: Dict[str, Any] = Field(default_factory=dict)


class ToolConfig(BaseModel):
    """Configuration for a tool."""

    name: str
    version: str = "1.0.0"
    enabled: bool = True
    timeout: Optional[int] = None  # seconds, None waits indefinitely
    retry_count: int = 0
    retry_delay: int = 5  # seconds
    environment: Dict[str, Any] = Field(default_factory=dict)


class ToolSchema(BaseModel):
    """Schema describing tool capabilities."""

    name: str
    description: str
    version: str
    actions: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    required_permissions: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)


class Tool(ABC):
    """
    Base class for the wrappers around external programs.

    Subclasses provide a client (availability probe), a validator and the
    action implementations. ``execute`` adds parameter validation, the
    optional timeout/retry policy and structured failure logging on top.
    """

    def __init__(self, config: ToolConfig):
        self.config = config
        self.logger = logging.getLogger(f"{self.__class__.__name__}:{config.name}")
        self.status = ToolStatus.IDLE
        self._client: Optional[Any] = None
        self._validator: Optional[Any] = None

    async def initialize(self) -> None:
        """Probe the external program and build the validator."""
        if not self.config.name:
            raise ToolError("Tool name is required")
        try:
            self._validator = await self._create_validator()
            self._client = await self._create_client()
        except Exception as e:
            self.logger.error(
                "Tool initialization failed",
                extra={"tool_name": self.config.name, "error_message": str(e)},
            )
            raise ToolError(f"Initialization failed: {e}") from e

    async def execute(self, action: str, params: Dict[str, Any]) -> ToolResult:
        """
        Run ``action`` with ``params``.

        Never raises: validation errors, exceptions from the action and
        outputs flagged ``success: False`` all come back as an unsuccessful
        ``ToolResult`` whose ``error`` carries the message.
        """
        started = time.monotonic()

        def finish(
            success: bool, output: Dict[str, Any], error: Optional[str] = None
        ) -> ToolResult:
            self.status = ToolStatus.COMPLETED if success else ToolStatus.FAILED
            return ToolResult(
                success=success,
                tool_name=self.config.name,
                action=action,
                output=output,
                error=error,
                duration=time.monotonic() - started,
            )

        try:
            self.status = ToolStatus.VALIDATING
            validation = await self.validate(action, params)
            if not validation.valid:
                raise ToolValidationError(f"Validation failed: {validation.errors}")
            for warning in validation.warnings:
                self.logger.warning(
                    warning, extra={"tool_name": self.config.name, "action": action}
                )

            self.status = ToolStatus.EXECUTING
            output = await self._execute_with_retry(
                action, validation.normalized_params or params
            )
        except Exception as e:
            self.logger.error(
                "Tool action failed",
                extra={
                    "tool_name": self.config.name,
                    "action": action,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                    "duration_seconds": time.monotonic() - started,
                },
            )
            return finish(False, {}, str(e))

        if output.get("success") is False:
            return finish(False, output, output.get("error") or f"{action} failed")
        return finish(True, output)

    async def validate(self, action: str, params: Dict[str, Any]) -> ValidationResult:
        """Check ``action`` is supported and run the tool's validator on ``params``."""
        if action not in await self._get_supported_actions():
            return ValidationResult(valid=False, errors=[f"Unsupported action: {action}"])

        if self._validator is None:
            self._validator = await self._create_validator()
        if self._validator is None:
            return ValidationResult(valid=True, normalized_params=params)

        result = self._validator.validate(action, params)
        if inspect.isawaitable(result):
            result = await result
        return result  # type: ignore[no-any-return]

    @abstractmethod
    async def get_schema(self) -> ToolSchema:
        """Return the tool's schema describing its capabilities."""

    @abstractmethod
    async def _create_client(self) -> Any:
        """Create and configure the underlying client."""

    @abstractmethod
    async def _create_validator(self) -> Any:
        """Create and configure the parameter validator."""

    @abstractmethod
    async def _execute_action(
        self, action: str, params: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Execute the actual action (implemented by subclasses)."""

    @abstractmethod
    async def _get_supported_actions(self) -> List[str]:
        """Get list of supported actions."""

    async def _execute_with_retry(
        self, action: str, params: Dict[str, Any]
    ) -> Dict[str, Any]:
        attempts = self.config.retry_count + 1

        for attempt in range(1, attempts + 1):
            try:
                return await asyncio.wait_for(
                    self._execute_action(action, params), timeout=self.config.timeout
                )
            except asyncio.TimeoutError as e:
                error: Exception = ToolTimeoutError(
                    f"{action} timed out after {self.config.timeout} seconds"
                )
                error.__cause__ = e
            except Exception as e:
                error = e

            if attempt == attempts:
                raise error

            self.logger.warning(
                "Retrying tool action",
                extra={
                    "tool_name": self.config.name,
                    "action": action,
                    "attempt": attempt,
                    "max_attempts": attempts,
                    "error_message": str(error),
                },
            )
            await asyncio.sleep(self.config.retry_delay)

        raise ToolError(f"{action} was not attempted")


class ToolError(Exception):
    """Base exception for tool-related errors."""


class ToolValidationError(ToolError):
    """Invalid parameters for an action."""


class ToolTimeoutError(ToolError):
    """An action exceeded the configured timeout."""

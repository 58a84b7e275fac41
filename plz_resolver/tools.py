"""MCP tool registrations that drive the address form."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Annotated, Any, Callable

from fastmcp import FastMCP
from pydantic import Field

from plz_resolver.models import FormState
from plz_resolver.resolver import AddressResolver

logger = logging.getLogger(__name__)


@dataclass
class AddressToolDependencies:
    """Runtime dependencies required by the MCP tools."""

    resolver: AddressResolver | None = None
    settle_timeout: float = 30.0

    def attach_resolver(self, resolver: AddressResolver) -> None:
        self.resolver = resolver

    def detach_resolver(self) -> None:
        self.resolver = None

    def require_resolver(self) -> AddressResolver:
        if self.resolver is None or self.resolver.closed:
            raise RuntimeError("Address resolver is not initialized.")
        return self.resolver


def register_address_tools(
    mcp: FastMCP,
    dependencies: AddressToolDependencies,
) -> None:
    """Register MCP tools that forward form interactions to the resolver."""

    def _log_tool_event(tool_name: str, event: str, **fields: object) -> None:
        logger.info(
            "address_tool_event",
            extra={"tool": tool_name, "event": event, **fields},
        )

    def _with_error_handling(
        tool_name: str,
        action: Callable[[AddressResolver], FormState],
    ) -> dict[str, Any]:
        try:
            state = action(dependencies.require_resolver())
        except ValueError as exc:
            _log_tool_event(tool_name, "invalid_argument", error=str(exc))
            return {"error": str(exc)}
        except Exception as exc:  # noqa: BLE001
            logger.exception("%s failed unexpectedly", tool_name)
            _log_tool_event(tool_name, "unexpected_error", error=str(exc))
            return {"error": f"Unexpected error: {exc}"}

        _log_tool_event(
            tool_name,
            "success",
            locality=state.locality.raw_value,
            postal_code=state.postal_code.raw_value,
        )
        return state.to_payload()

    @mcp.tool(
        name="edit_locality",
        description="Types a new value into the locality field. Clears the postal code when non-empty and schedules a debounced lookup of matching postal codes.",
    )
    async def edit_locality(
        value: Annotated[str, Field(description="The full text of the locality input after the keystroke (e.g. 'München').")],
    ) -> dict[str, Any]:
        """Replace the locality input text."""
        return _with_error_handling("edit_locality", lambda resolver: resolver.edit_locality(value))

    @mcp.tool(
        name="edit_postal_code",
        description="Types a new value into the postal code (PLZ) field. Non-digits are stripped; three or more digits schedule a debounced locality lookup.",
    )
    async def edit_postal_code(
        value: Annotated[str, Field(description="The full text of the postal code input after the keystroke (e.g. '80331').")],
    ) -> dict[str, Any]:
        """Replace the postal code input text."""
        return _with_error_handling(
            "edit_postal_code", lambda resolver: resolver.edit_postal_code(value)
        )

    @mcp.tool(
        name="toggle_postal_code_options",
        description="Opens or closes the list of candidate postal codes. Only has an effect while a locality maps to several postal codes.",
    )
    async def toggle_postal_code_options() -> dict[str, Any]:
        return _with_error_handling(
            "toggle_postal_code_options", lambda resolver: resolver.toggle_dropdown()
        )

    @mcp.tool(
        name="select_postal_code",
        description="Picks one of the candidate postal codes offered for an ambiguous locality.",
    )
    async def select_postal_code(
        code: Annotated[str, Field(description="One of the codes listed under 'candidates'.")],
    ) -> dict[str, Any]:
        """Fill the postal code field from the candidate list."""

        def _select(resolver: AddressResolver) -> FormState:
            if code not in resolver.state.candidates:
                raise ValueError(f"{code!r} is not one of the offered postal codes.")
            return resolver.select_candidate(code)

        return _with_error_handling("select_postal_code", _select)

    @mcp.tool(
        name="pointer_down",
        description="Reports a pointer interaction on the page. Anything outside the postal code input, toggle and option list closes the option list.",
    )
    async def pointer_down(
        target: Annotated[str, Field(description="Identifier of the element that was pressed (e.g. 'postal_code_options', 'page').")] = "page",
    ) -> dict[str, Any]:
        return _with_error_handling("pointer_down", lambda resolver: resolver.pointer_down(target))

    @mcp.tool(
        name="get_address_form",
        description="Returns both field values, their statuses, candidate postal codes, the dropdown state and the status message.",
    )
    async def get_address_form(
        wait_for_lookups: Annotated[bool, Field(description="Wait for pending debounce timers and lookups to finish before reporting.")] = True,
    ) -> dict[str, Any]:
        """Render the current form, optionally after pending lookups settle."""
        try:
            resolver = dependencies.require_resolver()
        except RuntimeError as exc:
            logger.warning("get_address_form called without a resolver")
            return {"error": str(exc)}

        if wait_for_lookups:
            try:
                await asyncio.wait_for(resolver.wait_idle(), dependencies.settle_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "Lookups did not settle in time",
                    extra={"timeout": dependencies.settle_timeout},
                )
        return _with_error_handling("get_address_form", lambda resolver: resolver.state)

    logger.info("Address form tools registered.")

"""API route handlers."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from obd_adapter.api.dependencies import get_handler, get_registry, get_settings
from obd_adapter.core.config import Settings
from obd_adapter.core.models import CacheClearResponse, CommandInfo, CommandResponse, ErrorResponse
from obd_adapter.protocol.commands import ObdCommand, freeze_frame
from obd_adapter.protocol.errors import AdapterResponseError
from obd_adapter.protocol.handler import ProtocolHandler
from obd_adapter.protocol.registry import CommandRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

_ERROR_RESPONSES = {
    404: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def _lookup(registry: CommandRegistry, tag: str) -> ObdCommand:
    command = registry.get(tag.upper())
    if command is None:
        raise HTTPException(status_code=404, detail=f"Command not found: {tag}")
    return command


async def _run(
    handler: ProtocolHandler,
    settings: Settings,
    command: ObdCommand,
    use_cache: bool = False,
) -> CommandResponse:
    if not handler.connected:
        raise HTTPException(status_code=503, detail="Adapter not connected")

    try:
        response = await handler.execute(
            command,
            use_cache=use_cache,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay,
        )
    except AdapterResponseError as e:
        raise HTTPException(status_code=502, detail=str(e)) from None
    except ConnectionError as e:
        logger.error("Connection error while executing %s: %s", command.tag, e)
        raise HTTPException(status_code=503, detail=f"Adapter connection failed: {e}") from None

    return CommandResponse(
        tag=command.tag,
        command=command.raw_command,
        value=response.typed_value,
        display=response.display,
        unit=response.unit,
        formatted=response.formatted,
        raw=response.raw.text,
        elapsed_ms=response.raw.elapsed_ms,
    )


@router.get("/commands", response_model=list[CommandInfo])
async def list_commands(registry: CommandRegistry = Depends(get_registry)):
    """List registered commands."""
    return [
        CommandInfo(
            tag=command.tag,
            name=command.name,
            mode=command.mode,
            pid=command.pid,
            category=command.category.value,
            unit=command.unit,
            mutating=command.mutating,
        )
        for command in registry.commands()
    ]


@router.get(
    "/commands/{tag}",
    response_model=CommandResponse,
    responses={405: {"model": ErrorResponse}, **_ERROR_RESPONSES},
)
async def execute_command(
    tag: str,
    use_cache: bool = Query(False, description="Serve from and populate the response cache"),
    handler: ProtocolHandler = Depends(get_handler),
    registry: CommandRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
):
    """Execute a read-only registered command and return its parsed value."""
    command = _lookup(registry, tag)
    if command.mutating:
        raise HTTPException(
            status_code=405,
            detail=f"Command {command.tag} changes vehicle state; use POST",
            headers={"Allow": "POST"},
        )
    return await _run(handler, settings, command, use_cache)


@router.post("/commands/{tag}", response_model=CommandResponse, responses=_ERROR_RESPONSES)
async def send_command(
    tag: str,
    handler: ProtocolHandler = Depends(get_handler),
    registry: CommandRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
):
    """Send a registered command to the adapter, bypassing the response cache.

    This is the route for commands that change state, such as clearing trouble codes.
    """
    command = _lookup(registry, tag)
    if command.mutating:
        logger.info("Sending state-changing command %s", command.tag)
    return await _run(handler, settings, command)


@router.get(
    "/commands/{tag}/freeze-frame",
    response_model=CommandResponse,
    responses={400: {"model": ErrorResponse}, **_ERROR_RESPONSES},
)
async def execute_freeze_frame(
    tag: str,
    frame: int = Query(0, ge=0, le=255, description="Freeze frame number"),
    use_cache: bool = Query(False, description="Serve from and populate the response cache"),
    handler: ProtocolHandler = Depends(get_handler),
    registry: CommandRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
):
    """Read the freeze frame value of a mode 01 command."""
    command = _lookup(registry, tag)
    if command.mode != "01":
        raise HTTPException(status_code=400, detail=f"Command {command.tag} has no freeze frame (mode {command.mode})")
    return await _run(handler, settings, freeze_frame(command, frame), use_cache)


@router.delete("/cache", response_model=CacheClearResponse)
async def clear_cache(handler: ProtocolHandler = Depends(get_handler)):
    """Drop all cached adapter replies."""
    cleared = await handler.clear_cache()
    logger.info("Cleared %d cached responses", cleared)
    return CacheClearResponse(cleared=cleared)

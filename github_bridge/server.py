"""FastAPI server for the GitHub bridge."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Header, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse

from .commands import CommandArgs
from .errors import (
    MalformedInput,
    NotFound,
    NotRegistered,
    Unauthorized,
    UpstreamFailure,
)
from .plugin import Plugin, start_plugin, stop_plugin
from .router import verify_webhook_secret

logger = logging.getLogger(__name__)

# Global dependencies - set at startup
_plugin: Plugin | None = None


def init_app(plugin: Plugin) -> None:
    """Initialize the application with dependencies."""
    global _plugin
    _plugin = plugin


def get_plugin() -> Plugin:
    """Get the application plugin."""
    if _plugin is None:
        raise RuntimeError("Application not initialized")
    return _plugin


def get_configured_plugin() -> Plugin:
    """Get the plugin, rejecting the request while it is not configured."""
    plugin = get_plugin()
    if not plugin.activated or not plugin.config.is_valid:
        raise HTTPException(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            detail="This plugin is not configured.",
        )
    return plugin


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Activate the plugin on startup and release it on shutdown."""
    plugin = get_plugin()
    await start_plugin(plugin)
    logger.info("GitHub bridge started")

    yield

    await stop_plugin(plugin)
    logger.info("GitHub bridge stopped")


app = FastAPI(
    title="GitHub Bridge",
    description="Routes GitHub pull request events and review reminders to chat",
    version="0.1.0",
    lifespan=lifespan,
)


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except Exception as e:
        raise MalformedInput(f"Invalid JSON payload: {e}") from e


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/webhook")
async def webhook_handler(
    request: Request,
    secret: str | None = None,
    x_github_event: str | None = Header(None),
) -> dict[str, Any]:
    """Handle incoming GitHub webhook events."""
    plugin = get_configured_plugin()

    if not verify_webhook_secret(secret, plugin.config.github_webhook_secret):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized",
        )

    try:
        payload = await _read_json(request)
        if not isinstance(payload, dict):
            raise MalformedInput("Webhook payload must be a JSON object")

        logger.info(f"Received webhook event: {x_github_event}")
        assert plugin.router is not None
        return await plugin.router.handle_event(x_github_event, payload)
    except MalformedInput as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e


@app.post("/api/v1/pr/reviewers")
async def reviewers_handler(
    request: Request,
    caller_user_id: str | None = Header(None),
    mattermost_user_id: str | None = Header(None),
) -> Response:
    """Request reviewers on a pull request as the calling user."""
    plugin = get_configured_plugin()
    user_id = caller_user_id or mattermost_user_id

    try:
        if not user_id:
            raise Unauthorized("Not authorized")
        body = await _read_json(request)
        url = await plugin.reviewers.assign(user_id, body)
    except Unauthorized as e:
        return PlainTextResponse(str(e), status_code=status.HTTP_401_UNAUTHORIZED)
    except (MalformedInput, NotRegistered, UpstreamFailure) as e:
        logger.warning(f"Reviewer request from {user_id} failed: {e}")
        return PlainTextResponse(str(e), status_code=status.HTTP_400_BAD_REQUEST)

    return PlainTextResponse(url)


@app.post("/api/v1/command")
async def command_handler(request: Request) -> Response:
    """Execute a /github slash command."""
    plugin = get_configured_plugin()

    try:
        data = await _read_json(request)
        if not isinstance(data, dict):
            raise MalformedInput("Command body must be a JSON object")
        args = CommandArgs(
            command=str(data.get("command", "")),
            user_id=str(data.get("user_id", "")),
            channel_id=str(data.get("channel_id", "")),
        )
    except MalformedInput as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e

    assert plugin.commands is not None
    try:
        response = await plugin.commands.execute(args)
    except NotFound as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e

    if response is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return JSONResponse(response.to_dict())

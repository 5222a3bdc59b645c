"""Tools API routes."""

from fastapi import APIRouter

from ollama_agent.api.controller_store import get_controller
from ollama_agent.utils.logging import logger

router = APIRouter(tags=["tools"])


@router.get("/tools")
async def list_tools() -> dict:
    """Tool manifest, and whether tools are offered for the current model."""
    logger.info("Listing tools")
    ctrl = await get_controller()
    return {
        "tools": ctrl.executor.get_manifest(),
        "enabled": ctrl.state.tools_active,
    }

"""Shared controller instance for API routes."""

from typing import Optional

from ollama_agent.engine.controller import ConversationController

controller: Optional[ConversationController] = None


async def get_controller() -> ConversationController:
    """Get or create the controller instance. The first call runs the connectivity probe."""
    global controller
    if controller is None:
        controller = ConversationController()
        await controller.connect()
    return controller


async def shutdown_controller() -> None:
    global controller
    if controller is not None:
        await controller.close()
        controller = None

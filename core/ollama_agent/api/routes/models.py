"""Models API routes."""

from fastapi import APIRouter, HTTPException

from ollama_agent.api.controller_store import get_controller
from ollama_agent.api.schemas import CapabilitiesOut, ModelsResponse, SelectModelRequest
from ollama_agent.engine.controller import ConversationController
from ollama_agent.utils.logging import logger

router = APIRouter(prefix="/models", tags=["models"])


def _models_response(ctrl: ConversationController) -> ModelsResponse:
    state = ctrl.state
    return ModelsResponse(
        models=[{**m.model_dump(), "size_gb": m.size_gb} for m in state.models],
        mode=state.mode.value,
        selected_model=state.selected_model.name if state.selected_model else None,
        capabilities=CapabilitiesOut(**state.capabilities.to_dict()),
    )


@router.get("", response_model=ModelsResponse)
async def list_models() -> ModelsResponse:
    """List models from the last probe."""
    ctrl = await get_controller()
    return _models_response(ctrl)


@router.post("/refresh", response_model=ModelsResponse)
async def refresh_models() -> ModelsResponse:
    """Rerun the connectivity probe."""
    ctrl = await get_controller()
    if ctrl.state.busy:
        raise HTTPException(status_code=409, detail="A message is being processed")
    logger.info("Refreshing models")
    await ctrl.refresh()
    return _models_response(ctrl)


@router.post("/select", response_model=ModelsResponse)
async def select_model(request: SelectModelRequest) -> ModelsResponse:
    """Select a model. Clears the conversation."""
    ctrl = await get_controller()
    if ctrl.state.busy:
        raise HTTPException(status_code=409, detail="A message is being processed")
    if not ctrl.select_model(request.name):
        raise HTTPException(status_code=404, detail=f"Model not found: {request.name}")
    return _models_response(ctrl)

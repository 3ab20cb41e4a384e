"""Legal chat relay endpoint"""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Response
from fastapi.responses import JSONResponse, StreamingResponse

from legalai.models.chat import ChatRequest, ErrorResponse
from legalai.services.config_manager import ConfigManager
from legalai.services.errors import RelayError
from legalai.services.llm_service import LLMService

logger = logging.getLogger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def error_response(message: str, status_code: int = 500) -> JSONResponse:
    """Flat {error} body with CORS headers attached"""
    return JSONResponse(
        ErrorResponse(error=message).model_dump(),
        status_code=status_code,
        headers=CORS_HEADERS,
    )


@router.options("")
async def legal_chat_preflight() -> Response:
    """Answer CORS preflight with headers only"""
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("")
async def legal_chat(request: ChatRequest) -> Response:
    """Relay the conversation upstream and pipe the event stream back unchanged"""
    try:
        config = ConfigManager.get_instance().get_config()
        upstream = await LLMService(config).open_stream(request.messages)
    except RelayError as e:
        logger.error("Error in legal-chat relay: %s", e)
        return error_response(str(e))
    except Exception:
        logger.exception("Unexpected error in legal-chat relay")
        return error_response("Internal relay error")

    cleanup = BackgroundTasks()
    cleanup.add_task(upstream.aclose)

    # The background task covers a client that disconnects before the body starts
    return StreamingResponse(
        upstream.iter_chunks(),
        media_type="text/event-stream",
        headers=CORS_HEADERS,
        background=cleanup,
    )

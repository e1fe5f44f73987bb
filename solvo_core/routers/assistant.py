from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import date
from pydantic import ValidationError
from solvo_core.database import get_db
from solvo_core.core.auth import get_current_user
from solvo_core.core.http import ai_http_error, apply_action
from solvo_core.schemas.assistant import AssistantRequest, AssistantResponse
from solvo_core.services.ai_client import AIClient, AIError, AIRequestError, get_ai_client
from solvo_core.services.assistant import (
    AssistantError,
    AssistantReply,
    assistant_context,
    parse_tool_call,
    tool_call_to_action,
)
from solvo_core.services.storage import StateStore, get_state_store

router = APIRouter(prefix="/assistant", tags=["assistant"])


@router.post("", response_model=AssistantResponse)
async def ask_assistant(
    request: AssistantRequest,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
    store: StateStore = Depends(get_state_store),
    ai_client: AIClient = Depends(get_ai_client)
):
    state = await store.load(db, current_user.id)
    user_name = current_user.name or current_user.email

    # 1. Ask the model
    try:
        raw = await ai_client.ai_assistant(
            request.prompt,
            assistant_context(state, current_user.id, user_name),
            [turn.model_dump() for turn in request.history],
        )
        reply = AssistantReply.model_validate(raw)
    except ValidationError:
        raise ai_http_error(AIRequestError("The AI assistant returned an invalid response."))
    except AIError as e:
        raise ai_http_error(e)

    if reply.type == "text":
        return AssistantResponse(type="text", text=reply.text or "")
    if reply.type == "error":
        text = reply.error or "The AI assistant could not answer."
        if reply.details:
            text = f"{text} {reply.details}"
        return AssistantResponse(type="error", text=text)

    # 2. Validate the requested action against the known tools
    try:
        call = parse_tool_call(reply.call)
        action, message = tool_call_to_action(state, call, user_name, date.today())
    except AssistantError as e:
        return AssistantResponse(type="error", text=str(e))

    # 3. Apply it like any other state change
    await apply_action(store, db, current_user.id, action)
    return AssistantResponse(
        type="tool_call",
        text=message,
        tool=call.name,
        args=call.args.model_dump(mode="json"),
    )

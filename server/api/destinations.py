from typing import List

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from server.agents.destination_agent.autosuggest import AutoSuggest, filter_countries

router = APIRouter(tags=["destinations"])


@router.get("/suggest")
def suggest(q: str = Query("", description="Text typed into the destination field")) -> dict:
    return {"query": q, "suggestions": filter_countries(q)}


@router.websocket("/ws")
async def suggest_ws(websocket: WebSocket):
    """
    Keystroke stream in, debounced suggestion lists out.
    Every text frame is the full current value of the input.
    """
    await websocket.accept()

    async def push(suggestions: List[str]) -> None:
        await websocket.send_json({"query": autosuggest.value, "suggestions": suggestions})

    autosuggest = AutoSuggest(push)
    try:
        while True:
            autosuggest.update(await websocket.receive_text())
    except WebSocketDisconnect:
        pass
    finally:
        autosuggest.close()

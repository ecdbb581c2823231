"""FastAPI server exposing one chat turn per request."""
import logging
import os
import sys
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from careercraft.graph.router import get_graph_info, run_turn

# Configure logging to stderr (use PYTHONUNBUFFERED=1 when deployed)
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


class ChatMessage(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(min_length=1)
    userId: Optional[str] = None
    conversationId: Optional[str] = None


app = FastAPI(title="CareerCraft Agent")


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "graph": get_graph_info()}


@app.post("/chat")
async def chat(request: ChatRequest):
    """
    Run one turn. The graph never raises for model or tool failures; anything
    reaching this handler is a server fault.
    """
    turn_input = {
        "messages": [m.model_dump() for m in request.messages],
        "userId": request.userId,
    }
    logger.info(
        f"Chat turn: {len(request.messages)} messages, "
        f"user_id={'[PRESENT]' if request.userId else '[MISSING]'}, conversation={request.conversationId}"
    )
    try:
        result = await run_turn(turn_input, conversation_id=request.conversationId)
    except Exception as e:
        logger.error(f"Error running chat turn: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error while processing the conversation")
    return result.to_dict()


if __name__ == "__main__":
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "careercraft.main:app",
        host="0.0.0.0",
        port=port,
        reload=os.getenv("RELOAD", "false").lower() == "true"
    )

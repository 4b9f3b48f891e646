"""Health check endpoint."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    """Check OpenAI connectivity."""
    result = await request.app.state.openai.health_check()
    if result.get("healthy"):
        return {"status": "ok", "model": result.get("model")}
    return JSONResponse(status_code=503, content={"status": "unhealthy", "error": result.get("error")})

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from codeassist.config import settings
from codeassist.log_config import configure_logging
from codeassist.routers import assist

configure_logging()

app = FastAPI(title="CodeAssist", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(assist.router)


@app.get("/health")
async def health():
    return {"status": "ok", "aiConfigured": settings.ai_configured}

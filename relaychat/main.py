# relaychat/main.py
import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from relaychat import __version__
from relaychat.core.config import CORS_ORIGINS, HOST, PORT
from relaychat.core.errors import RelayChatError
from relaychat.core.logging import configure_logging
from relaychat.routers import convert, files, ws

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="relaychat", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.exception_handler(RelayChatError)
async def relaychat_error_handler(request: Request, exc: RelayChatError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include routers
app.include_router(ws.router, tags=["Relay"])
app.include_router(files.router, tags=["Files"])
app.include_router(convert.router, tags=["Conversion"])


@app.get("/health")
def health():
    return {"status": "ok"}


def run() -> None:
    uvicorn.run("relaychat.main:app", host=HOST, port=PORT)

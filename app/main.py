import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.matching import router as matching_router, get_matching_engine
from app.api.push import router as push_router
from app.core.errors import MatchingError, TransientError

log = logging.getLogger("pairbond")
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

origins = [
    "http://localhost:3000",
]

@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await get_matching_engine().wait_for_notifications()


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MatchingError)
async def matching_error_handler(request: Request, exc: MatchingError):
    if exc.is_client_error:
        message = exc.detail
    else:
        message = "Something went wrong, please try again."
    headers = {"Retry-After": "1"} if isinstance(exc, TransientError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=headers,
    )


@app.get("/health", tags=["health"])
async def health():
    return {"ok": True}


app.include_router(matching_router)
app.include_router(push_router)

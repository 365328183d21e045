# journal/main.py

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from journal.config import get_settings
from journal.database import init_db
from journal.routes import insights, portfolio, trades
from logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_settings()
    init_db()
    yield


# Initialize FastAPI app
app = FastAPI(
    title="Trading Journal API",
    description="API for logging trades, portfolio analytics and AI-generated trading insights.",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Error bodies are {"error": "<message>"}."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


# Include API routers
app.include_router(trades.router)
app.include_router(insights.router)
app.include_router(portfolio.router)

# Root endpoint
@app.get("/", response_model=dict)
async def root():
    return {"message": "Trading journal API is running"}

# Health check endpoint
@app.get("/health", response_model=dict)
def health_check():
    return {"status": "healthy"}

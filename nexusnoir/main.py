from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
import logging
from fastapi.exception_handlers import http_exception_handler, request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from nexusnoir.core.config import settings
from nexusnoir.core.cache import cache
from nexusnoir.middleware.request_logging import RequestLoggingMiddleware
from nexusnoir.middleware.auth_logging import AuthLoggingMiddleware
from nexusnoir.modules.auth.api.router import router as auth_router
from nexusnoir.modules.user_management.api.router import router as user_router
from nexusnoir.modules.posts.api.router import router as posts_router
from nexusnoir.modules.posts.comments.api.router import router as comments_router
from nexusnoir.modules.posts.reactions.api.router import router as reactions_router
from nexusnoir.modules.posts.engagement.api.router import router as engagement_router
from nexusnoir.modules.friendships.api.router import router as friendships_router
from nexusnoir.modules.follows.api.router import router as follows_router
from nexusnoir.modules.notifications.api.router import router as notifications_router
from nexusnoir.modules.home_feed.api.router import router as home_feed_router
from nexusnoir.modules.trending.api.router import router as trending_router
from nexusnoir.modules.media.router import router as media_router
from nexusnoir.modules.messaging.api.router import router as messaging_router
from nexusnoir.modules.auth.services.rate_limit import purge_old_login_attempts
from nexusnoir.db.session import SessionLocal
from nexusnoir.db.init_db import create_all_tables

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("nexusnoir")

async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})

# Initialize the FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    exception_handlers={
        RequestValidationError: request_validation_exception_handler,
        HTTPException: http_exception_handler,
        SQLAlchemyError: database_exception_handler,
    },
    debug=settings.DEBUG,
    description="Social networking API with a personalised feed and trending view",
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    swagger_ui_parameters={"defaultModelsExpandDepth": -1},
)

@app.on_event("startup")
def startup_event():
    logger.info(f"Starting server in {settings.ENVIRONMENT} mode")
    logger.info(f"BASE_URL: {settings.BASE_URL}")

    create_all_tables()

    db = SessionLocal()
    try:
        purge_old_login_attempts(db)
    finally:
        db.close()

    if settings.REDIS_URL:
        if cache.ping():
            logger.info("Feed cache connected")
        else:
            logger.warning("Feed cache unreachable, feeds will be computed on every request")
    else:
        logger.info("REDIS_URL not set, feed caching disabled")

# Add middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(AuthLoggingMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(auth_router, prefix=f"{settings.API_V1_STR}/auth", tags=["authentication"])
app.include_router(user_router, prefix=f"{settings.API_V1_STR}/users", tags=["users"])
app.include_router(posts_router, prefix=f"{settings.API_V1_STR}/posts", tags=["posts"])
app.include_router(comments_router, prefix=f"{settings.API_V1_STR}/posts/{{post_id}}/comments", tags=["comments"])
app.include_router(reactions_router, prefix=f"{settings.API_V1_STR}/posts/{{post_id}}/reactions", tags=["reactions"])
app.include_router(engagement_router, prefix=f"{settings.API_V1_STR}/posts/{{post_id}}", tags=["engagement"])
app.include_router(friendships_router, prefix=f"{settings.API_V1_STR}/friends", tags=["friendships"])
app.include_router(follows_router, prefix=f"{settings.API_V1_STR}/follows", tags=["follows"])
app.include_router(notifications_router, prefix=f"{settings.API_V1_STR}/notifications", tags=["notifications"])
app.include_router(home_feed_router, prefix=f"{settings.API_V1_STR}/feed", tags=["home feed"])
app.include_router(trending_router, prefix=f"{settings.API_V1_STR}/trending", tags=["trending"])
app.include_router(messaging_router, prefix=f"{settings.API_V1_STR}/conversations", tags=["messaging"])
app.include_router(media_router)

@app.get("/")
async def root():
    return {
        "message": "Welcome to Nexus Noir",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "documentation": "/docs" if settings.DEBUG else None,
    }

@app.get("/health")
def health_check():
    return {"status": "ok"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("nexusnoir.main:app", host="0.0.0.0", port=8000, reload=True)

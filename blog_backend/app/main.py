import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.api import comments as comments_api
from app.api import likes as likes_api
from app.api import posts as posts_api
from app.api import user as user_api
from app.config import settings
from app.database import create_tables
from app.errors import BlogError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("blog.api")

app = FastAPI(title="Blog API")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(posts_api.router, prefix="/api/posts", tags=["Posts"])
app.include_router(comments_api.router, prefix="/api/comments", tags=["Comments"])
app.include_router(likes_api.router, prefix="/api/likes", tags=["Likes"])
app.include_router(user_api.router, prefix="/api/user", tags=["Users"])


@app.exception_handler(BlogError)
async def blog_error_handler(request: Request, exc: BlogError):
    if exc.status_code >= 500:
        logger.error("REQUEST_FAILED method=%s path=%s detail=%s", request.method, request.url.path, exc.detail,
                     exc_info=exc.__cause__ or exc)
    else:
        logger.info("REQUEST_REJECTED method=%s path=%s status=%s detail=%s",
                    request.method, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.on_event("startup")
async def startup():
    await create_tables()


@app.get("/")
async def root():
    return {"message": "Blog API is running"}

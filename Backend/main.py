from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from balltalk.api import auth, users, songs, playlists, shares, notifications, verification
from balltalk.core.config import settings
import traceback
import logging
import uvicorn # For running programmatically
import os # For path manipulation



# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("balltalk")
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

app = FastAPI(title="BallTalk API")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, replace with specific origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Anything that is not an HTTPException ends up here
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    error_detail = traceback.format_exc()
    logger.error(f"Unhandled exception on {request.url.path}: {str(exc)}\n{error_detail}")
    return JSONResponse(
        status_code=500,
        content={
            "error": str(exc),
            "path": request.url.path
        }
    )

# Include routes
app.include_router(auth.router, prefix="/api", tags=["Authentication"])
app.include_router(users.router, prefix="/api", tags=["users"])
app.include_router(songs.router, prefix="/api", tags=["songs"])
app.include_router(playlists.router, prefix="/api", tags=["playlists"])
app.include_router(shares.router, prefix="/api", tags=["Track sharing"])
app.include_router(notifications.router, prefix="/api", tags=["notifications"])
app.include_router(verification.router, prefix="/api", tags=["Verification"])

# Uploaded audio and cover art. Served without auth: the API decides who learns a file URL
os.makedirs(settings.STORAGE_ROOT, exist_ok=True)
app.mount(settings.MEDIA_URL, StaticFiles(directory=settings.STORAGE_ROOT), name="media")


@app.get("/")
async def root():
    return {"message": "Welcome to BallTalk API"}


if __name__ == "__main__":
    # For deployment, use 0.0.0.0 and PORT from environment
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("main:app", host="0.0.0.0", port=port, log_level="info")

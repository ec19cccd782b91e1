import logging
from typing import Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from posterlink import __version__, config
from posterlink.errors import AccessDenied, AlreadyPremium, PosterLinkError, UploadRelayFailure
from posterlink.models import User
from posterlink.services.auth import AuthService
from posterlink.services.imgbb import ImgbbService
from posterlink.services.video_info import VideoInfoService
from posterlink.utils import user_store

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="PosterLink API", version=__version__)

user_store.init_users_db()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Initialize services
auth_service = AuthService()
video_info_service = VideoInfoService()
imgbb_service = ImgbbService()


# Request models
class VideoInfoRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    youtube_url: str = Field(..., alias="youtubeUrl")


class UploadRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_data: str = Field("", alias="imageData")
    filename: str = ""


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


# Error rendering: every failure is {"error": message}
@app.exception_handler(PosterLinkError)
async def posterlink_error_handler(request: Request, exc: PosterLinkError):
    logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    message = f"Invalid request body: {', '.join(fields)}" if fields else "Invalid request body"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.middleware("http")
async def add_root_path(request: Request, call_next):
    root_path = request.headers.get("X-Forwarded-Prefix", "")
    request.scope["root_path"] = root_path
    return await call_next(request)


# Auth dependencies
def current_user(authorization: Optional[str] = Header(None)) -> User:
    return auth_service.resolve_caller(authorization)


def premium_user(user: User = Depends(current_user)) -> User:
    # Checked against the stored record on every request.
    if not user.is_premium:
        raise AccessDenied()
    return user


@app.get("/")
async def root():
    return {"message": "PosterLink API is running"}


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "imgbb_configured": imgbb_service.configured,
    }


@app.post("/register", status_code=201)
def register(request: RegisterRequest):
    if not (request.name and request.email and request.password):
        return JSONResponse(status_code=400, content={"error": "Name, email and password are required"})
    auth_service.register(request.name, request.email, request.password)
    return {"message": "User created successfully."}


@app.post("/login")
def login(request: LoginRequest):
    if not (request.email and request.password):
        return JSONResponse(status_code=400, content={"error": "Email and password are required"})
    user = auth_service.login(request.email, request.password)
    return {"token": auth_service.create_token(user), "user": user.projection()}


@app.get("/me")
def me(user: User = Depends(current_user)):
    return user.projection()


@app.post("/get-video-info")
def get_video_info(request: VideoInfoRequest, user: User = Depends(current_user)):
    """Resolve the video, fetch its thumbnail, extract the palette and scrape the title."""
    info = video_info_service.get_video_info(request.youtube_url)
    logger.info("Video info for user %s: %s (%d colors)", user.user_id, info.thumbnail_url, len(info.colors))
    return info.to_response()


@app.post("/upload-to-imgbb")
def upload_to_imgbb(request: UploadRequest, user: User = Depends(current_user)):
    """Relay an exported poster to imgbb and record the hosted URL for the user."""
    if not request.image_data or not request.filename:
        raise UploadRelayFailure("Image data and filename are required.", status_code=400)

    url = imgbb_service.upload(request.image_data, request.filename)
    user_store.append_poster(user.user_id, url)
    logger.info("Stored poster %s for user %s", url, user.user_id)
    return {"message": "Image uploaded and saved successfully.", "url": url}


@app.post("/update-to-premium")
def update_to_premium(user: User = Depends(current_user)):
    if user.is_premium:
        raise AlreadyPremium()
    updated = user_store.set_premium(user.user_id) or user
    logger.info("User %s upgraded to premium", user.user_id)
    return {"message": "Premium upgrade successful!", "user": updated.projection()}


@app.get("/get-posters")
def get_posters(user: User = Depends(premium_user)):
    return {"posters": list(user.posters)}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)

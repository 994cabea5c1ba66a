from fastapi import FastAPI, APIRouter
from fastapi.staticfiles import StaticFiles
from dotenv import load_dotenv
from starlette.middleware.cors import CORSMiddleware
import os
import logging
from pathlib import Path

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

from bootstrap import run_bootstrap
from routers import (
    auth_admin,
    downloads,
    events_admin,
    members_admin,
    notifications,
    outer_college,
    public,
    registrations,
)
from utils import UPLOAD_DIR, ensure_upload_dirs

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

ensure_upload_dirs()

app = FastAPI(title="College Events API", version="1.0.0")
api_router = APIRouter(prefix="/api")

# Mount static files for uploads
app.mount("/uploads", StaticFiles(directory=str(UPLOAD_DIR)), name="uploads")


# ==================== STARTUP ====================
@app.on_event("startup")
async def startup_event():
    run_bootstrap()
    logger.info("Upload directory: %s", UPLOAD_DIR)


# /events/public must be registered before /events/{event_id}
api_router.include_router(public.router)
api_router.include_router(auth_admin.router)
api_router.include_router(events_admin.router)
api_router.include_router(registrations.router)
api_router.include_router(outer_college.router)
api_router.include_router(notifications.router)
api_router.include_router(members_admin.router)
api_router.include_router(downloads.router)

app.include_router(api_router)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=os.environ.get('CORS_ORIGINS', '*').split(','),
    allow_methods=["*"],
    allow_headers=["*"],
)

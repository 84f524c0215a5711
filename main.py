import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from config import CORS_ALLOW_HEADERS, LOG_LEVEL
from database import engine, Base, SessionLocal

# --- IMPORT MODELS (registers every table on Base) ---
from models.sheets import Sheet
from models.students import Student
from models.sessions import SessionRecord
from models.exams import Exam, ExamResult
from models.users import AuthIdentity, User, UserRole, UserStudent

# --- IMPORT ROUTERS (APIs) ---
from routers import auth, bulk_import, parent, sheets
from seed import seed_data

# ✅ Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# --- CREATE DATABASE TABLES ---
Base.metadata.create_all(bind=engine)


def seed_defaults():
    """Default sheets and the admin account, created once."""
    db = SessionLocal()
    try:
        seed_data(db)
    except Exception as e:
        db.rollback()
        logger.error("Seeding failed: %s", e)
        raise
    finally:
        db.close()


seed_defaults()

app = FastAPI(title="Follow-Up Portal")

# ==========================================
# ✅ CORS MIDDLEWARE (upload page may live on any origin)
# ==========================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=CORS_ALLOW_HEADERS,
)


# Import endpoints answer malformed bodies in their own {success, error} shape
@app.exception_handler(RequestValidationError)
async def validation_handler(request: Request, exc: RequestValidationError):
    if request.url.path.startswith(bulk_import.router.prefix):
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": bulk_import.validation_message(exc)},
        )
    return await request_validation_exception_handler(request, exc)


# --- REGISTER ROUTERS ---
app.include_router(auth.router)
app.include_router(sheets.router)
app.include_router(bulk_import.router)
app.include_router(parent.router)


@app.get("/health")
def health():
    return {"status": "ok"}

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from booking_backend.bootstrap import seed_default_admin
from booking_backend.booking.errors import BookingError
from booking_backend.core import config
from booking_backend.database import Base, SessionLocal, engine, ensure_appointment_schema
from booking_backend.models import admin, appointment, customer  # noqa: F401
from booking_backend.routes import appointment_routes, auth_routes, customer_routes

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

config.validate_runtime_config()

app = FastAPI(title='Appointment Booking API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')
        return

    if not config.SEED_DEFAULT_ADMIN:
        return

    db = SessionLocal()
    try:
        seed_default_admin(db)
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Failed to initialize default admin user.')
    finally:
        db.close()


@app.exception_handler(BookingError)
async def handle_booking_error(request: Request, exc: BookingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={'detail': exc.message})


@app.exception_handler(SQLAlchemyError)
async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error('Database error while handling %s %s', request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={'detail': 'Database unavailable. Verify DATABASE_URL and database credentials.'},
    )


@app.get('/')
def root():
    return {'status': 'Appointment Booking API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(customer_routes.router, prefix='/customers')
app.include_router(appointment_routes.router, prefix='/appointments')

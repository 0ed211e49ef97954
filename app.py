import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from errors import ReservationError, StorageFailure, reservation_error_handler
from logging_config import setup_logging
from routes.assignment_route import assignment_router
from routes.reconcile_route import reconcile_router
from routes.reservation_route import reservation_router
from routes.table_route import table_router
from scheduler import start_scheduler

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = start_scheduler()
    app.state.scheduler = scheduler
    yield
    if scheduler is not None:
        scheduler.shutdown(wait=False)


app = FastAPI(title="Restaurant Tables", lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ReservationError, reservation_error_handler)


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    return await reservation_error_handler(request, StorageFailure(str(exc)))


# /tables/available has to be matched before /tables/{id}
app.include_router(assignment_router)
app.include_router(table_router)
app.include_router(reservation_router)
app.include_router(reconcile_router)


@app.get("/")
async def base_path():
    """
    Root endpoint to verify that the API is running.

    Returns:
        dict: A success message.
    """
    return {"success": True}

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from eduhouse.api.v1.router import api_router
from eduhouse.core.config import settings
from eduhouse.db.session import SessionLocal
from eduhouse.services.bootstrap_service import ensure_reference_data


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    db = SessionLocal()
    try:
        ensure_reference_data(db)
        db.commit()
    except Exception as exc:  # noqa: BLE001
        db.rollback()
        logger.warning('Bootstrap seed skipped: %s', exc)
    finally:
        db.close()

    yield


app = FastAPI(
    title='Edu-House Assessment API',
    version='0.1.0',
    openapi_url='/api/v1/openapi.json',
    docs_url='/api/v1/docs',
    redoc_url='/api/v1/redoc',
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.include_router(api_router, prefix='/api/v1')


@app.exception_handler(IntegrityError)
async def integrity_error_handler(_: Request, exc: IntegrityError) -> JSONResponse:
    # constraint violations the services did not map themselves
    logger.warning('Integrity error: %s', exc.orig)
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={'detail': 'Conflicting database state'})


@app.get('/')
def root() -> dict[str, str]:
    return {'service': 'eduhouse-assessment-api', 'status': 'running'}

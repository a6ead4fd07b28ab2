import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from scidatahub.core import config
from scidatahub.database import Database, utcnow
from scidatahub.models import submission, user  # noqa: F401  registers tables on Base
from scidatahub.routes import auth_routes, data_routes, review_routes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

app = FastAPI(title='SciDataHub API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def open_database() -> None:
    config.validate_runtime_config()
    database = Database(config.DATABASE_URL, echo=config.SQL_ECHO)
    app.state.database = database
    try:
        database.create_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.on_event('shutdown')
def close_database() -> None:
    database = getattr(app.state, 'database', None)
    if database is not None:
        database.dispose()
        logger.info('Database connections closed')


@app.get('/')
def root():
    return {'status': 'SciDataHub API Running'}


@app.get('/health')
def health():
    return {'status': 'ok', 'timestamp': utcnow().isoformat()}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(data_routes.router, prefix='/data')
app.include_router(review_routes.router, prefix='/review')

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError

from config import Settings, load_settings
from database import connect, ensure_indexes, serialize
from errors import StoreError, ValidationError
from retention import ReadingStore
from schemas import Reading, ThresholdUpdate
from thresholds import ThresholdStore

logger = logging.getLogger(__name__)


def attach_stores(app: FastAPI, db: Database, settings: Settings) -> None:
    try:
        ensure_indexes(db)
    except PyMongoError:
        # serve anyway; store errors surface per request
        logger.warning("Could not create indexes", exc_info=True)
    app.state.readings = ReadingStore(db, limit=settings.reading_retention)
    app.state.thresholds = ThresholdStore(db, default_device_name=settings.default_device_name)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if database is not None:
            yield
            return
        client, db = connect(settings.database_url, settings.database_name)
        attach_stores(app, db, settings)
        try:
            yield
        finally:
            client.close()
            logger.info("MongoDB connection closed")

    app = FastAPI(title="Climate Control IoT Server", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if database is not None:
        attach_stores(app, database, settings)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)})

    register_routes(app)
    return app


def get_readings(request: Request) -> ReadingStore:
    return request.app.state.readings


def get_thresholds(request: Request) -> ThresholdStore:
    return request.app.state.thresholds


def register_routes(app: FastAPI) -> None:

    @app.get("/", response_class=PlainTextResponse)
    def read_root():
        return "IoT Server is running"

    # Readings from devices

    async def read_reading(request: Request) -> Reading:
        """Build a Reading from a JSON or form-encoded body. An empty body is an empty reading."""
        if request.headers.get("content-type", "").startswith("application/x-www-form-urlencoded"):
            form = await request.form()
            return Reading.model_validate(dict(form))
        raw = await request.body()
        return Reading.model_validate_json(raw) if raw else Reading()

    @app.post("/iotdata", response_class=PlainTextResponse)
    async def ingest_reading(request: Request, readings: ReadingStore = Depends(get_readings)):
        try:
            payload = await read_reading(request)
        except ValueError:
            # bodies that cannot be cast are reported like failed writes
            logger.warning("Rejected reading body", exc_info=True)
            return PlainTextResponse("Error saving data", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
        try:
            await run_in_threadpool(readings.ingest, payload)
        except StoreError as e:
            return PlainTextResponse(str(e), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return PlainTextResponse("Data stored successfully", status_code=status.HTTP_201_CREATED)

    @app.get("/iotdata/latest")
    def latest_reading(readings: ReadingStore = Depends(get_readings)):
        try:
            return serialize(readings.latest())
        except StoreError as e:
            return PlainTextResponse(str(e), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.get("/iotdata/recent")
    def recent_readings(readings: ReadingStore = Depends(get_readings)):
        try:
            return [serialize(d) for d in readings.recent()]
        except StoreError as e:
            return PlainTextResponse(str(e), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    # Thresholds, one record per device

    @app.post("/api/thresholds")
    def set_threshold(body: Optional[ThresholdUpdate] = None, thresholds: ThresholdStore = Depends(get_thresholds)):
        body = body or ThresholdUpdate()
        doc = thresholds.upsert(body.device_name, body.temperature, body.humidity)
        return {"message": "Threshold saved", "threshold": serialize(doc)}

    @app.get("/api/latest_threshold")
    def latest_threshold(device_name: Optional[str] = None, thresholds: ThresholdStore = Depends(get_thresholds)):
        doc = thresholds.get_or_default(device_name)
        return {
            "device_name": doc["device_name"],
            "temperature": doc["temperature"],
            "humidity": doc["humidity"],
        }

    @app.get("/api/thresholds")
    def list_thresholds(thresholds: ThresholdStore = Depends(get_thresholds)):
        return [serialize(d) for d in thresholds.list_all()]


app = create_app()

if __name__ == "__main__":
    import uvicorn
    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host=settings.host, port=settings.port)

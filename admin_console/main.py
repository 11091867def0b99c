# admin_console/main.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from admin_console.api.v1.router import api_router_v1
from admin_console.core.config import settings
from admin_console.services.catalog_api import CatalogAPIService

# --- Логирование ---
log_level = settings.LOGGING_LEVEL.upper()
logging.basicConfig(
    level=log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
# запросы к каталогу и access-лог uvicorn только от WARNING
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)
logger.info(f"Admin console backend starting, log level {log_level}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Один httpx-клиент каталога на процесс; закрывается при остановке."""
    catalog_service = CatalogAPIService()
    app.state.catalog_service = catalog_service
    logger.info(f"Catalog backend: {catalog_service.base_url} (frontend key {'set' if catalog_service.frontend_key else 'not set'})")
    try:
        yield
    finally:
        await catalog_service.close_client()
        logger.info("Admin console backend stopped.")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Бэкенд админ-консоли каталога: прокси к REST API каталога и логика страниц консоли.",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

# --- CORS: консоль (Next.js) и дополнительные источники из настроек ---
origins = [
    settings.CONSOLE_URL,
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    *settings.CONSOLE_EXTRA_ORIGINS,
]
origins = list(dict.fromkeys(origin.strip('/# ') for origin in origins if origin))
logger.info(f"Console origins allowed by CORS: {origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*", "X-Admin-API-Key"],
)


def jsonable_errors(errors):
    # в ctx pydantic v2 кладёт сами исключения, их JSONResponse не сериализует
    return jsonable_encoder(errors, custom_encoder={Exception: str})


# --- Ошибки ---
@app.exception_handler(RequestValidationError)
async def console_input_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Invalid console input for {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Ошибка валидации входных данных", "errors": jsonable_errors(exc.errors())},
    )

@app.exception_handler(ValidationError)
async def catalog_data_error_handler(request: Request, exc: ValidationError):
    # ответ бэкенда каталога не лёг в модель
    logger.error(f"Catalog data did not match the model for {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Некорректные данные от бэкенда каталога", "errors": jsonable_errors(exc.errors())},
    )

@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unexpected error for {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Внутренняя ошибка сервера."},
    )


app.include_router(api_router_v1, prefix=settings.API_V1_STR)


@app.get("/", tags=["Root"], summary="Health check")
async def read_root():
    """Проверка, что сервис жив (без обращения к бэкенду каталога)."""
    return {"status": "ok", "project": settings.PROJECT_NAME, "catalog_api": settings.CATALOG_BASE_URL}

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from storefront.version import VERSION
from storefront.api.v1 import routes_auth, routes_users, products, orders, order_items
from storefront.core.config import settings
from storefront.core.errors import ApplicationError
from storefront.core.logging import configure_logging, get_logger
from prometheus_fastapi_instrumentator import Instrumentator

logger = get_logger(__name__)

# Create instrumentator first
instrumentator = Instrumentator()

app = FastAPI(title='Storefront Service', version=VERSION)

# Instrument the app BEFORE adding routes or middleware
instrumentator.instrument(app).expose(
    app,
    include_in_schema=False,
    endpoint="/storefront/metrics",
    should_gzip=True,
)

@app.exception_handler(ApplicationError)
async def application_error_handler(request: Request, exc: ApplicationError):
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={'detail': exc.message, **exc.details})

@app.get('/health')
def health(): return {'status': 'ok'}

@app.get('/storefront/health')
def storefront_health(): return {'status': 'ok'}

@app.get('/v1/_info')
def info(): return {'service': 'storefront', 'version': VERSION}

@app.on_event("startup")
async def startup_event():
    configure_logging(settings)
    settings.validate_runtime()
    logger.info("startup", env=settings.APP_ENV, access_policy=settings.ACCESS_POLICY,
                recalc_in_transaction=settings.RECALC_IN_TRANSACTION,
                routes=sorted(r.path for r in app.routes if hasattr(r, "methods")))

app.include_router(routes_auth.router,  prefix='/storefront/v1/auth',        tags=['auth'])
app.include_router(routes_users.router, prefix='/storefront/v1/users',       tags=['users'])
app.include_router(products.router,     prefix='/storefront/v1/products',    tags=['products'])
app.include_router(orders.router,       prefix='/storefront/v1/orders',      tags=['orders'])
app.include_router(order_items.router,  prefix='/storefront/v1/order-items', tags=['order-items'])

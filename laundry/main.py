import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import laundry.models  # noqa: F401  registers every table on Base
from laundry import config
from laundry.database import Base, engine
from laundry.logging_config import setup_logging
from laundry.routers import account, admin, coupons, drivers, integrations, orders, products, slots
from laundry.services.events import order_events

setup_logging()
logger = logging.getLogger("laundry")

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=config.APP_NAME,
    description="Laundry pickup and delivery: scheduling, orders, drivers and payments",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS - keep permissive for local clients; restrict in prod
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(slots.router)
app.include_router(products.router)
app.include_router(coupons.router)
app.include_router(orders.router)
app.include_router(drivers.router)
app.include_router(account.router)
app.include_router(admin.router)
app.include_router(integrations.router)


def _log_order_change(event):
    logger.debug("order %s is now %s", event.order_id, event.status)


order_events.subscribe(_log_order_change)


@app.get("/health")
def health():
    return {"status": "healthy"}


# Proper JSON error with correct status code
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"status_code": exc.status_code, "detail": exc.detail}},
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("laundry.main:app", host="0.0.0.0", port=8000, reload=True)

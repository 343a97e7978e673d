"""
Restaurant Requests - supply orders and maintenance tickets
for Monsieur Mouettes, Gigio, Tigers and La Tétrade
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
from pathlib import Path
import os
import logging

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Restaurant Requests",
    description="Orders and maintenance requests shared between the restaurants and the maintenance team",
    version="1.0.0"
)

from routes.auth_routes import auth_router  # noqa: E402
from routes.orders_routes import orders_router  # noqa: E402
from routes.maintenance_routes import maintenance_router  # noqa: E402
from routes.reports_routes import reports_router  # noqa: E402
from routes.notifications_routes import notifications_router  # noqa: E402

for router in (auth_router, orders_router, maintenance_router, reports_router, notifications_router):
    app.include_router(router)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=os.environ.get('CORS_ORIGINS', '*').split(','),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Liveness probe"""
    return {"status": "healthy", "service": "restaurant-requests"}


@app.on_event("startup")
async def open_database():
    from database import init_postgres_db
    await init_postgres_db()
    logger.info("🚀 Restaurant Requests started")


@app.on_event("shutdown")
async def close_database():
    from database import close_postgres_db
    await close_postgres_db()
    logger.info("🛑 Restaurant Requests stopped")

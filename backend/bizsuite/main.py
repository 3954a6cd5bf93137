"""BizSuite Service - Main Application

Multi-tenant small-business API: quotes, invoices, purchasing, payroll,
CRM, inventory and analytics.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from bizsuite.core.config import settings
from bizsuite.core.database import init_db, engine
from bizsuite.api import (
    analytics,
    auth,
    companies,
    contacts,
    crm,
    inventory,
    invoices,
    payroll,
    purchase_orders,
    purchases,
    quotes,
    recurring_invoices,
)
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting BizSuite Service...")
    logger.info(f"Database: {settings.DATABASE_URL}")
    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down BizSuite Service...")
    await engine.dispose()
    logger.info("Database connection closed")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Quotes, invoicing, purchasing, payroll and CRM for small businesses",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(companies.router)
app.include_router(contacts.router)
app.include_router(quotes.router)
app.include_router(invoices.router)
app.include_router(recurring_invoices.router)
app.include_router(purchase_orders.router)
app.include_router(purchases.router)
app.include_router(payroll.router)
app.include_router(crm.router)
app.include_router(inventory.router)
app.include_router(analytics.router)


@app.get("/")
async def root():
    """Root endpoint with service information"""
    return {
        "service": settings.APP_NAME,
        "version": settings.VERSION,
        "status": "running",
        "endpoints": {
            "auth": "/auth",
            "companies": "/api/companies",
            "contacts": "/api/contacts",
            "quotes": "/api/quotes",
            "invoices": "/api/invoices",
            "recurring_invoices": "/api/recurring-invoices",
            "purchase_orders": "/api/purchase-orders",
            "purchases": "/api/purchases",
            "payroll": "/api/payroll",
            "crm": "/api/crm",
            "inventory": "/api/inventory",
            "analytics": "/api/analytics",
        },
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bizsuite.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )

"""
Money Buddy Ledger: FastAPI Application.

This is the entry point for the application.
All routers are registered here.
"""

import logging

from fastapi import FastAPI

from money_buddy.config import get_settings
from money_buddy.api.health import router as health_router
from money_buddy.api.accounts import router as accounts_router
from money_buddy.api.transactions import router as transactions_router
from money_buddy.api.savings import router as savings_router
from money_buddy.api.users import router as users_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Ledger with escrowed conditional payments and locked savings",
)

# Register routers
app.include_router(health_router)
app.include_router(accounts_router)
app.include_router(transactions_router)
app.include_router(savings_router)
app.include_router(users_router)

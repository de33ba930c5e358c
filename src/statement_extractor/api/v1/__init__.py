"""API version 1 routes."""

from fastapi import APIRouter

from statement_extractor.api.v1 import statements, transactions

router = APIRouter(prefix="/api/v1")

# Include routers
router.include_router(transactions.router)
router.include_router(statements.router)

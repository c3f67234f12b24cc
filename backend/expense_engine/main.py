from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from expense_engine.config import settings
from expense_engine.logging_config import configure_logging

configure_logging(settings.LOG_LEVEL)

app = FastAPI(
    title=settings.APP_NAME,
    description="Expense extraction from statements, receipts and CSV exports",
    version="0.1.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    return {
        "message": settings.APP_NAME,
        "version": "0.1.0",
        "status": "running"
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

# Import routers
from expense_engine.routers import process, export, reference

# Include routers
app.include_router(process.router)
app.include_router(export.router)
app.include_router(reference.router)

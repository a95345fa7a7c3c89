import logging

from fastapi import FastAPI
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from ParkPermitAPI.config import LOG_LEVEL
from ParkPermitAPI.database import engine, Base
from ParkPermitAPI.routes import (
    users_router, parks_router, applications_router, invoices_router, catalog_router, dashboard_router,
    permits_router,
)

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup logic
    logging.info("App startup event")
    yield
    # Shutdown logic
    logging.info("App shutdown event")


app = FastAPI(title="Park Special Use Permits", lifespan=lifespan)

# Create all the tables in the database (make sure models are imported)
Base.metadata.create_all(bind=engine)

# Include the staff account and login routes
app.include_router(users_router)

# Include the park routes
app.include_router(parks_router)

# Include the application review routes
app.include_router(applications_router)

# Include the invoice routes
app.include_router(invoices_router)

# Include the fee and insurance lookup routes
app.include_router(catalog_router)

# Include the dashboard routes
app.include_router(dashboard_router)

# Include the permit and permit template routes
app.include_router(permits_router)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Root endpoint for testing
@app.get("/")
def read_root():
    return {"message": "Welcome to the Park Permit API"}

# Run the application (for development)
if __name__ == "__main__":
    uvicorn.run("ParkPermitAPI.main:app", host="0.0.0.0", port=8000, log_level="debug")

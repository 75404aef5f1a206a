from contextlib import asynccontextmanager

from fastapi import FastAPI
from vasooly.core.config import settings
from vasooly.core.logging import configure_logging
from vasooly.db.mongo import connect_to_mongo, disconnect_from_mongo
from vasooly.api.v1.api import api_router

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_mongo()
    yield
    await disconnect_from_mongo()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan
)

@app.get("/")
async def root():
    return {"message": "Welcome to Vasooly API"}

app.include_router(api_router, prefix=settings.API_V1_STR)

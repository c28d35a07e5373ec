from fastapi import FastAPI
from .db import Base, engine
from .models import incidents
from .routers import incidents as incidents_router

Base.metadata.create_all(bind=engine)

app = FastAPI(title="HRFE Incidents")

app.include_router(incidents_router.router, prefix="/incidents", tags=["incidents"])

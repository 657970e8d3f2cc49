from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from conjuga.database import init_db
from conjuga.routers import drill, srs, families


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Conjuga Drill API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(drill.router)
app.include_router(srs.router)
app.include_router(families.router)


@app.get("/")
def root():
    return {"app": "conjuga", "version": "0.1.0"}

# verimail/api.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from verimail.handler import verify_email
from verimail.pipeline import close_pipeline


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_pipeline()


app = FastAPI(title="verimail", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}


@app.post("/verify", tags=["verify"])
async def verify(request: Request):
    body = await request.body()
    response = await verify_email(body)
    return JSONResponse(
        content=response.body,
        status_code=response.status_code,
        headers=response.headers,
    )

"""FastAPI application for the federation service."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from sqlalchemy.orm import sessionmaker

from federation import jwt_service
from federation.db import LocalUser, SessionLocal
from federation.errors import AuthenticationFailure, ErrorKind
from federation.exchange import ExchangeOrchestrator, Outcome
from federation.http_client import close_http_client
from federation.providers import PROVIDERS, get_provider
from federation.store import AppResolver, UserStore

logger = logging.getLogger("api")

FAILURE_STATUS = {
    ErrorKind.EXCHANGE_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.PROVISIONING_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.ACCOUNT_INACTIVE: status.HTTP_403_FORBIDDEN,
    ErrorKind.STORE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class UserResponse(BaseModel):
    id: str
    appid: str
    identifier: str
    name: str
    email: str | None = None
    picture: str | None = None


class ExchangeResponse(BaseModel):
    token: str
    created: bool
    user: UserResponse


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    close_http_client()


def create_app(session_factory: sessionmaker | None = None, http_client=None) -> FastAPI:
    session_factory = session_factory or SessionLocal
    store = UserStore(session_factory)
    apps = AppResolver(session_factory)
    orchestrators = {
        action: ExchangeOrchestrator(get_provider(action, http_client), store, apps) for action in PROVIDERS
    }

    app = FastAPI(
        title="Federation Service",
        description="Third-party OAuth login and local account reconciliation",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    cors_origins = os.getenv("FEDERATION_CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in cors_origins],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def get_current_user(authorization: str | None = Header(None)) -> LocalUser:
        if not authorization or not authorization.startswith("Bearer "):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing or invalid token")

        payload = jwt_service.decode(authorization.removeprefix("Bearer ").strip())
        if not payload:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

        user = store.get(payload["sub"])
        if not user:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
        if not user.active:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ErrorKind.ACCOUNT_INACTIVE.value)
        return user

    @app.get("/health")
    def health():
        return {"status": "ok", "service": "federation", "providers": sorted(PROVIDERS)}

    @app.get("/users/me", response_model=UserResponse)
    def get_me(user: LocalUser = Depends(get_current_user)):
        return UserResponse(
            id=user.id,
            appid=user.appid,
            identifier=user.identifier,
            name=user.name,
            email=user.email,
            picture=user.picture,
        )

    # Sync handler: runs in the worker thread pool, provider calls block
    @app.get("/{action}", response_model=ExchangeResponse)
    def oauth_callback(action: str, request: Request):
        orchestrator = orchestrators.get(action)
        if orchestrator is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown provider: {action}")

        try:
            result = orchestrator.attempt(str(request.url), request.query_params)
        except AuthenticationFailure as e:
            raise HTTPException(status_code=FAILURE_STATUS[e.kind], detail={"kind": e.kind.value, "message": str(e)})

        if result.outcome != Outcome.AUTHENTICATED:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"kind": result.outcome.value, "message": "Authentication did not occur"},
            )

        principal = result.principal
        return ExchangeResponse(
            token=jwt_service.encode(principal),
            created=result.created,
            user=UserResponse(
                id=principal.user_id,
                appid=principal.appid,
                identifier=principal.identifier,
                name=principal.name,
                email=principal.email,
                picture=principal.picture,
            ),
        )

    return app

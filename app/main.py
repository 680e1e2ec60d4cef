import asyncio
from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Query, status, APIRouter
from fastapi.middleware.cors import CORSMiddleware
from app.api.v1.routes import (
    admin as admin_router,
    auth as auth_router,
    categories as categories_router,
    events as events_router,
    feedback as feedback_router,
    health as health_router,
    registrations as registrations_router,
    users as users_router,
)
from app.auth import resolve_identity
from app.cache.redis_client import cache
from app.core.config import settings
from app.core.errors import is_failure, register_exception_handlers
from app.core.logging import logger
from app.core.rate_limit import limiter
from app.db.session import engine, Base, AsyncSessionLocal
from app.events.consumer import run_worker
from app.middleware.security_headers import SecurityHeadersMiddleware
from app.websocket.manager import manager
import app.db.models  # noqa: F401  registers every table on Base.metadata

app = FastAPI(title="EventEase")

app.state.limiter = limiter
register_exception_handlers(app)

app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router.router)
api_router.include_router(categories_router.router)
api_router.include_router(events_router.router)
api_router.include_router(registrations_router.router)
api_router.include_router(feedback_router.router)
api_router.include_router(users_router.router)
api_router.include_router(admin_router.router)
api_router.include_router(health_router.router)

app.include_router(api_router)


@app.on_event("startup")
async def on_startup():
    # Alembic owns the schema in deployed environments; create_all covers fresh local runs
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    if settings.NOTIFICATIONS_ENABLED:
        # The worker service runs the consumer in docker-compose; this covers single-process runs
        asyncio.create_task(run_worker())
    logger.info(f"EventEase started ({settings.ENVIRONMENT})")


@app.on_event("shutdown")
async def on_shutdown():
    await cache.close()
    await engine.dispose()
    logger.info("EventEase stopped")


@app.websocket("/ws/notifications/{user_id}")
async def websocket_endpoint(websocket: WebSocket, user_id: str, token: str = Query(...)):
    """
    WebSocket endpoint with JWT authentication.
    Clients must provide a valid access token as a query parameter.
    Example: ws://localhost:8000/ws/notifications/{user_id}?token=your_jwt_token

    The token goes through the same checks as HTTP requests, so a revoked
    token or a blocked account cannot subscribe.
    """
    async with AsyncSessionLocal() as session:
        identity = await resolve_identity(session, token)

    if is_failure(identity):
        logger.warning(f"WebSocket connection rejected for user {user_id}: {identity.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    if str(identity.id) != user_id:
        logger.warning(f"WebSocket connection attempt: token user_id {identity.id} does not match path user_id {user_id}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(user_id, websocket)
    logger.info(f"WebSocket connection established for user {user_id}")
    try:
        while True:
            # Nothing is expected from the client; this keeps the socket open
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for user {user_id}")
    finally:
        await manager.disconnect(user_id, websocket)

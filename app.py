# app.py
# Group leaderboard API: friend groups record match results, winners climb the table

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from group_rank.config import Settings, load_settings
from group_rank.db import SheetStore
from group_rank.errors import GroupRankError, NotFoundError, PersistenceError, ValidationError
from group_rank.groups import GroupRegistry
from group_rank.leaderboard import get_rankings
from group_rank.logging_config import get_logger, setup_logging
from group_rank.matches import MatchRecorder
from group_rank.rules import valid_group_code
from group_rank.schemas import (
    CreateGroupRequest,
    CreateGroupResponse,
    MatchesResponse,
    PlayersResponse,
    RankingsResponse,
    RecordMatchRequest,
    SuccessResponse,
    VerifyCodeRequest,
)

log = get_logger("group_rank.app")


# --- Dependencies: everything hangs off app.state, built once in the lifespan ---
def get_registry(request: Request) -> GroupRegistry:
    return request.app.state.registry


def get_recorder(request: Request) -> MatchRecorder:
    return request.app.state.recorder


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = SheetStore(settings.database_path)
        await store.init()
        registry = GroupRegistry(store)
        app.state.store = store
        app.state.registry = registry
        app.state.recorder = MatchRecorder(
            registry,
            audit_log=settings.audit_log,
            write_attempts=settings.match_write_attempts,
        )
        log.info("Group Rank API ready (db=%s audit=%s)", settings.database_path, settings.audit_log)
        try:
            yield
        finally:
            await store.close()

    app = FastAPI(title="Group Rank API", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(GroupRankError)
    async def group_rank_error(request: Request, exc: GroupRankError):
        if isinstance(exc, PersistenceError):
            # Store details stay in the log
            log.error("%s %s failed: %s", request.method, request.url.path, exc.message)
            return JSONResponse(status_code=exc.status_code, content={"error": "Internal server error"})
        log.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def bad_request_body(request: Request, exc: RequestValidationError):
        log.info("%s %s malformed request: %s", request.method, request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.get("/")
    def read_root():
        return {"message": "Group Rank backend"}

    # Groups
    @app.post("/groups", response_model=CreateGroupResponse)
    @app.post("/groups/create", response_model=CreateGroupResponse, include_in_schema=False)
    async def create_group(payload: CreateGroupRequest, registry: GroupRegistry = Depends(get_registry)):
        group = await registry.register(payload.groupCode, payload.players)
        return CreateGroupResponse(groupCode=group.code)

    @app.get("/groups/{code}/players", response_model=PlayersResponse)
    async def group_players(code: str, registry: GroupRegistry = Depends(get_registry)):
        return PlayersResponse(players=await registry.lookup_players(code))

    @app.get("/groups/{code}/matches", response_model=MatchesResponse)
    async def group_matches(code: str, limit: int = 10, recorder: MatchRecorder = Depends(get_recorder)):
        records = await recorder.recent_matches(code, limit=min(max(limit, 1), 100))
        return {"matches": [r.to_dict() for r in records]}

    # Matches
    @app.post("/match", response_model=SuccessResponse)
    async def record_match(payload: RecordMatchRequest, recorder: MatchRecorder = Depends(get_recorder)):
        await recorder.record_match(payload.groupCode, payload.players)
        return SuccessResponse()

    # Rankings
    @app.get("/rankings", response_model=RankingsResponse)
    async def rankings(groupCode: Optional[str] = None, registry: GroupRegistry = Depends(get_registry)):
        rows = await get_rankings(registry, groupCode)
        return {"rankings": [r.to_dict() for r in rows]}

    # Login-style check of a group code
    @app.post("/auth/verify", response_model=SuccessResponse)
    async def verify_code(payload: VerifyCodeRequest, registry: GroupRegistry = Depends(get_registry)):
        if not valid_group_code(payload.code):
            raise ValidationError("Invalid code format")
        if not await registry.exists(payload.code):
            raise NotFoundError("Invalid group code")
        return SuccessResponse()

    return app


_settings = load_settings()
setup_logging(_settings.log_level)
app = create_app(_settings)


# --- Entrypoint ---
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=_settings.host, port=_settings.port)

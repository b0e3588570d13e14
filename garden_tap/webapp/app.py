"""REST API consumed by the web mini-app.

The player is identified by the trusted ``X-User-Id`` header set by the
front proxy. Request and response bodies use camelCase field names.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from garden_tap.config import SETTINGS, setup_logging
from garden_tap.constants import LEADERBOARD_SIZE, PurchaseStatus, ReferralStatus
from garden_tap.errors import GameError
from garden_tap.services import exchange, helpers, social, storage
from garden_tap.services.progression import ProgressionEngine

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    "not_found": 404,
    "not_owned": 403,
    "no_tool_equipped": 403,
    "already_owned": 409,
    "insufficient_resources": 409,
    "transient": 503,
    "catalog": 500,
}


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TapRequest(CamelModel):
    location_id: int = Field(alias="locationId")


class ToolRequest(CamelModel):
    tool_id: int = Field(alias="toolId")


class EquipRequest(CamelModel):
    character_id: int = Field(alias="characterId")
    tool_id: int = Field(alias="toolId")


class HelperUpgradeRequest(CamelModel):
    helper_id: int = Field(alias="helperId")


class StorageUpgradeRequest(CamelModel):
    location_id: int = Field(alias="locationId")


class EnergyPurchaseRequest(CamelModel):
    package_id: int = Field(alias="packageId")


class ReferralApplyRequest(CamelModel):
    code: str


def _status_payload(status: PurchaseStatus) -> Dict[str, Any]:
    return {"success": status is PurchaseStatus.OK, "status": status.value}


def get_engine(request: Request) -> ProgressionEngine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="engine not ready")
    return engine


def get_player_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    player_id = (x_user_id or "").strip()
    if not player_id:
        raise HTTPException(status_code=401, detail="missing X-User-Id header")
    return player_id


def create_app(engine: Optional[ProgressionEngine] = None) -> FastAPI:
    """Build the API; without ``engine`` one is created from the database on startup."""

    app = FastAPI(title="Garden Tap API")
    app.state.engine = engine

    @app.on_event("startup")
    async def startup() -> None:
        if app.state.engine is None:
            from garden_tap.main import build_engine

            setup_logging()
            app.state.engine = await build_engine()

    @app.exception_handler(GameError)
    async def game_error_handler(request: Request, exc: GameError) -> JSONResponse:
        status_code = ERROR_STATUS.get(exc.kind, 400)
        if status_code >= 500:
            logger.warning("Request failed: %s", exc, extra={"path": request.url.path, "kind": exc.kind})
        return JSONResponse(status_code=status_code, content={"error": exc.kind, "detail": str(exc)})

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/player/progress")
    async def player_progress(
        player_id: str = Depends(get_player_id), engine: ProgressionEngine = Depends(get_engine)
    ) -> Dict[str, Any]:
        state = await engine.get_player_state(player_id)
        return engine.describe(state)

    @app.post("/api/player/tap")
    async def player_tap(
        payload: TapRequest,
        player_id: str = Depends(get_player_id),
        engine: ProgressionEngine = Depends(get_engine),
    ) -> Dict[str, Any]:
        result = await engine.tap(player_id, payload.location_id)
        return result.to_dict()

    @app.post("/api/player/upgrade-tool")
    async def player_upgrade_tool(
        payload: ToolRequest,
        player_id: str = Depends(get_player_id),
        engine: ProgressionEngine = Depends(get_engine),
    ) -> Dict[str, Any]:
        return {"success": await engine.buy_or_upgrade_tool(player_id, payload.tool_id)}

    @app.post("/api/player/equip-tool")
    async def player_equip_tool(
        payload: EquipRequest,
        player_id: str = Depends(get_player_id),
        engine: ProgressionEngine = Depends(get_engine),
    ) -> Dict[str, Any]:
        await engine.equip_tool(player_id, payload.character_id, payload.tool_id)
        return {"success": True, "characterId": payload.character_id, "toolId": payload.tool_id}

    @app.post("/api/player/update-energy")
    async def player_update_energy(
        player_id: str = Depends(get_player_id), engine: ProgressionEngine = Depends(get_engine)
    ) -> Dict[str, Any]:
        result = await engine.energy_refill(player_id)
        return result.to_dict()

    @app.get("/api/helpers/location/{location_id}")
    async def helpers_for_location(
        location_id: int,
        player_id: str = Depends(get_player_id),
        engine: ProgressionEngine = Depends(get_engine),
    ) -> Dict[str, Any]:
        items = await helpers.list_helpers(engine, player_id, location_id)
        return {"helpers": [item.to_dict() for item in items]}

    @app.post("/api/player/helpers/{helper_id}/buy")
    async def helpers_buy(
        helper_id: int,
        player_id: str = Depends(get_player_id),
        engine: ProgressionEngine = Depends(get_engine),
    ) -> Dict[str, Any]:
        return _status_payload(await helpers.buy_helper(engine, player_id, helper_id))

    @app.post("/api/helpers/upgrade")
    async def helpers_upgrade(
        payload: HelperUpgradeRequest,
        player_id: str = Depends(get_player_id),
        engine: ProgressionEngine = Depends(get_engine),
    ) -> Dict[str, Any]:
        return _status_payload(await helpers.upgrade_helper(engine, player_id, payload.helper_id))

    @app.post("/api/player/helpers/collect-income")
    async def helpers_collect(
        player_id: str = Depends(get_player_id), engine: ProgressionEngine = Depends(get_engine)
    ) -> Dict[str, Any]:
        income = await engine.collect_helper_income(player_id)
        return income.to_dict()

    @app.get("/api/player/storage/{location_id}")
    async def storage_info(
        location_id: int,
        player_id: str = Depends(get_player_id),
        engine: ProgressionEngine = Depends(get_engine),
    ) -> Dict[str, Any]:
        info = await storage.get_storage(engine, player_id, location_id)
        return info.to_dict()

    @app.post("/api/player/storage/upgrade")
    async def storage_upgrade(
        payload: StorageUpgradeRequest,
        player_id: str = Depends(get_player_id),
        engine: ProgressionEngine = Depends(get_engine),
    ) -> Dict[str, Any]:
        status = await storage.upgrade_storage(engine, player_id, payload.location_id)
        info = await storage.get_storage(engine, player_id, payload.location_id)
        return {**_status_payload(status), "storage": info.to_dict()}

    @app.post("/api/player/exchange/energy")
    async def exchange_energy(
        payload: EnergyPurchaseRequest,
        player_id: str = Depends(get_player_id),
        engine: ProgressionEngine = Depends(get_engine),
    ) -> Dict[str, Any]:
        return _status_payload(await exchange.buy_energy(engine, player_id, payload.package_id))

    @app.post("/api/player/locations/{location_id}/unlock")
    async def location_unlock(
        location_id: int,
        player_id: str = Depends(get_player_id),
        engine: ProgressionEngine = Depends(get_engine),
    ) -> Dict[str, Any]:
        return _status_payload(await exchange.unlock_location(engine, player_id, location_id))

    @app.get("/api/referral/code")
    async def referral_code(
        player_id: str = Depends(get_player_id), engine: ProgressionEngine = Depends(get_engine)
    ) -> Dict[str, Any]:
        return await social.referral_stats(engine, player_id)

    @app.post("/api/referral/apply-code")
    async def referral_apply(
        payload: ReferralApplyRequest,
        player_id: str = Depends(get_player_id),
        engine: ProgressionEngine = Depends(get_engine),
    ) -> Dict[str, Any]:
        status = await social.apply_referral_code(engine, player_id, payload.code)
        return {"success": status is ReferralStatus.OK, "status": status.value}

    @app.get("/api/leaderboard")
    async def leaderboard(
        limit: int = LEADERBOARD_SIZE, engine: ProgressionEngine = Depends(get_engine)
    ) -> Dict[str, Any]:
        entries = await social.leaderboard(engine, limit)
        return {
            "players": [
                {"id": entry.player_id, "level": entry.level, "experience": entry.experience} for entry in entries
            ]
        }

    return app


app = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run("garden_tap.webapp.app:app", host=SETTINGS.WEBAPP_HOST, port=SETTINGS.WEBAPP_PORT)

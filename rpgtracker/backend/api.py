"""FastAPI endpoints for encounters, participants and combat lifecycle."""

from __future__ import annotations

from typing import Any

from fastapi import Depends, FastAPI, Header, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .config import configure_logging, load_settings
from .errors import (
    ConflictError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    TrackerError,
    UnauthorizedError,
)
from .models import EncounterStatus, EncounterUpdate, HpUpdate, ParticipantCreate, ParticipantType
from .service import EncounterEngine, build_engine

_STATUS_BY_ERROR: tuple[tuple[type[TrackerError], int], ...] = (
    (NotFoundError, 404),
    (UnauthorizedError, 403),
    (InvalidArgumentError, 400),
    (InvalidStateError, 400),
    (ConflictError, 409),
)


def status_code_for(exc: TrackerError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateEncounterRequest(_CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)


class UpdateEncounterRequest(_CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    status: EncounterStatus | None = None


class AddParticipantRequest(_CamelModel):
    type: ParticipantType
    name: str = Field(min_length=1, max_length=100)
    character_id: str | None = None
    creature_id: str | None = None
    initiative: int = Field(ge=-10, le=50)
    initiative_roll: int | None = Field(default=None, ge=1, le=30)
    current_hp: int = Field(ge=1, le=1000)
    max_hp: int = Field(ge=1, le=1000)
    temp_hp: int | None = Field(default=None, ge=0, le=1000)
    ac: int = Field(ge=1, le=30)
    conditions: list[Any] | None = None
    notes: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def _check_consistency(self) -> "AddParticipantRequest":
        if self.current_hp > self.max_hp:
            raise ValueError("currentHp must not exceed maxHp")
        if self.type == ParticipantType.CHARACTER and self.creature_id:
            raise ValueError("creatureId is not allowed on a CHARACTER participant")
        if self.type == ParticipantType.CREATURE and self.character_id:
            raise ValueError("characterId is not allowed on a CREATURE participant")
        return self

    def to_create(self) -> ParticipantCreate:
        return ParticipantCreate(**self.model_dump())


class UpdateHpRequest(_CamelModel):
    current_hp: int | None = None
    temp_hp: int | None = None
    damage: int | None = Field(default=None, ge=0)
    healing: int | None = Field(default=None, ge=0)


class EncounterResponse(BaseModel):
    encounter: dict[str, Any]


class EncounterListResponse(BaseModel):
    encounters: list[dict[str, Any]]


class InitiativeOrderResponse(BaseModel):
    participants: list[dict[str, Any]]


def current_user_id(x_user_id: str = Header(min_length=1)) -> str:
    """Authenticated user id, supplied by the authentication layer in front of this app."""
    return x_user_id


def create_app(engine: EncounterEngine | None = None) -> FastAPI:
    app = FastAPI(title="RPG Tracker API", version="0.3.0")
    encounter_engine = engine if engine is not None else build_engine(load_settings())
    app.state.engine = encounter_engine

    def get_engine() -> EncounterEngine:
        return encounter_engine

    @app.exception_handler(TrackerError)
    async def handle_tracker_error(request: Request, exc: TrackerError) -> JSONResponse:
        return JSONResponse(
            status_code=status_code_for(exc),
            content={"success": False, "error": exc.error_code, "message": exc.message},
        )

    @app.post("/api/encounters", response_model=EncounterResponse, status_code=201)
    def create_encounter(
        payload: CreateEncounterRequest,
        user_id: str = Depends(current_user_id),
        local_engine: EncounterEngine = Depends(get_engine),
    ) -> EncounterResponse:
        encounter = local_engine.create_encounter(user_id, payload.name, payload.description)
        return EncounterResponse(encounter=encounter.to_dict())

    @app.get("/api/encounters", response_model=EncounterListResponse)
    def list_encounters(
        user_id: str = Depends(current_user_id),
        local_engine: EncounterEngine = Depends(get_engine),
    ) -> EncounterListResponse:
        encounters = local_engine.get_user_encounters(user_id)
        return EncounterListResponse(encounters=[encounter.to_dict() for encounter in encounters])

    @app.get("/api/encounters/{encounter_id}", response_model=EncounterResponse)
    def get_encounter(
        encounter_id: str,
        user_id: str = Depends(current_user_id),
        local_engine: EncounterEngine = Depends(get_engine),
    ) -> EncounterResponse:
        encounter = local_engine.get_encounter_by_id(encounter_id)
        if encounter is None:
            raise NotFoundError("Encounter not found")
        if encounter.owner_id != user_id:
            raise UnauthorizedError("Access denied")
        return EncounterResponse(encounter=encounter.to_dict())

    @app.put("/api/encounters/{encounter_id}", response_model=EncounterResponse)
    def update_encounter(
        encounter_id: str,
        payload: UpdateEncounterRequest,
        user_id: str = Depends(current_user_id),
        local_engine: EncounterEngine = Depends(get_engine),
    ) -> EncounterResponse:
        update = EncounterUpdate(name=payload.name, description=payload.description, status=payload.status)
        encounter = local_engine.update_encounter(encounter_id, user_id, update)
        return EncounterResponse(encounter=encounter.to_dict())

    @app.delete("/api/encounters/{encounter_id}", status_code=204)
    def delete_encounter(
        encounter_id: str,
        user_id: str = Depends(current_user_id),
        local_engine: EncounterEngine = Depends(get_engine),
    ) -> Response:
        local_engine.delete_encounter(encounter_id, user_id)
        return Response(status_code=204)

    @app.post("/api/encounters/{encounter_id}/participants", response_model=EncounterResponse, status_code=201)
    def add_participant(
        encounter_id: str,
        payload: AddParticipantRequest,
        user_id: str = Depends(current_user_id),
        local_engine: EncounterEngine = Depends(get_engine),
    ) -> EncounterResponse:
        encounter = local_engine.add_participant(encounter_id, user_id, payload.to_create())
        return EncounterResponse(encounter=encounter.to_dict())

    @app.patch("/api/encounters/{encounter_id}/participants/{participant_id}/hp", response_model=EncounterResponse)
    def update_participant_hp(
        encounter_id: str,
        participant_id: str,
        payload: UpdateHpRequest,
        user_id: str = Depends(current_user_id),
        local_engine: EncounterEngine = Depends(get_engine),
    ) -> EncounterResponse:
        update = HpUpdate(
            current_hp=payload.current_hp,
            temp_hp=payload.temp_hp,
            damage=payload.damage,
            healing=payload.healing,
        )
        encounter = local_engine.update_participant_hp(participant_id, encounter_id, user_id, update)
        return EncounterResponse(encounter=encounter.to_dict())

    @app.post("/api/encounters/{encounter_id}/start", response_model=EncounterResponse)
    def start_combat(
        encounter_id: str,
        user_id: str = Depends(current_user_id),
        local_engine: EncounterEngine = Depends(get_engine),
    ) -> EncounterResponse:
        encounter = local_engine.start_combat(encounter_id, user_id)
        return EncounterResponse(encounter=encounter.to_dict())

    @app.post("/api/encounters/{encounter_id}/end", response_model=EncounterResponse)
    def end_combat(
        encounter_id: str,
        user_id: str = Depends(current_user_id),
        local_engine: EncounterEngine = Depends(get_engine),
    ) -> EncounterResponse:
        encounter = local_engine.end_combat(encounter_id, user_id)
        return EncounterResponse(encounter=encounter.to_dict())

    @app.get("/api/encounters/{encounter_id}/initiative", response_model=InitiativeOrderResponse)
    def get_initiative_order(
        encounter_id: str,
        user_id: str = Depends(current_user_id),
        local_engine: EncounterEngine = Depends(get_engine),
    ) -> InitiativeOrderResponse:
        order = local_engine.get_initiative_order(encounter_id, user_id)
        return InitiativeOrderResponse(participants=[participant.to_dict() for participant in order])

    return app


def main() -> None:
    import uvicorn

    settings = load_settings()
    configure_logging(settings.log_level)
    app = create_app(build_engine(settings))
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()

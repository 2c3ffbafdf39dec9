from fastapi import APIRouter, Depends, Header, HTTPException

from ..config import settings
from ..errors import StorageError
from ..schemas import Appointment, ExtractionOutcome, ExtractionRequest
from ..services.pipeline import AppointmentPipeline
from ..stores.base import AppointmentStore
from ..stores.memory import InMemoryAppointmentStore
from ..stores.supabase import SupabaseAppointmentStore

router = APIRouter()
memory_store = InMemoryAppointmentStore()

ERROR_STATUS = {
    "empty_input": 400,
    "config_error": 500,
    "rate_limited": 429,
    "api_error": 502,
    "unparseable": 422,
    "storage_error": 502,
}


def get_pipeline() -> AppointmentPipeline:
    return AppointmentPipeline()


async def get_store(authorization: str | None = Header(default=None)) -> AppointmentStore:
    if settings.appointment_store == "supabase":
        token = None
        if authorization and authorization.lower().startswith("bearer "):
            token = authorization[7:].strip()
        store = SupabaseAppointmentStore(access_token=token)
        if token:
            # inserted rows must carry the owner for row-level security
            try:
                await store.fetch_user_id()
            except StorageError as exc:
                raise HTTPException(status_code=401, detail={"kind": exc.kind, "message": str(exc)})
        return store
    return memory_store


def _raise_for(outcome: ExtractionOutcome) -> ExtractionOutcome:
    status = ERROR_STATUS.get(outcome.kind)
    if status is not None:
        raise HTTPException(
            status_code=status,
            detail={"kind": outcome.kind, "message": outcome.message, "saved": len(outcome.created)},
        )
    return outcome


@router.post("/appointments/parse", response_model=ExtractionOutcome)
async def parse_appointments(body: ExtractionRequest, pipeline: AppointmentPipeline = Depends(get_pipeline)):
    return _raise_for(await pipeline.extract(body.text))


@router.post("/appointments/ai", response_model=ExtractionOutcome)
async def create_from_text(
    body: ExtractionRequest,
    pipeline: AppointmentPipeline = Depends(get_pipeline),
    store: AppointmentStore = Depends(get_store),
):
    return _raise_for(await pipeline.extract_and_store(body.text, store))


@router.get("/appointments", response_model=list[Appointment])
async def list_appointments(store: AppointmentStore = Depends(get_store)):
    try:
        return await store.list()
    except StorageError as exc:
        raise HTTPException(status_code=502, detail={"kind": exc.kind, "message": str(exc)})

import httpx
from pydantic import ValidationError

from ..config import settings
from ..errors import StorageError
from ..schemas import Appointment, AppointmentDraft
from .base import AppointmentStore


class SupabaseAppointmentStore(AppointmentStore):
    """Inserts into the hosted `appointments` table through PostgREST.

    Row-level security on the table scopes rows to the caller, so the user's
    access token is forwarded when there is one; the anon key is used otherwise.
    """

    name = "supabase"

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        access_token: str | None = None,
        user_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.api_key = api_key or settings.supabase_anon_key
        self.access_token = access_token
        self.user_id = user_id
        self.transport = transport

    def _headers(self) -> dict:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    @staticmethod
    def _record(row, fallback: dict | None = None) -> Appointment:
        if not isinstance(row, dict) or row.get("id") is None:
            raise ValueError("row without id")
        return Appointment.model_validate({**(fallback or {}), **row, "id": str(row["id"])})

    async def fetch_user_id(self) -> str:
        """Look up the user behind the forwarded access token (`GET /auth/v1/user`)."""
        if not self.access_token:
            raise StorageError("Auth user error: no access token")
        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.get(
                    f"{self.base_url}/auth/v1/user",
                    headers={"apikey": self.api_key, "Authorization": f"Bearer {self.access_token}"},
                    timeout=10,
                )
        except httpx.HTTPError as exc:
            raise StorageError(f"Auth user error: {exc}") from exc
        if not response.is_success:
            raise StorageError(f"Auth user error: {response.status_code} {response.text}")
        try:
            user = response.json()
        except (ValueError, RecursionError) as exc:
            raise StorageError(f"Auth user error: {response.text[:200]}") from exc
        if not isinstance(user, dict) or not user.get("id"):
            raise StorageError("Auth user error: response without id")
        self.user_id = str(user["id"])
        return self.user_id

    async def create(self, draft: AppointmentDraft) -> Appointment:
        payload = draft.model_dump(mode="json")
        if self.user_id:
            payload["user_id"] = self.user_id
        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}/rest/v1/appointments",
                    json=payload,
                    headers=self._headers(),
                    timeout=10,
                )
        except httpx.HTTPError as exc:
            raise StorageError(f"Insert appointment error: {exc}") from exc
        if not response.is_success:
            raise StorageError(f"Insert appointment error: {response.status_code} {response.text}")
        try:
            rows = response.json()
            row = rows[0] if isinstance(rows, list) and rows else rows
            return self._record(row, fallback=payload)
        except (ValueError, RecursionError, ValidationError) as exc:
            raise StorageError(f"Insert appointment error: {exc}") from exc

    async def list(self) -> list[Appointment]:
        params = {"select": "*", "order": "start_at.asc"}
        if self.user_id:
            params["user_id"] = f"eq.{self.user_id}"
        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.get(
                    f"{self.base_url}/rest/v1/appointments",
                    params=params,
                    headers=self._headers(),
                    timeout=10,
                )
        except httpx.HTTPError as exc:
            raise StorageError(f"Fetch appointments error: {exc}") from exc
        if not response.is_success:
            raise StorageError(f"Fetch appointments error: {response.status_code} {response.text}")
        try:
            rows = response.json()
            if not isinstance(rows, list):
                raise ValueError("expected a list of rows")
            return [self._record(row) for row in rows]
        except (ValueError, RecursionError, ValidationError) as exc:
            raise StorageError(f"Fetch appointments error: {exc}") from exc

# workout_core/client.py
# =============================================================================
# HTTP implementation of the catalog, performance and schedule collaborators
# against the workout REST backend. Credentials come from an explicit
# AuthContext; nothing is read from global state.
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from .auth import AuthContext
from .config import API_TIMEOUT, API_URL, get_logger
from .dates import DateLike, date_key
from .errors import AuthenticationError, StorageError
from .models import (
    DateOverrides,
    PerformanceRecord,
    Schedule,
    StoredPerformance,
    Workout,
    WorkoutRef,
)
from .schedule import normalize_schedule
from .stats import DailyTotal, ExercisePoint

log = get_logger("client")


class ApiClient:
    """Async client for the REST backend.

    Use as an async context manager, or call :meth:`aclose` when done::

        async with ApiClient(auth=AuthContext.from_env()) as api:
            workouts = await api.workouts.list()
    """

    def __init__(
        self,
        base_url: str = API_URL,
        auth: Optional[AuthContext] = None,
        timeout: float = API_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.auth = auth
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        self.workouts = WorkoutApi(self)
        self.performance = PerformanceApi(self)
        self.schedule = ScheduleApi(self)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.auth is not None:
            headers["Authorization"] = self.auth.header()
        return headers

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        log.debug(f"{method} {path} (auth {'present' if self.auth else 'missing'})")
        try:
            resp = await self._http.request(
                method, path, json=json, params=params, headers=self._headers()
            )
        except httpx.HTTPError as e:
            log.error(f"{method} {path} failed: {e}")
            raise StorageError(f"Request to {path} failed: {e}") from e

        if resp.status_code == 401:
            log.error(f"Unauthorized access to {path}")
            raise AuthenticationError("Unauthorized: Please log in", status=401)

        if resp.is_error:
            try:
                data = resp.json()
            except ValueError:
                data = {}
            message = data.get("message") if isinstance(data, dict) else None
            raise StorageError(
                message or f"Error {resp.status_code}: {resp.reason_phrase}",
                status=resp.status_code,
                data=data,
            )

        if "application/json" in resp.headers.get("Content-Type", ""):
            return resp.json()
        return resp.text

    def parse(self, model, payload: Any):
        """Validate a response body; a malformed one is a storage problem."""
        try:
            return model.model_validate(payload)
        except PydanticValidationError as e:
            raise StorageError(f"Unexpected response for {model.__name__}: {e}", data=payload) from e

    async def verify(self) -> bool:
        """True when the backend accepts our credentials."""
        try:
            await self.request("GET", "/auth/verify")
        except AuthenticationError:
            return False
        return True


# -----------------------------------------------------------------------------
# Workouts (catalog)
# -----------------------------------------------------------------------------
class WorkoutApi:
    def __init__(self, api: ApiClient):
        self._api = api

    async def list(self) -> List[Workout]:
        rows = await self._api.request("GET", "/workouts")
        return [self._api.parse(Workout, r) for r in rows]

    async def get_by_id(self, workout_id: str) -> Optional[Workout]:
        try:
            row = await self._api.request("GET", f"/workouts/{workout_id}")
        except StorageError as e:
            if e.status == 404:
                return None
            raise
        return self._api.parse(Workout, row)

    async def create(self, workout: Workout) -> Workout:
        row = await self._api.request("POST", "/workouts", json=workout.to_payload())
        return self._api.parse(Workout, row)

    async def update(self, workout_id: str, workout: Workout) -> Workout:
        row = await self._api.request("PUT", f"/workouts/{workout_id}", json=workout.to_payload())
        return self._api.parse(Workout, row)

    async def delete(self, workout_id: str) -> None:
        await self._api.request("DELETE", f"/workouts/{workout_id}")


# -----------------------------------------------------------------------------
# Performance records
# -----------------------------------------------------------------------------
class PerformanceApi:
    def __init__(self, api: ApiClient):
        self._api = api

    async def save(self, record: PerformanceRecord) -> StoredPerformance:
        # The backend fills totalWeight/totalReps on save.
        row = await self._api.request("POST", "/performance", json=record.to_payload())
        return self._api.parse(StoredPerformance, row)

    async def list(self) -> List[StoredPerformance]:
        rows = await self._api.request("GET", "/performance")
        return [self._api.parse(StoredPerformance, r) for r in rows]

    async def list_for_workout(self, workout_id: str) -> List[StoredPerformance]:
        rows = await self._api.request("GET", f"/performance/workout/{workout_id}")
        return [self._api.parse(StoredPerformance, r) for r in rows]

    async def get(self, performance_id: str) -> StoredPerformance:
        row = await self._api.request("GET", f"/performance/{performance_id}")
        return self._api.parse(StoredPerformance, row)

    async def delete(self, performance_id: str) -> None:
        await self._api.request("DELETE", f"/performance/{performance_id}")

    async def exercise_stats(self, exercise_name: str) -> List[ExercisePoint]:
        # Names are free text and may contain "/", "?" or "#".
        path = f"/performance/stats/exercise/{quote(exercise_name, safe='')}"
        rows = await self._api.request("GET", path)
        return [self._api.parse(ExercisePoint, r) for r in rows]

    async def daily_totals(self) -> List[DailyTotal]:
        rows = await self._api.request("GET", "/performance/stats/totals")
        # Aggregation rows carry the day under _id.
        return [self._api.parse(DailyTotal, {**r, "date": r.get("_id")}) for r in rows]


# -----------------------------------------------------------------------------
# Schedule and date overrides
# -----------------------------------------------------------------------------
def _refs_payload(refs: List[WorkoutRef]) -> List[Dict[str, Any]]:
    return [r.to_payload() for r in refs]


class ScheduleApi:
    def __init__(self, api: ApiClient):
        self._api = api

    async def get_schedule(self) -> Schedule:
        # The backend creates the 7 empty slots on first read.
        row = await self._api.request("GET", "/schedule")
        return self._api.parse(Schedule, row)

    async def save(self, schedule: Schedule) -> Schedule:
        body = {"days": [d.to_payload() for d in normalize_schedule(schedule).days]}
        row = await self._api.request("PUT", "/schedule", json=body)
        return self._api.parse(Schedule, row)

    async def save_day(self, weekday: str, refs: List[WorkoutRef]) -> Schedule:
        row = await self._api.request(
            "PUT", f"/schedule/{weekday}", json={"workouts": _refs_payload(refs)}
        )
        return self._api.parse(Schedule, row)

    async def clear_schedule(self) -> Schedule:
        await self._api.request("DELETE", "/schedule/all")
        return await self.get_schedule()

    async def get_override(self, key: DateLike) -> List[WorkoutRef]:
        rows = await self._api.request("GET", f"/dateworkouts/{date_key(key)}")
        return [self._api.parse(WorkoutRef, r) for r in rows]

    async def save_override(self, key: DateLike, refs: List[WorkoutRef]) -> List[WorkoutRef]:
        rows = await self._api.request(
            "PUT", f"/dateworkouts/{date_key(key)}", json={"workouts": _refs_payload(refs)}
        )
        return [self._api.parse(WorkoutRef, r) for r in rows]

    async def get_overrides(self, start: DateLike, end: DateLike) -> DateOverrides:
        body = await self._api.request(
            "GET",
            "/dateworkouts/range",
            params={"startDate": date_key(start), "endDate": date_key(end)},
        )
        # A stored empty list reads the same as an absent date.
        return {
            k: [self._api.parse(WorkoutRef, r) for r in v]
            for k, v in sorted(body.items())
            if v
        }

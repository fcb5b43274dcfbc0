"""
Test suite for the REST collaborators.
Requests go through an httpx MockTransport that plays the backend.
"""
import base64
import json

import httpx
import pytest
import pytest_asyncio

from workout_core import (
    ApiClient,
    AuthContext,
    AuthenticationError,
    PerformanceRecord,
    Schedule,
    StorageError,
    Workout,
    WorkoutRef,
)

AUTH = AuthContext(username="lifter", password="s3cret")


class FakeBackend:
    """Records each request and answers from a route table."""

    def __init__(self):
        self.requests = []
        self.routes = {}

    def on(self, method, path, status=200, body=None):
        self.routes[(method, path)] = (status, body)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes.get(
            (request.method, request.url.path), (404, {"message": "Not found"})
        )
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest_asyncio.fixture
async def api(backend):
    async with ApiClient(
        base_url="http://test/api", auth=AUTH, transport=httpx.MockTransport(backend)
    ) as client:
        yield client


# ─── Sample data ─────────────────────────────────────────────────────────────

WORKOUT_ROW = {
    "_id": "w1",
    "name": "Leg Day",
    "type": "strength",
    "duration": 45,
    "exercises": [{"name": "Squat", "sets": 3, "reps": 10, "weight": 135, "rest": 60}],
    "createdAt": "2026-01-10T08:00:00.000Z",
    "__v": 0,
}

REF_ROW = {"workoutId": "w1", "name": "Leg Day", "type": "strength", "duration": 45}

PERFORMANCE_ROW = {
    "_id": "p1",
    "workoutId": "w1",
    "workoutName": "Leg Day",
    "duration": 600,
    "exercises": [
        {
            "exerciseName": "Squat",
            "sets": [{"setNumber": 1, "weight": 135, "reps": 10, "completed": True}],
            "totalWeight": 1350,
            "totalReps": 10,
        }
    ],
    "totalWeight": 1350,
    "totalReps": 10,
    "createdAt": "2026-01-15T10:00:00.000Z",
}


def _schedule_row(**days):
    return {
        "_id": "s1",
        "days": [{"day": d, "workouts": days.get(d, [])} for d in
                 ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]],
    }


# ─── Auth ────────────────────────────────────────────────────────────────────

def test_auth_header():
    expected = base64.b64encode(b"lifter:s3cret").decode()
    assert AUTH.header() == f"Basic {expected}"
    assert "s3cret" not in repr(AUTH)


def test_auth_rejects_colon_in_username():
    with pytest.raises(ValueError):
        AuthContext(username="a:b", password="x")


def test_auth_from_env(monkeypatch):
    monkeypatch.delenv("WORKOUT_API_USERNAME", raising=False)
    monkeypatch.delenv("WORKOUT_API_PASSWORD", raising=False)
    assert AuthContext.from_env() is None
    monkeypatch.setenv("WORKOUT_API_USERNAME", "lifter")
    monkeypatch.setenv("WORKOUT_API_PASSWORD", "s3cret")
    assert AuthContext.from_env().header() == AUTH.header()


@pytest.mark.asyncio
async def test_requests_carry_credentials(api, backend):
    backend.on("GET", "/api/workouts", body=[WORKOUT_ROW])
    await api.workouts.list()
    assert backend.last.headers["Authorization"] == AUTH.header()


@pytest.mark.asyncio
async def test_no_auth_header_without_context(backend):
    backend.on("GET", "/api/workouts", body=[])
    async with ApiClient(base_url="http://test/api", transport=httpx.MockTransport(backend)) as api:
        await api.workouts.list()
    assert "Authorization" not in backend.last.headers


@pytest.mark.asyncio
async def test_401_maps_to_authentication_error(api, backend):
    backend.on("GET", "/api/workouts", status=401, body={"message": "Invalid credentials"})
    with pytest.raises(AuthenticationError) as exc:
        await api.workouts.list()
    assert str(exc.value) == "Unauthorized: Please log in"
    assert exc.value.status == 401


@pytest.mark.asyncio
async def test_verify(api, backend):
    backend.on("GET", "/api/auth/verify", body={"success": True})
    assert await api.verify() is True
    backend.on("GET", "/api/auth/verify", status=401, body={"message": "nope"})
    assert await api.verify() is False


# ─── Error mapping ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_server_message_surfaces(api, backend):
    backend.on("POST", "/api/performance", status=500, body={"message": "Error saving performance"})
    record = PerformanceRecord(workout_id="w1", workout_name="Leg Day")
    with pytest.raises(StorageError) as exc:
        await api.performance.save(record)
    assert str(exc.value) == "Error saving performance"
    assert exc.value.status == 500


@pytest.mark.asyncio
async def test_error_without_body(api, backend):
    backend.on("DELETE", "/api/workouts/w1", status=503)
    with pytest.raises(StorageError) as exc:
        await api.workouts.delete("w1")
    assert exc.value.status == 503
    assert str(exc.value).startswith("Error 503")


@pytest.mark.asyncio
async def test_network_failure_is_storage_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with ApiClient(base_url="http://test/api", transport=httpx.MockTransport(handler)) as api:
        with pytest.raises(StorageError):
            await api.schedule.get_schedule()


@pytest.mark.asyncio
async def test_malformed_response_is_storage_error(api, backend):
    backend.on("GET", "/api/workouts/w1", body={"_id": "w1"})
    with pytest.raises(StorageError):
        await api.workouts.get_by_id("w1")


# ─── Workouts ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_workout_lookup(api, backend):
    backend.on("GET", "/api/workouts/w1", body=WORKOUT_ROW)
    workout = await api.workouts.get_by_id("w1")
    assert workout.id == "w1"
    assert workout.exercises[0].rest == 60
    assert await api.workouts.get_by_id("missing") is None


@pytest.mark.asyncio
async def test_create_workout_sends_payload(api, backend):
    backend.on("POST", "/api/workouts", status=201, body=WORKOUT_ROW)
    created = await api.workouts.create(Workout(name="Leg Day", exercises=[{"name": "Squat"}]))
    sent = json.loads(backend.last.content)
    assert sent["name"] == "Leg Day"
    assert "_id" not in sent
    assert created.id == "w1"


# ─── Performance ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_save_performance(api, backend):
    backend.on("POST", "/api/performance", status=201, body=PERFORMANCE_ROW)
    record = PerformanceRecord.model_validate(
        {k: v for k, v in PERFORMANCE_ROW.items() if k not in ("_id", "totalWeight", "totalReps", "createdAt")}
    )
    stored = await api.performance.save(record)
    sent = json.loads(backend.last.content)
    assert sent["workoutId"] == "w1"
    assert sent["exercises"][0]["sets"][0]["setNumber"] == 1
    assert stored.id == "p1"
    assert stored.total_weight == 1350
    assert stored.exercises[0].total_sets == 1
    assert stored.exercises[0].completed_sets == 1


@pytest.mark.asyncio
async def test_performance_routes(api, backend):
    backend.on("GET", "/api/performance/workout/w1", body=[PERFORMANCE_ROW])
    backend.on("GET", "/api/performance/stats/exercise/Squat", body=[{
        "date": "2026-01-15T10:00:00.000Z",
        "totalReps": 10,
        "totalWeight": 1350,
        "maxWeight": 135,
        "avgWeight": 135,
        "sets": [{"setNumber": 1, "weight": 135, "reps": 10}],
    }])
    backend.on("GET", "/api/performance/stats/totals", body=[
        {"_id": "2026-01-15", "totalWeight": 1350, "totalReps": 10, "count": 1},
    ])
    [row] = await api.performance.list_for_workout("w1")
    assert row.workout_name == "Leg Day"
    [point] = await api.performance.exercise_stats("Squat")
    assert point.max_weight == 135
    [total] = await api.performance.daily_totals()
    assert total.date == "2026-01-15"
    assert total.count == 1


@pytest.mark.asyncio
async def test_exercise_stats_quotes_name(api, backend):
    backend.on("GET", "/api/performance/stats/exercise/Clean/Jerk #2?", body=[])
    assert await api.performance.exercise_stats("Clean/Jerk #2?") == []
    url = backend.last.url
    assert url.raw_path == b"/api/performance/stats/exercise/Clean%2FJerk%20%232%3F"
    assert url.query == b""
    assert url.fragment == ""


# ─── Schedule ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_get_schedule(api, backend):
    backend.on("GET", "/api/schedule", body=_schedule_row(Monday=[REF_ROW]))
    schedule = await api.schedule.get_schedule()
    assert schedule.id == "s1"
    assert schedule.days[1].workouts[0].workout_id == "w1"


@pytest.mark.asyncio
async def test_save_schedule_sends_all_days(api, backend):
    backend.on("PUT", "/api/schedule", body=_schedule_row(Friday=[REF_ROW]))
    partial = Schedule(days=[{"day": "Friday", "workouts": [REF_ROW]}])
    saved = await api.schedule.save(partial)
    sent = json.loads(backend.last.content)
    assert len(sent["days"]) == 7
    assert sent["days"][0]["day"] == "Friday"
    assert sent["days"][0]["workouts"] == [REF_ROW]
    assert saved.id == "s1"


@pytest.mark.asyncio
async def test_save_day(api, backend):
    backend.on("PUT", "/api/schedule/Monday", body=_schedule_row(Monday=[REF_ROW]))
    await api.schedule.save_day("Monday", [WorkoutRef.model_validate(REF_ROW)])
    assert json.loads(backend.last.content) == {"workouts": [REF_ROW]}


@pytest.mark.asyncio
async def test_clear_schedule(api, backend):
    backend.on("DELETE", "/api/schedule/all", body={"message": "Schedule cleared"})
    backend.on("GET", "/api/schedule", body=_schedule_row())
    cleared = await api.schedule.clear_schedule()
    assert [r.method for r in backend.requests] == ["DELETE", "GET"]
    assert all(slot.workouts == [] for slot in cleared.days)


@pytest.mark.asyncio
async def test_date_override_routes(api, backend):
    backend.on("PUT", "/api/dateworkouts/2026-03-10", body=[REF_ROW])
    backend.on("GET", "/api/dateworkouts/2026-03-10", body=[REF_ROW])
    saved = await api.schedule.save_override("2026-03-10", [WorkoutRef.model_validate(REF_ROW)])
    assert json.loads(backend.last.content) == {"workouts": [REF_ROW]}
    assert saved[0].workout_id == "w1"
    fetched = await api.schedule.get_override("2026-03-10")
    assert fetched == saved


@pytest.mark.asyncio
async def test_date_override_range(api, backend):
    backend.on("GET", "/api/dateworkouts/range", body={
        "2026-03-12": [REF_ROW],
        "2026-03-02": [REF_ROW],
        "2026-03-05": [],
    })
    window = await api.schedule.get_overrides("2026-03-01", "2026-03-31")
    assert backend.last.url.params["startDate"] == "2026-03-01"
    assert backend.last.url.params["endDate"] == "2026-03-31"
    assert list(window) == ["2026-03-02", "2026-03-12"]

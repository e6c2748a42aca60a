import json

import httpx
import pytest
import pytest_asyncio
import respx

from lastmile import (
    AuthError,
    ConfigError,
    DeploymentStatus,
    EventKind,
    InternalError,
    LastMile,
    NotFoundError,
    PollTimeoutError,
    TransportError,
    ValidationError,
)

BASE_URL = "https://api.test"
CREATED_AT = "2026-10-19T10:00:00Z"


def status_body(status, deployment_id="dep_1", url=None):
    return {
        "deploymentId": deployment_id,
        "projectName": "demo",
        "framework": "auto-detect",
        "status": status,
        "url": url,
        "createdAt": CREATED_AT,
        "updatedAt": CREATED_AT,
        "logs": [],
        "error": None,
    }


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LASTMILE_API_KEY", "LASTMILE_API_URL", "LASTMILE_DEBUG", "LASTMILE_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


@pytest_asyncio.fixture
async def sdk():
    client = LastMile(api_key="key_123", api_url=BASE_URL)
    yield client
    await client.close()


@pytest.fixture
def api_mock():
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as respx_mock:
        yield respx_mock


class TestConstruction:
    def test_requires_api_key(self):
        with pytest.raises(ConfigError):
            LastMile()

    def test_defaults(self):
        client = LastMile(api_key="key_123")

        assert client.config.api_url == "https://api.lastmile.dev"
        assert client.config.debug is False
        assert client.config.timeout == 30000
        assert client.config.timeout_seconds == 30.0
        assert client.last_deployment_status is None

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("LASTMILE_API_KEY", "env_key")
        monkeypatch.setenv("LASTMILE_TIMEOUT", "5000")

        client = LastMile(api_url=BASE_URL)

        assert client.config.api_key == "env_key"
        assert client.config.timeout == 5000

    def test_explicit_arguments_win(self, monkeypatch):
        monkeypatch.setenv("LASTMILE_API_KEY", "env_key")

        client = LastMile(api_key="arg_key")

        assert client.config.api_key == "arg_key"

    def test_version(self):
        assert LastMile.get_version() == "1.0.0"

    def test_version_constant_matches_package(self):
        import lastmile
        from lastmile.config import __version__

        assert lastmile.__version__ == __version__ == LastMile.get_version()


class TestDeploy:
    @pytest.mark.asyncio
    async def test_missing_project_name_makes_no_request(self, sdk, api_mock):
        route = api_mock.post("/v1/deploy").mock(return_value=httpx.Response(201, json={}))
        started = []
        sdk.on(EventKind.DEPLOY_START, started.append)

        with pytest.raises(ValidationError, match="project name"):
            await sdk.deploy({"code": "console.log(1)"})

        assert route.call_count == 0
        assert api_mock.calls.call_count == 0
        assert started == []

    @pytest.mark.asyncio
    async def test_missing_code_makes_no_request(self, sdk, api_mock):
        with pytest.raises(ValidationError, match="code"):
            await sdk.deploy({"projectName": "demo"})
        with pytest.raises(ValidationError):
            await sdk.deploy(None)

        assert api_mock.calls.call_count == 0

    @pytest.mark.asyncio
    async def test_success_emits_events_and_stores_result(self, sdk, api_mock):
        route = api_mock.post("/v1/deploy").mock(return_value=httpx.Response(201, json={
            "deploymentId": "dep_1",
            "projectName": "demo",
            "status": "queued",
            "message": "Deployment initiated successfully",
            "createdAt": CREATED_AT,
            "url": None,
        }))
        events = []
        sdk.on(EventKind.DEPLOY_START, lambda data: events.append(("start", data)))
        sdk.on(EventKind.DEPLOY_SUCCESS, lambda data: events.append(("success", data)))

        result = await sdk.deploy({"code": "console.log(1)", "projectName": "demo", "environment": {"A": "1"}})

        assert result.deployment_id == "dep_1"
        assert result.status == DeploymentStatus.QUEUED
        assert result.url is None
        assert sdk.last_deployment_status is result
        assert events[0] == ("start", {"projectName": "demo"})
        assert events[1] == ("success", result)

        request = route.calls.last.request
        assert request.headers["X-API-Key"] == "key_123"
        body = json.loads(request.content)
        assert body["code"] == "console.log(1)"
        assert body["projectName"] == "demo"
        assert body["framework"] == "auto-detect"
        assert body["environment"] == {"A": "1"}
        assert body["config"] == {}
        assert "timestamp" in body

    @pytest.mark.asyncio
    async def test_environment_values_pass_through_unchanged(self, sdk, api_mock):
        route = api_mock.post("/v1/deploy").mock(return_value=httpx.Response(201, json={
            "deploymentId": "dep_1",
            "projectName": "demo",
            "status": "queued",
            "createdAt": CREATED_AT,
            "url": None,
        }))

        await sdk.deploy({
            "code": "x",
            "projectName": "demo",
            "environment": {"PORT": 3000, "DEBUG": True, "NAME": "web"},
        })

        body = json.loads(route.calls.last.request.content)
        assert body["environment"] == {"PORT": 3000, "DEBUG": True, "NAME": "web"}

    @pytest.mark.asyncio
    async def test_failure_emits_deploy_error_and_raises(self, sdk, api_mock):
        api_mock.post("/v1/deploy").mock(return_value=httpx.Response(
            401, json={"error": "Invalid API key", "message": "The provided API key is not valid"}
        ))
        errors = []
        successes = []
        sdk.on(EventKind.DEPLOY_ERROR, errors.append)
        sdk.on(EventKind.DEPLOY_SUCCESS, successes.append)

        with pytest.raises(AuthError) as exc_info:
            await sdk.deploy({"code": "x", "projectName": "demo"})

        assert exc_info.value.status == 401
        assert "The provided API key is not valid" in exc_info.value.message
        assert errors == [{"error": exc_info.value.message}]
        assert successes == []
        assert sdk.last_deployment_status is None

    @pytest.mark.asyncio
    async def test_raising_success_listener_does_not_fail_deploy(self, sdk, api_mock):
        api_mock.post("/v1/deploy").mock(return_value=httpx.Response(201, json={
            "deploymentId": "dep_1",
            "projectName": "demo",
            "status": "queued",
            "createdAt": CREATED_AT,
            "url": None,
        }))
        second = []

        def broken(data):
            raise RuntimeError("listener bug")

        sdk.on(EventKind.DEPLOY_SUCCESS, broken)
        sdk.on(EventKind.DEPLOY_SUCCESS, second.append)

        result = await sdk.deploy({"code": "x", "projectName": "demo"})

        assert second == [result]


class TestStatus:
    @pytest.mark.asyncio
    async def test_get_status_emits_status_update(self, sdk, api_mock):
        api_mock.get("/v1/deployments/dep_1").mock(return_value=httpx.Response(200, json=status_body("building")))
        updates = []
        sdk.on("statusUpdate", updates.append)

        status = await sdk.get_status("dep_1")

        assert status.status == DeploymentStatus.BUILDING
        assert updates == [status]

    @pytest.mark.asyncio
    async def test_get_status_requires_id(self, sdk, api_mock):
        with pytest.raises(ValidationError):
            await sdk.get_status("")
        assert api_mock.calls.call_count == 0

    @pytest.mark.asyncio
    async def test_get_status_not_found(self, sdk, api_mock):
        api_mock.get("/v1/deployments/dep_x").mock(return_value=httpx.Response(
            404, json={"error": "Deployment not found", "message": "No deployment found with ID: dep_x"}
        ))

        with pytest.raises(NotFoundError) as exc_info:
            await sdk.get_status("dep_x")
        assert exc_info.value.message == "HTTP 404: No deployment found with ID: dep_x"

    @pytest.mark.asyncio
    async def test_server_error(self, sdk, api_mock):
        api_mock.get("/v1/deployments/dep_1").mock(return_value=httpx.Response(500, text="oops"))

        with pytest.raises(InternalError) as exc_info:
            await sdk.get_status("dep_1")
        assert exc_info.value.status == 500

    @pytest.mark.asyncio
    async def test_timeout_is_enforced(self, sdk, api_mock):
        api_mock.get("/v1/deployments/dep_1").mock(side_effect=httpx.ReadTimeout("slow"))

        with pytest.raises(TransportError, match="timed out after 30000ms"):
            await sdk.get_status("dep_1")

    @pytest.mark.asyncio
    async def test_network_failure(self, sdk, api_mock):
        api_mock.get("/v1/deployments/dep_1").mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(TransportError) as exc_info:
            await sdk.get_status("dep_1")
        assert exc_info.value.status is None

    @pytest.mark.asyncio
    async def test_non_json_success_body(self, sdk, api_mock):
        api_mock.get("/v1/deployments/dep_1").mock(return_value=httpx.Response(200, text="<html>proxy</html>"))

        with pytest.raises(TransportError, match="Invalid JSON response") as exc_info:
            await sdk.get_status("dep_1")
        assert exc_info.value.status == 200

    @pytest.mark.asyncio
    async def test_unexpected_success_body(self, sdk, api_mock):
        api_mock.get("/v1/deployments/dep_1").mock(return_value=httpx.Response(200, json={"ok": True}))
        api_mock.get("/v1/deployments").mock(return_value=httpx.Response(200, json=[]))

        with pytest.raises(TransportError, match="DeploymentStatusDetail"):
            await sdk.get_status("dep_1")
        with pytest.raises(TransportError, match="DeploymentList"):
            await sdk.list_deployments()

    @pytest.mark.asyncio
    async def test_unexpected_deploy_body_emits_deploy_error(self, sdk, api_mock):
        api_mock.post("/v1/deploy").mock(return_value=httpx.Response(201, json={"ok": True}))
        errors = []
        sdk.on(EventKind.DEPLOY_ERROR, errors.append)

        with pytest.raises(TransportError) as exc_info:
            await sdk.deploy({"code": "x", "projectName": "demo"})

        assert errors == [{"error": exc_info.value.message}]
        assert sdk.last_deployment_status is None

    def test_timeout_passed_to_http_client(self):
        client = LastMile(api_key="key_123", timeout=1500)
        http_client = client._get_client()
        assert http_client.timeout.read == 1.5


class TestPolling:
    @pytest.mark.asyncio
    async def test_polls_until_completed(self, sdk, api_mock):
        route = api_mock.get("/v1/deployments/dep_1").mock(side_effect=[
            httpx.Response(200, json=status_body("queued")),
            httpx.Response(200, json=status_body("building")),
            httpx.Response(200, json=status_body("deploying")),
            httpx.Response(200, json=status_body("completed", url="https://demo.lastmile.app")),
        ])
        updates = []
        sdk.on(EventKind.STATUS_UPDATE, lambda s: updates.append(s.status))

        final = await sdk.poll_status("dep_1", interval_ms=0)

        assert final.status == DeploymentStatus.COMPLETED
        assert final.url == "https://demo.lastmile.app"
        assert route.call_count == 4
        assert updates == ["queued", "building", "deploying", "completed"]

    @pytest.mark.asyncio
    async def test_failed_is_terminal(self, sdk, api_mock):
        failed = status_body("failed")
        failed["error"] = "builder crashed"
        api_mock.get("/v1/deployments/dep_1").mock(return_value=httpx.Response(200, json=failed))

        final = await sdk.poll_status("dep_1", interval_ms=0)

        assert final.status == DeploymentStatus.FAILED
        assert final.error == "builder crashed"

    @pytest.mark.asyncio
    async def test_timeout_after_max_attempts(self, sdk, api_mock):
        route = api_mock.get("/v1/deployments/dep_1").mock(return_value=httpx.Response(200, json=status_body("building")))

        with pytest.raises(PollTimeoutError):
            await sdk.poll_status("dep_1", interval_ms=0, max_attempts=3)

        assert route.call_count == 3

    @pytest.mark.asyncio
    async def test_transport_error_aborts_polling(self, sdk, api_mock):
        route = api_mock.get("/v1/deployments/dep_1").mock(side_effect=[
            httpx.Response(200, json=status_body("building")),
            httpx.Response(500, json={"error": "Internal server error", "message": "boom"}),
            httpx.Response(200, json=status_body("completed", url="https://demo.lastmile.app")),
        ])

        with pytest.raises(InternalError):
            await sdk.poll_status("dep_1", interval_ms=0)

        assert route.call_count == 2


class TestManagement:
    @pytest.mark.asyncio
    async def test_list_deployments(self, sdk, api_mock):
        route = api_mock.get("/v1/deployments").mock(return_value=httpx.Response(200, json={
            "deployments": [status_body("queued", deployment_id="dep_2")],
            "total": 3,
            "limit": 1,
            "offset": 0,
        }))

        result = await sdk.list_deployments(limit=1, offset=0)

        assert result.total == 3
        assert [d.deployment_id for d in result.deployments] == ["dep_2"]
        params = route.calls.last.request.url.params
        assert params["limit"] == "1"
        assert params["offset"] == "0"

    @pytest.mark.asyncio
    async def test_delete_emits_event(self, sdk, api_mock):
        api_mock.delete("/v1/deployments/dep_1").mock(return_value=httpx.Response(200, json={
            "message": "Deployment deleted successfully",
            "deploymentId": "dep_1",
        }))
        deleted = []
        sdk.on(EventKind.DEPLOYMENT_DELETED, deleted.append)

        result = await sdk.delete_deployment("dep_1")

        assert result.deployment_id == "dep_1"
        assert deleted == [{"deploymentId": "dep_1"}]

    @pytest.mark.asyncio
    async def test_delete_failure_emits_nothing(self, sdk, api_mock):
        api_mock.delete("/v1/deployments/dep_1").mock(return_value=httpx.Response(404, json={
            "error": "Deployment not found", "message": "No deployment found with ID: dep_1",
        }))
        deleted = []
        sdk.on(EventKind.DEPLOYMENT_DELETED, deleted.append)

        with pytest.raises(NotFoundError):
            await sdk.delete_deployment("dep_1")
        assert deleted == []

    @pytest.mark.asyncio
    async def test_validate_config(self, sdk, api_mock):
        route = api_mock.post("/v1/validate").mock(return_value=httpx.Response(200, json={
            "valid": True, "account": "Demo Account", "tier": "free",
        }))

        result = await sdk.validate_config()

        assert result.valid is True
        assert result.account == "Demo Account"
        assert json.loads(route.calls.last.request.content) == {"apiKey": "key_123"}

    @pytest.mark.asyncio
    async def test_context_manager_closes_client(self, api_mock):
        api_mock.post("/v1/validate").mock(return_value=httpx.Response(200, json={"valid": True}))

        async with LastMile(api_key="key_123", api_url=BASE_URL) as client:
            await client.validate_config()
            http_client = client._client

        assert http_client.is_closed
        assert client._client is None

import pytest

from llmgateway.health.service import (
    APP_VERSION,
    DependencyStatus,
    HealthConfig,
    HealthResponse,
    HealthService,
    ReadinessResponse,
)


class FakeExecutor:
    def __init__(self, healthy=True, vendors=1):
        self.healthy = healthy
        self.vendors = vendors
        self.calls = []

    def vendor_count(self):
        return self.vendors

    async def check_all_vendors_health(self, timeout_secs):
        self.calls.append(timeout_secs)
        if not self.healthy:
            raise RuntimeError("Authentication failed for vendor: mock-vendor")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("HEALTH_CHECK_TIMEOUT", raising=False)
    monkeypatch.delenv("HEALTH_CHECK_CACHE_TTL_SECS", raising=False)


@pytest.mark.asyncio
async def test_check_health_returns_version_and_uptime():
    result = await HealthService().check_health()
    assert result.status == "healthy"
    assert result.version == APP_VERSION
    assert result.uptime_seconds is not None and result.uptime_seconds >= 0


@pytest.mark.asyncio
async def test_check_readiness_with_executor_service_healthy():
    service = HealthService.with_executor(FakeExecutor(healthy=True))
    result = await service.check_readiness()
    assert result.status == "ready"
    assert result.dependencies.status == "healthy"
    assert result.dependencies.vendor_count == 1
    assert result.dependencies.latency_ms is not None
    assert result.dependencies.error is None


@pytest.mark.asyncio
async def test_check_readiness_with_executor_service_unhealthy():
    service = HealthService.with_executor(FakeExecutor(healthy=False))
    result = await service.check_readiness()
    assert result.status == "not_ready"
    assert result.dependencies.status == "unhealthy"
    assert result.dependencies.vendor_count == 1
    assert result.dependencies.latency_ms is not None
    assert result.dependencies.error == "Service dependencies unavailable"


@pytest.mark.asyncio
async def test_check_readiness_without_executor_service():
    result = await HealthService().check_readiness()
    assert result.status == "ready"
    assert result.dependencies.status == "healthy"
    assert result.dependencies.vendor_count is None
    assert result.dependencies.latency_ms is None
    assert result.dependencies.error is None


@pytest.mark.asyncio
async def test_cache_hit_returns_cached_result():
    executor = FakeExecutor(healthy=True)
    service = HealthService.with_executor(executor)
    first = await service.check_readiness()
    second = await service.check_readiness()
    assert first.status == second.status == "ready"
    assert first.dependencies.status == second.dependencies.status
    assert len(executor.calls) == 1


@pytest.mark.asyncio
async def test_cache_miss_after_ttl_expiry(monkeypatch):
    monkeypatch.setenv("HEALTH_CHECK_CACHE_TTL_SECS", "0")
    executor = FakeExecutor(healthy=True)
    service = HealthService.with_executor(executor)
    assert (await service.check_readiness()).status == "ready"
    assert (await service.check_readiness()).status == "ready"
    assert len(executor.calls) == 2


@pytest.mark.asyncio
async def test_failed_health_check_not_cached():
    executor = FakeExecutor(healthy=False)
    service = HealthService.with_executor(executor)
    assert (await service.check_readiness()).status == "not_ready"
    executor.healthy = True
    assert (await service.check_readiness()).status == "ready"


@pytest.mark.asyncio
async def test_health_check_uses_configured_timeout(monkeypatch):
    monkeypatch.setenv("HEALTH_CHECK_TIMEOUT", "7")
    executor = FakeExecutor()
    await HealthService.with_executor(executor).check_readiness()
    assert executor.calls == [7]


def test_health_config_from_env_default():
    config = HealthConfig.from_env()
    assert config.timeout == 2
    assert config.cache_ttl_secs == 5


def test_health_config_from_env_custom(monkeypatch):
    monkeypatch.setenv("HEALTH_CHECK_TIMEOUT", "5")
    assert HealthConfig.from_env().timeout == 5


@pytest.mark.parametrize("raw", ["invalid", "-3", "", "1.5"])
def test_health_config_from_env_invalid(monkeypatch, raw):
    monkeypatch.setenv("HEALTH_CHECK_TIMEOUT", raw)
    assert HealthConfig.from_env().timeout == 2


@pytest.mark.asyncio
async def test_check_health_always_returns_healthy():
    service = HealthService()
    for _ in range(5):
        assert (await service.check_health()).status == "healthy"


@pytest.mark.asyncio
async def test_check_readiness_timestamp_format():
    result = await HealthService().check_readiness()
    assert "T" in result.timestamp
    assert "+" in result.timestamp or "Z" in result.timestamp


@pytest.mark.asyncio
async def test_check_health_timestamp_format():
    result = await HealthService().check_health()
    assert "T" in result.timestamp
    assert "+" in result.timestamp or "Z" in result.timestamp


def test_health_response_to_dict_omits_missing_fields():
    response = HealthResponse(status="healthy", timestamp="t")
    assert response.to_dict() == {"status": "healthy", "timestamp": "t"}


def test_readiness_response_to_dict_nests_dependencies():
    response = ReadinessResponse(
        status="not_ready",
        timestamp="t",
        dependencies=DependencyStatus(status="unhealthy", vendor_count=0, error="boom"),
    )
    assert response.to_dict() == {
        "status": "not_ready",
        "timestamp": "t",
        "dependencies": {"status": "unhealthy", "vendor_count": 0, "error": "boom"},
    }
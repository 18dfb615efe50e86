"""
CrudLab Backend — Cloudinary Media Service Tests
=================================================

What:  Tests for MediaService: signing, retries, the circuit breaker and
       how Cloudinary answers map onto exceptions.
How:   httpx.MockTransport stands in for Cloudinary; no network access.
       RETRY_MIN_WAIT=0 (conftest) keeps retries instant.

Test Strategy:
    ✅ Circuit breaker state transitions (CLOSED → OPEN → HALF_OPEN → CLOSED)
    ✅ Signature matches Cloudinary's sha1 scheme
    ✅ Successful upload returns secure_url
    ✅ 5xx is retried, then counts as one breaker failure
    ✅ 4xx is not retried and does not trip the breaker
    ✅ Open breaker rejects uploads immediately
    ✅ HALF_OPEN admits one trial upload, and every outcome reports back
"""

import hashlib
import time

import httpx
import pytest

from crudlab.config import settings
from crudlab.exceptions import CircuitBreakerOpenError, MediaUploadError
from crudlab.services.media_service import CircuitBreaker, MediaService, sign_params


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class TestCircuitBreaker:

    def test_starts_closed(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        assert cb.state == CircuitBreaker.CLOSED
        assert cb.can_execute() is True

    def test_opens_after_threshold(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        for _ in range(3):
            cb.record_failure()
        assert cb.state == CircuitBreaker.OPEN

    def test_stays_closed_below_threshold(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        cb.record_failure()
        cb.record_failure()
        assert cb.state == CircuitBreaker.CLOSED

    def test_open_rejects_with_recovery_time(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=60)
        cb.record_failure()

        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            cb.can_execute()
        assert 1 <= exc_info.value.recovery_time <= 60

    def test_half_open_after_recovery_timeout(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=30)
        cb.record_failure()
        cb.last_failure_time = time.time() - 31

        assert cb.can_execute() is True
        assert cb.state == CircuitBreaker.HALF_OPEN

    def test_half_open_success_closes(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        cb.can_execute()

        cb.record_success()

        assert cb.state == CircuitBreaker.CLOSED
        assert cb.failure_count == 0

    def test_half_open_failure_reopens(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=0)
        for _ in range(5):
            cb.record_failure()
        cb.can_execute()
        assert cb.state == CircuitBreaker.HALF_OPEN

        cb.record_failure()
        assert cb.state == CircuitBreaker.OPEN

    def test_half_open_admits_a_single_trial(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()

        assert cb.can_execute() is True
        for _ in range(3):
            with pytest.raises(CircuitBreakerOpenError):
                cb.can_execute()
        assert cb.state == CircuitBreaker.HALF_OPEN

    def test_trial_result_releases_the_slot(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        cb.can_execute()

        cb.record_failure()
        assert cb.state == CircuitBreaker.OPEN
        assert cb.can_execute() is True
        assert cb.state == CircuitBreaker.HALF_OPEN

    def test_success_resets_failure_count(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        cb.record_failure()
        cb.record_failure()
        cb.record_success()
        cb.record_failure()
        assert cb.state == CircuitBreaker.CLOSED


# ══════════════════════════════════════════════════════════════════════════
# Signing
# ══════════════════════════════════════════════════════════════════════════

class TestSignParams:

    def test_sorted_and_joined_with_secret(self):
        expected = hashlib.sha1(b"folder=avatars&timestamp=1700000000abcd").hexdigest()
        assert sign_params({"timestamp": 1700000000, "folder": "avatars"}, "abcd") == expected

    def test_empty_values_are_skipped(self):
        assert sign_params({"folder": "", "timestamp": 1}, "s") == sign_params({"timestamp": 1}, "s")


# ══════════════════════════════════════════════════════════════════════════
# Uploads
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def image_file(tmp_path, sample_image_bytes):
    path = tmp_path / "avatar.png"
    path.write_bytes(sample_image_bytes)
    return str(path)


class CloudinaryStub:
    """Records requests and answers with a queue of responses."""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


def _ok(**overrides) -> httpx.Response:
    body = {
        "public_id": "crudlab/abc123",
        "secure_url": "https://res.cloudinary.com/demo/image/upload/crudlab/abc123.png",
        "url": "http://res.cloudinary.com/demo/image/upload/crudlab/abc123.png",
        "bytes": 67,
        "format": "png",
    }
    body.update(overrides)
    return httpx.Response(200, json=body)


class TestMediaUpload:

    @pytest.mark.asyncio
    async def test_upload_success_returns_secure_url(self, image_file):
        stub = CloudinaryStub(_ok())
        service = MediaService(transport=httpx.MockTransport(stub))

        result = await service.upload(image_file)

        assert result.url.startswith("https://res.cloudinary.com/")
        assert result.public_id == "crudlab/abc123"
        assert result.format == "png"
        assert len(stub.requests) == 1

    @pytest.mark.asyncio
    async def test_upload_posts_signed_form_to_cloud_endpoint(self, image_file):
        stub = CloudinaryStub(_ok())
        service = MediaService(transport=httpx.MockTransport(stub))

        await service.upload(image_file)

        request = stub.requests[0]
        assert request.method == "POST"
        assert request.url.path == f"/v1_1/{settings.cloudinary_cloud_name}/auto/upload"
        body = request.read()
        assert b'name="signature"' in body
        assert b'name="api_key"' in body
        assert settings.cloudinary_api_key.encode() in body
        assert settings.cloudinary_api_secret.encode() not in body
        assert b'filename="avatar.png"' in body

    @pytest.mark.asyncio
    async def test_upload_falls_back_to_plain_url(self, image_file):
        stub = CloudinaryStub(_ok(secure_url=None))
        service = MediaService(transport=httpx.MockTransport(stub))

        result = await service.upload(image_file)

        assert result.url.startswith("http://res.cloudinary.com/")

    @pytest.mark.asyncio
    async def test_no_path_returns_none(self):
        stub = CloudinaryStub(_ok())
        service = MediaService(transport=httpx.MockTransport(stub))

        assert await service.upload(None) is None
        assert await service.upload("") is None
        assert stub.requests == []

    @pytest.mark.asyncio
    async def test_server_errors_are_retried_then_fail(self, image_file):
        stub = CloudinaryStub(httpx.Response(502, text="bad gateway"))
        service = MediaService(transport=httpx.MockTransport(stub))

        with pytest.raises(MediaUploadError, match="Error while uploading on Cloudinary"):
            await service.upload(image_file)

        assert len(stub.requests) == settings.retry_max_attempts
        assert service.circuit_breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_transient_error_then_success(self, image_file):
        stub = CloudinaryStub(httpx.Response(503), _ok())
        service = MediaService(transport=httpx.MockTransport(stub))

        result = await service.upload(image_file)

        assert result.public_id == "crudlab/abc123"
        assert len(stub.requests) == 2
        assert service.circuit_breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, image_file):
        stub = CloudinaryStub(httpx.Response(400, json={"error": {"message": "Invalid image file"}}))
        service = MediaService(transport=httpx.MockTransport(stub))

        with pytest.raises(MediaUploadError) as exc_info:
            await service.upload(image_file)

        assert exc_info.value.context["status"] == 400
        assert len(stub.requests) == 1
        assert service.circuit_breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_transport_error_is_retried(self, image_file):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        service = MediaService(transport=httpx.MockTransport(handler))

        with pytest.raises(MediaUploadError):
            await service.upload(image_file)

        assert len(calls) == settings.retry_max_attempts

    @pytest.mark.asyncio
    async def test_open_circuit_rejects_without_request(self, image_file):
        stub = CloudinaryStub(_ok())
        service = MediaService(transport=httpx.MockTransport(stub))
        service.circuit_breaker.failure_threshold = 1
        service.circuit_breaker.recovery_timeout = 60
        service.circuit_breaker.record_failure()

        with pytest.raises(CircuitBreakerOpenError):
            await service.upload(image_file)

        assert stub.requests == []

    @pytest.mark.asyncio
    async def test_unconfigured_cloudinary_raises(self, image_file, monkeypatch):
        monkeypatch.setattr(settings, "cloudinary_api_secret", "")
        stub = CloudinaryStub(_ok())
        service = MediaService(transport=httpx.MockTransport(stub))

        with pytest.raises(MediaUploadError):
            await service.upload(image_file)

        assert stub.requests == []

    @pytest.mark.asyncio
    async def test_health_check(self, monkeypatch):
        service = MediaService()
        assert await service.health_check() is True

        service.circuit_breaker.failure_threshold = 1
        service.circuit_breaker.record_failure()
        assert await service.health_check() is False

        monkeypatch.setattr(settings, "cloudinary_cloud_name", "")
        assert await MediaService().health_check() is False


class TestHalfOpenUploads:
    """A HALF_OPEN trial upload always reports back to the breaker."""

    def _half_open_service(self, handler) -> MediaService:
        service = MediaService(transport=httpx.MockTransport(handler))
        service.circuit_breaker.failure_threshold = 1
        service.circuit_breaker.recovery_timeout = 0
        service.circuit_breaker.record_failure()
        return service

    @pytest.mark.asyncio
    async def test_rejected_trial_closes_breaker(self, image_file):
        stub = CloudinaryStub(httpx.Response(400, json={"error": {"message": "Invalid image"}}))
        service = self._half_open_service(stub)

        with pytest.raises(MediaUploadError):
            await service.upload(image_file)

        assert service.circuit_breaker.state == CircuitBreaker.CLOSED
        assert service.circuit_breaker.can_execute() is True

    @pytest.mark.asyncio
    async def test_unreadable_file_during_trial_reopens_breaker(self, tmp_path):
        stub = CloudinaryStub(_ok())
        service = self._half_open_service(stub)

        with pytest.raises(OSError):
            await service.upload(str(tmp_path / "vanished.png"))

        assert stub.requests == []
        assert service.circuit_breaker.state == CircuitBreaker.OPEN
        # recovery_timeout=0: the next caller gets a fresh trial
        assert service.circuit_breaker.can_execute() is True

    @pytest.mark.asyncio
    async def test_successful_trial_closes_breaker(self, image_file):
        service = self._half_open_service(CloudinaryStub(_ok()))

        result = await service.upload(image_file)

        assert result.public_id == "crudlab/abc123"
        assert service.circuit_breaker.state == CircuitBreaker.CLOSED

"""
CrudLab Backend — Cloudinary Media Service
===========================================

What:  Uploads local image files to Cloudinary and returns their public URL.
Who:   Called by UserService for avatar and cover-image updates.
How:   Signed multipart POST to Cloudinary's REST upload endpoint through
       httpx, with tenacity retries and a circuit breaker around it.

Resilience Strategy:
    1. Transport errors and 5xx answers are retried with exponential
       backoff + jitter (RETRY_* settings)
    2. Exhausted retries count as one circuit breaker failure
    3. After CB_FAILURE_THRESHOLD consecutive failures uploads are rejected
       immediately until CB_RECOVERY_TIMEOUT has passed
    4. 4xx answers (bad file, bad credentials) are not retried and count as
       a success for the breaker: the service answered
    5. Any other error after admission (unreadable temp file, cancelled
       request) counts as a failure, so a HALF_OPEN trial always reports back

Signing (Cloudinary "authenticated requests"):
    signature = sha1("folder=<folder>&timestamp=<unix>" + api_secret)
    Computed by cloudinary.utils.api_sign_request. api_key, file and
    resource_type are not part of the signed string.
"""

import logging
import time
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

import aiofiles
import httpx
from cloudinary.utils import api_sign_request
from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from crudlab.config import settings
from crudlab.exceptions import CircuitBreakerOpenError, MediaUploadError

logger = logging.getLogger(__name__)


class MediaUploadResult(BaseModel):
    """The subset of Cloudinary's upload answer the application uses."""
    url: Optional[str] = None
    public_id: Optional[str] = None
    bytes: Optional[int] = None
    format: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker guarding the Cloudinary upload endpoint.

    State Machine:
        CLOSED    → failures increment failure_count; at the threshold → OPEN
        OPEN      → every call raises CircuitBreakerOpenError until
                    recovery_timeout seconds pass, then → HALF_OPEN
        HALF_OPEN → exactly one trial call goes through; other callers are
                    rejected until it reports back. success → CLOSED,
                    failure → OPEN

    Every can_execute() that returns True must be followed by
    record_success() or record_failure(), otherwise the trial slot stays
    taken.

    Not thread-safe. uvicorn runs the app in one event loop per process,
    and each process keeps its own breaker.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None
        self._trial_in_flight = False

    def can_execute(self) -> bool:
        """
        Returns True when a call may proceed.

        Raises:
            CircuitBreakerOpenError while OPEN and inside the recovery window,
            and while a HALF_OPEN trial call is still running.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info("Circuit breaker transitioning to HALF_OPEN after %.1fs", elapsed)
                self.state = self.HALF_OPEN
                self._trial_in_flight = True
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=max(remaining, 1))

        if self._trial_in_flight:
            raise CircuitBreakerOpenError(recovery_time=1)
        self._trial_in_flight = True
        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None
        self._trial_in_flight = False

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()
        self._trial_in_flight = False

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


def sign_params(params: Dict[str, Any], api_secret: str) -> str:
    """Cloudinary request signature for `params` (sorted, '&'-joined, + secret)."""
    return api_sign_request(
        {key: value for key, value in params.items() if value not in (None, "")},
        api_secret,
    )


# ══════════════════════════════════════════════════════════════════════════
# Media Service
# ══════════════════════════════════════════════════════════════════════════

class MediaService:
    """
    Cloudinary uploader.

    Singleton: the circuit breaker state must be shared by all requests, so
    the module-level `media_service` instance is the one routes use.
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            transport: httpx transport override (tests pass httpx.MockTransport).
        """
        self._transport = transport
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

    @property
    def upload_url(self) -> str:
        base = settings.cloudinary_api_base.rstrip("/")
        return f"{base}/{settings.cloudinary_cloud_name}/auto/upload"

    def _signed_form(self) -> Dict[str, str]:
        params: Dict[str, Any] = {
            "folder": settings.cloudinary_folder,
            "timestamp": int(time.time()),
        }
        form = {key: str(value) for key, value in params.items() if value not in (None, "")}
        form["api_key"] = settings.cloudinary_api_key
        form["signature"] = sign_params(params, settings.cloudinary_api_secret)
        return form

    async def upload(self, local_path: Optional[str]) -> Optional[MediaUploadResult]:
        """
        Upload the file at `local_path` to Cloudinary.

        Returns:
            MediaUploadResult, or None when no path was given.

        Raises:
            CircuitBreakerOpenError: Too many recent upload failures
            MediaUploadError: Cloudinary is not configured, rejected the file,
                or kept failing after all retries
        """
        if not local_path:
            return None

        if not settings.cloudinary_configured:
            logger.error("Media upload attempted without Cloudinary credentials")
            raise MediaUploadError(context={"reason": "cloudinary_not_configured"})

        request_id = str(uuid.uuid4())[:8]
        self.circuit_breaker.can_execute()

        # Every path below reports to the breaker exactly once
        try:
            async with aiofiles.open(local_path, "rb") as f:
                content = await f.read()
            filename = Path(local_path).name

            logger.info(
                "[%s] Uploading %s (%d bytes) to Cloudinary", request_id, filename, len(content)
            )
            payload = await self._upload_with_retry(filename, content, request_id)
        except RetryError as e:
            self.circuit_breaker.record_failure()
            last = e.last_attempt.exception() if e.last_attempt else None
            logger.error("[%s] All Cloudinary retries exhausted: %s", request_id, last)
            raise MediaUploadError(
                context={"request_id": request_id, "attempts": settings.retry_max_attempts},
            )
        except httpx.HTTPStatusError as e:
            # 4xx: our request or the file is wrong, the service itself is fine
            self.circuit_breaker.record_success()
            logger.warning(
                "[%s] Cloudinary rejected upload: %d %s",
                request_id,
                e.response.status_code,
                e.response.text[:200],
            )
            raise MediaUploadError(
                context={"request_id": request_id, "status": e.response.status_code},
            )
        except BaseException:
            self.circuit_breaker.record_failure()
            logger.warning("[%s] Cloudinary upload aborted", request_id, exc_info=True)
            raise

        self.circuit_breaker.record_success()

        result = MediaUploadResult(
            url=payload.get("secure_url") or payload.get("url"),
            public_id=payload.get("public_id"),
            bytes=payload.get("bytes"),
            format=payload.get("format"),
        )
        logger.info("[%s] Cloudinary upload complete: %s", request_id, result.public_id)
        return result

    async def _upload_with_retry(self, filename: str, content: bytes, request_id: str) -> Dict[str, Any]:
        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_transient),
            stop=stop_after_attempt(settings.retry_max_attempts),
            wait=wait_exponential_jitter(
                initial=settings.retry_min_wait,
                max=settings.retry_max_wait,
                jitter=settings.retry_min_wait,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        async for attempt in retrying:
            with attempt:
                return await self._post(filename, content, request_id)
        raise AssertionError("unreachable")  # AsyncRetrying returns or raises

    async def _post(self, filename: str, content: bytes, request_id: str) -> Dict[str, Any]:
        start_time = time.perf_counter()
        async with httpx.AsyncClient(
            timeout=settings.media_timeout,
            transport=self._transport,
        ) as client:
            response = await client.post(
                self.upload_url,
                data=self._signed_form(),
                files={"file": (filename, content)},
            )
        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            "[%s] Cloudinary answered %d in %.0fms",
            request_id,
            response.status_code,
            duration_ms,
        )
        response.raise_for_status()
        return response.json()

    async def health_check(self) -> bool:
        """True when credentials are configured and the breaker is not OPEN."""
        return settings.cloudinary_configured and self.circuit_breaker.state != CircuitBreaker.OPEN


media_service = MediaService()

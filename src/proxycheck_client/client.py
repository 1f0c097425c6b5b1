"""
ProxyCheck client.

Coordinates the components that make up a check:
- Subject validation (IP and email)
- Cache lookup and storage through the CacheGateway
- Upstream requests through the HttpTransport
- Response normalization into typed records
- Local block policy evaluation
- Batch chunking and demultiplexing

Every public check returns a CheckOutcome; client errors never escape as
exceptions.
"""

import time
from typing import Iterable, Optional
from urllib.parse import quote

import httpx

from .batch import BatchCoordinator
from .block_policy import BlockPolicyEngine
from .cache_gateway import CacheGateway
from .cache_store import CacheStore
from .config import ClientConfig
from .dashboard import DashboardClient
from .enums import ErrorCode, LogLevel
from .event_logger import EventLogger
from .exceptions import ProxyCheckError, ValidationError
from .models import CheckOutcome, EmailRecord, IPRecord, NormalizedRecord
from .normalizer import ResponseNormalizer
from .parameters import ParameterSet
from .transport import HttpTransport
from .validators import SubjectValidator, is_email, mask_email


class ProxyCheckClient:
    """
    Client for the proxycheck.io v2 API.

    The client holds an immutable ClientConfig and a ParameterSet; replacing
    the parameter set never affects a request that is already being built.
    Use it as an async context manager so the HTTP connection pool is closed.
    """

    COMPONENT = "ProxyCheckClient"

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        parameters: Optional[ParameterSet] = None,
        cache_store: Optional[CacheStore] = None,
        logger: Optional[EventLogger] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Client configuration (defaults: no API key, memory cache)
            parameters: Request parameters (defaults to ParameterSet())
            cache_store: Cache backend (defaults to an in-process MemoryCacheStore)
            logger: Optional event logger; when omitted, one is built from
                    config.logging if logging is enabled there
            http_transport: Optional httpx transport, e.g. httpx.MockTransport
        """
        self._config = config or ClientConfig()
        self._parameters = parameters or ParameterSet()
        if logger is None and self._config.logging.enabled:
            logger = EventLogger.from_config(self._config.logging)
        self._logger = logger

        self._validator = SubjectValidator()
        self._normalizer = ResponseNormalizer()
        self._policy = BlockPolicyEngine()
        self._batch = BatchCoordinator(self._config.has_api_key)
        self._cache = CacheGateway(self._config.cache, store=cache_store, logger=logger)
        self._transport = HttpTransport(
            timeout=self._config.timeout_seconds,
            logger=logger,
            transport=http_transport,
        )
        self._dashboard = DashboardClient(
            self._config, self._transport, self._cache, logger=logger
        )

    async def __aenter__(self) -> "ProxyCheckClient":
        await self._transport.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._transport.close()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def parameters(self) -> ParameterSet:
        return self._parameters

    def set_parameters(self, parameters: ParameterSet) -> None:
        """Replace the parameter set used by subsequent checks."""
        self._parameters = parameters

    @property
    def logger(self) -> Optional[EventLogger]:
        return self._logger

    @property
    def dashboard(self) -> DashboardClient:
        return self._dashboard

    @property
    def cache(self) -> CacheGateway:
        return self._cache

    # -- single checks -----------------------------------------------------

    async def check_ip(
        self, ip: str, options: Optional[dict] = None
    ) -> CheckOutcome[IPRecord]:
        """
        Check a single IP address.

        Args:
            ip: IPv4 or IPv6 address
            options: Query parameter overrides for this request only,
                     using upstream names (e.g. ``{"risk": 2}``)

        Returns:
            CheckOutcome carrying an IPRecord or the error
        """
        try:
            subject = self._validator.validate_ip(ip).raise_for_error()
            return CheckOutcome.ok(await self._check(subject, options))
        except ProxyCheckError as e:
            return self._failure("IP check failed", e, {"subject": ip})

    async def check_email(
        self, email: str, mask: Optional[bool] = None
    ) -> CheckOutcome[EmailRecord]:
        """
        Check whether an email address belongs to a disposable provider.

        Args:
            email: Email address
            mask: Replace the local part with "anonymous" before sending;
                  defaults to the parameter set's mask_email

        Returns:
            CheckOutcome carrying an EmailRecord or the error
        """
        try:
            subject = self._validator.validate_email(email).raise_for_error()
            if mask if mask is not None else self._parameters.mask_email:
                subject = mask_email(subject)
            return CheckOutcome.ok(await self._check(subject, None))
        except ProxyCheckError as e:
            return self._failure("Email check failed", e, {})

    async def check_subject(
        self, subject: str, options: Optional[dict] = None
    ) -> CheckOutcome[NormalizedRecord]:
        """Check an IP address or, when it contains '@', an email address."""
        if isinstance(subject, str) and is_email(subject):
            return await self.check_email(subject)
        return await self.check_ip(subject, options)

    async def _check(self, subject: str, options: Optional[dict]) -> NormalizedRecord:
        parameters = self._parameters
        key = self._cache.key_for(
            subject, {"parameters": parameters.to_cache_options(), "options": options or {}}
        )

        cached = self._cache.get(key)
        if cached is not None:
            try:
                record = self._normalizer.normalize(cached)
            except ProxyCheckError as e:
                self._log(
                    LogLevel.WARN,
                    "Cached payload could not be normalized, treating as miss",
                    {"cache_entry": key, "reason": e.message},
                )
            else:
                self._log(LogLevel.DEBUG, "Cache hit", {"cache_entry": key})
                return record

        url = self._config.api_base + quote(subject, safe="@:")
        payload = await self._transport.get(url, params=self._query_params(parameters, options))

        record = self._normalizer.normalize(payload)
        record, embedded = self._policy.apply(record, parameters)
        self._cache.set(key, embedded)
        self._log_decision(record)
        return record

    # -- batch checks ------------------------------------------------------

    async def check_ips(
        self, ips: Iterable[str], options: Optional[dict] = None
    ) -> CheckOutcome[dict[str, NormalizedRecord]]:
        """
        Check several IP addresses.

        Invalid entries are dropped before anything is sent. Chunks are
        requested one after another; if any chunk fails the whole batch
        fails and no partial results are returned.

        Returns:
            CheckOutcome carrying a mapping of subject to record
        """
        return await self._check_batch(ips, options, allow_email=False)

    async def check_subjects(
        self, subjects: Iterable[str], options: Optional[dict] = None
    ) -> CheckOutcome[dict[str, NormalizedRecord]]:
        """Batch check that accepts both IP and email subjects."""
        return await self._check_batch(subjects, options, allow_email=True)

    async def _check_batch(
        self, subjects: Iterable[str], options: Optional[dict], allow_email: bool
    ) -> CheckOutcome[dict[str, NormalizedRecord]]:
        start_time = time.perf_counter()
        try:
            valid = self._filter_valid(subjects, allow_email)
            if not valid:
                raise ValidationError(
                    code=ErrorCode.INVALID_IPS.value,
                    message="No valid IPs provided for check",
                )

            parameters = self._parameters
            params = self._query_params(parameters, options)
            chunks = self._batch.partition(valid)
            results: dict[str, NormalizedRecord] = {}

            for index, chunk in enumerate(chunks, start=1):
                self._log(
                    LogLevel.DEBUG,
                    f"Requesting chunk {index}/{len(chunks)}",
                    {"chunk_size": len(chunk)},
                )
                response = await self._transport.post(
                    self._config.api_base,
                    params=params,
                    data=self._batch.request_body(chunk),
                )
                for subject, payload in self._batch.demultiplex(response, chunk).items():
                    record = self._normalizer.normalize(payload)
                    record, _ = self._policy.apply(record, parameters)
                    results[subject] = record

            self._log(
                LogLevel.INFO,
                "Batch check completed",
                {
                    "requested": len(valid),
                    "returned": len(results),
                    "chunks": len(chunks),
                    "duration_ms": (time.perf_counter() - start_time) * 1000,
                },
            )
            return CheckOutcome.ok(results)
        except ProxyCheckError as e:
            return self._failure("Batch check failed", e, {})

    def _filter_valid(self, subjects: Iterable[str], allow_email: bool) -> list[str]:
        valid = []
        for subject in subjects:
            email = allow_email and isinstance(subject, str) and is_email(subject)
            if email:
                result = self._validator.validate_email(subject)
            else:
                result = self._validator.validate_ip(subject)
            if not result.valid:
                continue
            canonical = result.canonical
            if email and self._parameters.mask_email:
                canonical = mask_email(canonical)
            if canonical not in valid:
                valid.append(canonical)
        return valid

    # -- cache -------------------------------------------------------------

    def clear_cache(self, subject: Optional[str] = None) -> bool:
        """
        Clear the cached results for one subject, or every cached entry.

        A subject is cleared for every parameter set and request option it
        was checked with. Email addresses are masked first when the
        parameter set masks them, matching the key they were cached under.
        """
        if subject is None:
            return self._cache.clear()
        return self._cache.clear(self._cache_subject(subject))

    def _cache_subject(self, subject: str) -> str:
        if isinstance(subject, str) and is_email(subject):
            result = self._validator.validate_email(subject)
            if not result.valid:
                return subject
            if self._parameters.mask_email:
                return mask_email(result.canonical)
            return result.canonical
        result = self._validator.validate_ip(subject)
        return result.canonical if result.valid else subject

    # -- helpers -----------------------------------------------------------

    def _query_params(self, parameters: ParameterSet, options: Optional[dict]) -> dict:
        params = parameters.to_query_params()
        if options:
            params.update(options)
        if self._config.has_api_key:
            params["key"] = self._config.api_key
        return params

    def _log_decision(self, record: NormalizedRecord) -> None:
        if record.decision is None:
            return
        self._log(
            LogLevel.DEBUG,
            "Block decision",
            {
                "block": record.decision.block.value,
                "block_reason": record.decision.reason.value,
            },
        )

    def _failure(self, message: str, error: ProxyCheckError, data: dict) -> CheckOutcome:
        if self._logger:
            self._logger.log_error(self.COMPONENT, message, error, data)
        return CheckOutcome.fail(error)

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, self.COMPONENT, message, data)

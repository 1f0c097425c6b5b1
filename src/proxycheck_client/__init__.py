"""
ProxyCheck Client - async client for the proxycheck.io v2 API.

This package checks IP addresses and email addresses against proxycheck.io,
normalizes the answers into typed records, applies a local block policy
with country rules, and caches results. Dashboard exports and list
management are available for accounts with an API key.
"""

__version__ = "0.1.0"
__author__ = "ProxyCheck Client Team"

from proxycheck_client.exceptions import (
    ProxyCheckError,
    ValidationError,
    NetworkError,
    HttpError,
    DecodeError,
    ApiError,
    MalformedResponseError,
    MissingApiKeyError,
    AccessDeniedError,
    CacheError,
    TamperingError,
)
from proxycheck_client.enums import (
    BlockStatus,
    BlockReason,
    ErrorCode,
    ListName,
    ListAction,
    LogLevel,
)
from proxycheck_client.config import (
    CacheConfig,
    LoggingConfig,
    ClientConfig,
    load_config_from_env,
    load_config_from_file,
    save_config_to_file,
)
from proxycheck_client.parameters import (
    CountryRuleSet,
    ParameterSet,
)
from proxycheck_client.validators import (
    SubjectValidator,
    SubjectValidationResult,
    is_email,
    mask_email,
)
from proxycheck_client.models import (
    BlockDetails,
    BlockDecision,
    Operator,
    OperatorDetails,
    Continent,
    Country,
    Region,
    Coordinates,
    Currency,
    Geography,
    Devices,
    CheckRecord,
    IPRecord,
    EmailRecord,
    NormalizedRecord,
    CheckOutcome,
)
from proxycheck_client.normalizer import (
    ResponseNormalizer,
)
from proxycheck_client.block_policy import (
    BlockPolicyEngine,
)
from proxycheck_client.cache_store import (
    CacheStore,
    MemoryCacheStore,
    JsonFileCacheStore,
)
from proxycheck_client.cache_gateway import (
    CacheGateway,
)
from proxycheck_client.transport import (
    HttpTransport,
)
from proxycheck_client.batch import (
    BatchCoordinator,
)
from proxycheck_client.event_logger import (
    EventLogger,
    LogEntry,
)
from proxycheck_client.dashboard_models import (
    UsageStatistics,
    QueryStatistics,
    Detection,
    DetectionEntries,
    TagSummary,
    TagEntries,
    ListEntries,
)
from proxycheck_client.dashboard import (
    DashboardClient,
)
from proxycheck_client.client import (
    ProxyCheckClient,
)

__all__ = [
    # Exceptions
    "ProxyCheckError",
    "ValidationError",
    "NetworkError",
    "HttpError",
    "DecodeError",
    "ApiError",
    "MalformedResponseError",
    "MissingApiKeyError",
    "AccessDeniedError",
    "CacheError",
    "TamperingError",
    # Enums
    "BlockStatus",
    "BlockReason",
    "ErrorCode",
    "ListName",
    "ListAction",
    "LogLevel",
    # Configuration
    "CacheConfig",
    "LoggingConfig",
    "ClientConfig",
    "load_config_from_env",
    "load_config_from_file",
    "save_config_to_file",
    # Parameters
    "CountryRuleSet",
    "ParameterSet",
    # Validators
    "SubjectValidator",
    "SubjectValidationResult",
    "is_email",
    "mask_email",
    # Models
    "BlockDetails",
    "BlockDecision",
    "Operator",
    "OperatorDetails",
    "Continent",
    "Country",
    "Region",
    "Coordinates",
    "Currency",
    "Geography",
    "Devices",
    "CheckRecord",
    "IPRecord",
    "EmailRecord",
    "NormalizedRecord",
    "CheckOutcome",
    # Normalizer
    "ResponseNormalizer",
    # Block Policy
    "BlockPolicyEngine",
    # Cache
    "CacheStore",
    "MemoryCacheStore",
    "JsonFileCacheStore",
    "CacheGateway",
    # Transport
    "HttpTransport",
    # Batch
    "BatchCoordinator",
    # Event Logger
    "EventLogger",
    "LogEntry",
    # Dashboard
    "UsageStatistics",
    "QueryStatistics",
    "Detection",
    "DetectionEntries",
    "TagSummary",
    "TagEntries",
    "ListEntries",
    "DashboardClient",
    # Client
    "ProxyCheckClient",
]

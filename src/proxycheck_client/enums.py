"""
Enumeration types for the proxycheck client.

These enums provide type-safe constants for block decisions, error codes,
dashboard list operations and logging throughout the package.
"""

from enum import Enum


class BlockStatus(Enum):
    """Local block verdict for a checked subject."""

    YES = "yes"
    NO = "no"
    NA = "na"


class BlockReason(Enum):
    """Why a subject was blocked.

    NONE and NOT_APPLICABLE share the wire value "na"; the block status
    tells them apart.
    """

    NONE = "na"
    PROXY = "proxy"
    VPN = "vpn"
    HIGH_RISK = "high_risk"
    COUNTRY = "country"
    DISPOSABLE = "disposable"

    NOT_APPLICABLE = "na"


class ErrorCode(Enum):
    """Error codes carried by ProxyCheckError subclasses."""

    INVALID_IP = "invalid_ip"
    INVALID_IPS = "invalid_ips"
    INVALID_EMAIL = "invalid_email"
    INVALID_PARAMETER = "invalid_parameter"
    INVALID_CONFIG = "invalid_config"
    INVALID_ACTION = "invalid_action"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    JSON_ERROR = "json_error"
    API_ERROR = "api_error"
    MALFORMED_RESPONSE = "malformed_response"
    MISSING_API_KEY = "missing_api_key"
    ACCESS_DENIED = "api_access_denied"
    CACHE_ERROR = "cache_error"
    HMAC_MISMATCH = "hmac_mismatch"


class ListName(Enum):
    """Dashboard lists that can be managed remotely."""

    WHITELIST = "whitelist"
    BLACKLIST = "blacklist"
    CORS = "cors"


class ListAction(Enum):
    """Actions accepted by the dashboard list endpoints."""

    PRINT = "print"
    ADD = "add"
    REMOVE = "remove"
    SET = "set"
    CLEAR = "clear"
    ERASE = "erase"
    FORCEDL = "forcedl"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

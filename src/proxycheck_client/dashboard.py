"""
Dashboard API client.

Read access to usage and export endpoints plus remote management of the
whitelist, blacklist and CORS origin list. Every call requires an API key.
Read results are cached through the client's CacheGateway unless
``force_check`` is set; list management is never cached.
"""

from typing import Iterable, Optional, TypeVar, Union

from .cache_gateway import CacheGateway
from .config import ClientConfig
from .dashboard_models import (
    DetectionEntries,
    ListEntries,
    QueryStatistics,
    TagEntries,
    UsageStatistics,
)
from .enums import ErrorCode, ListAction, ListName, LogLevel
from .event_logger import EventLogger
from .exceptions import AccessDeniedError, MissingApiKeyError, ProxyCheckError, ValidationError
from .models import CheckOutcome
from .transport import HttpTransport

P = TypeVar("P")

# Actions that send their items in the request body
DATA_ACTIONS = frozenset({ListAction.ADD, ListAction.REMOVE, ListAction.SET})

ACCESS_DENIED_MESSAGE = (
    "API access denied. Please enable Dashboard API Access in your "
    "proxycheck.io dashboard."
)

ListItems = Union[str, Iterable[str]]


def format_list(items: ListItems) -> str:
    """Trim list items and join them one per line, dropping blanks."""
    if isinstance(items, str):
        items = items.split("\n")
    return "\n".join(item.strip() for item in items if item and item.strip())


class DashboardClient:
    """Dashboard endpoints for one configured client."""

    COMPONENT = "DashboardClient"

    def __init__(
        self,
        config: ClientConfig,
        transport: HttpTransport,
        cache: CacheGateway,
        logger: Optional[EventLogger] = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._cache = cache
        self._logger = logger

    # -- exports -----------------------------------------------------------

    async def get_usage(self, force_check: bool = False) -> CheckOutcome[UsageStatistics]:
        """Current daily query usage, limit and burst tokens."""
        return await self._export(
            "export/usage/", "usage", {}, UsageStatistics, force_check
        )

    async def export_queries(self, force_check: bool = False) -> CheckOutcome[QueryStatistics]:
        """Per-day query statistics for the last 30 days."""
        return await self._export(
            "export/queries/", "queries", {"json": 1}, QueryStatistics, force_check
        )

    async def export_detections(
        self, limit: int = 100, offset: int = 0, force_check: bool = False
    ) -> CheckOutcome[DetectionEntries]:
        """Recent positive detections, paginated."""
        return await self._export(
            "export/detections/",
            "detections",
            {"json": 1, "limit": limit, "offset": offset},
            DetectionEntries,
            force_check,
        )

    async def export_tags(
        self,
        limit: int = 100,
        offset: int = 0,
        addresses: bool = False,
        days: Optional[int] = None,
        start: Optional[int] = None,
        end: Optional[int] = None,
        force_check: bool = False,
    ) -> CheckOutcome[TagEntries]:
        """
        Query counts grouped by tag.

        Args:
            limit: Number of tags to return
            offset: Pagination offset
            addresses: Include the addresses seen for each tag
            days: Restrict to the last N days
            start: Unix timestamp lower bound
            end: Unix timestamp upper bound
        """
        params = {
            "json": 1,
            "limit": limit,
            "offset": offset,
            "addresses": int(addresses),
            "days": days,
            "start": start,
            "end": end,
        }
        params = {name: value for name, value in params.items() if value is not None}
        return await self._export("export/tags/", "tags", params, TagEntries, force_check)

    async def _export(
        self,
        endpoint: str,
        name: str,
        params: dict,
        model: type[P],
        force_check: bool,
    ) -> CheckOutcome[P]:
        try:
            self._require_api_key()
            key = self._cache.key_for(f"dashboard:{name}", params)

            if not force_check:
                cached = self._cache.get(key)
                if cached is not None:
                    self._log(LogLevel.DEBUG, f"Cache hit for {endpoint}", {"endpoint": endpoint})
                    return CheckOutcome.ok(model(cached))

            payload = await self._request(endpoint, params)
            self._cache.set(key, payload)
            return CheckOutcome.ok(model(payload))
        except ProxyCheckError as e:
            return self._failure(endpoint, e)

    # -- list management ---------------------------------------------------

    async def manage_list(
        self,
        action: Union[str, ListAction],
        list_name: Union[str, ListName],
        items: Optional[ListItems] = None,
    ) -> CheckOutcome[ListEntries]:
        """
        Run a list action against the whitelist, blacklist or CORS list.

        ``add``, ``remove`` and ``set`` POST their items; every other action
        is a GET. ``list`` is accepted for the CORS list as ``print``.
        """
        try:
            list_enum = self._resolve_list(list_name)
            action_enum = self._resolve_action(action, list_enum)
            self._require_api_key()

            verb = "list" if action_enum == ListAction.PRINT else action_enum.value
            endpoint = f"{list_enum.value}/{verb}/"

            data = None
            if items is not None and action_enum in DATA_ACTIONS:
                data = {"data": format_list(items)}

            payload = await self._request(endpoint, {"json": 1}, data)
            if payload.get("status") == "denied":
                raise AccessDeniedError(
                    code=ErrorCode.ACCESS_DENIED.value,
                    message=payload.get("message") or ACCESS_DENIED_MESSAGE,
                    details={"list": list_enum.value, "action": action_enum.value},
                )

            self._log(
                LogLevel.INFO,
                f"List {list_enum.value} {action_enum.value} completed",
                {"list": list_enum.value, "action": action_enum.value},
            )
            return CheckOutcome.ok(ListEntries(payload))
        except ProxyCheckError as e:
            return self._failure(f"{list_name}/{action}", e)

    @staticmethod
    def _resolve_list(list_name: Union[str, ListName]) -> ListName:
        if isinstance(list_name, ListName):
            return list_name
        try:
            return ListName(str(list_name).lower())
        except ValueError:
            raise ValidationError(
                code=ErrorCode.INVALID_ACTION.value,
                message=f"Invalid list: {list_name}",
                details={"list": list_name},
            )

    @staticmethod
    def _resolve_action(action: Union[str, ListAction], list_name: ListName) -> ListAction:
        if isinstance(action, ListAction):
            return action
        value = str(action).lower()
        if list_name == ListName.CORS and value == "list":
            value = ListAction.PRINT.value
        try:
            return ListAction(value)
        except ValueError:
            raise ValidationError(
                code=ErrorCode.INVALID_ACTION.value,
                message=f"Invalid list action: {action}",
                details={"action": action, "list": list_name.value},
            )

    async def get_whitelist(self) -> CheckOutcome[ListEntries]:
        return await self.manage_list(ListAction.PRINT, ListName.WHITELIST)

    async def add_to_whitelist(self, items: ListItems) -> CheckOutcome[ListEntries]:
        return await self.manage_list(ListAction.ADD, ListName.WHITELIST, items)

    async def remove_from_whitelist(self, items: ListItems) -> CheckOutcome[ListEntries]:
        return await self.manage_list(ListAction.REMOVE, ListName.WHITELIST, items)

    async def set_whitelist(self, items: ListItems) -> CheckOutcome[ListEntries]:
        return await self.manage_list(ListAction.SET, ListName.WHITELIST, items)

    async def clear_whitelist(self) -> CheckOutcome[ListEntries]:
        return await self.manage_list(ListAction.CLEAR, ListName.WHITELIST)

    async def get_blacklist(self) -> CheckOutcome[ListEntries]:
        return await self.manage_list(ListAction.PRINT, ListName.BLACKLIST)

    async def add_to_blacklist(self, items: ListItems) -> CheckOutcome[ListEntries]:
        return await self.manage_list(ListAction.ADD, ListName.BLACKLIST, items)

    async def remove_from_blacklist(self, items: ListItems) -> CheckOutcome[ListEntries]:
        return await self.manage_list(ListAction.REMOVE, ListName.BLACKLIST, items)

    async def set_blacklist(self, items: ListItems) -> CheckOutcome[ListEntries]:
        return await self.manage_list(ListAction.SET, ListName.BLACKLIST, items)

    async def clear_blacklist(self) -> CheckOutcome[ListEntries]:
        return await self.manage_list(ListAction.CLEAR, ListName.BLACKLIST)

    async def get_cors_origins(self) -> CheckOutcome[ListEntries]:
        return await self.manage_list("list", ListName.CORS)

    async def add_cors_origins(self, origins: ListItems) -> CheckOutcome[ListEntries]:
        return await self.manage_list(ListAction.ADD, ListName.CORS, origins)

    async def remove_cors_origins(self, origins: ListItems) -> CheckOutcome[ListEntries]:
        return await self.manage_list(ListAction.REMOVE, ListName.CORS, origins)

    async def set_cors_origins(self, origins: ListItems) -> CheckOutcome[ListEntries]:
        return await self.manage_list(ListAction.SET, ListName.CORS, origins)

    async def clear_cors_origins(self) -> CheckOutcome[ListEntries]:
        return await self.manage_list(ListAction.CLEAR, ListName.CORS)

    # -- plumbing ----------------------------------------------------------

    def _require_api_key(self) -> None:
        if not self._config.has_api_key:
            raise MissingApiKeyError(
                code=ErrorCode.MISSING_API_KEY.value,
                message="API key is required for dashboard API requests",
            )

    async def _request(
        self, endpoint: str, params: dict, data: Optional[dict] = None
    ) -> dict:
        url = self._config.dashboard_base + endpoint.lstrip("/")
        query = {**params, "key": self._config.api_key}
        if data is not None:
            return await self._transport.post(url, params=query, data=data)
        return await self._transport.get(url, params=query)

    def _failure(self, endpoint: str, error: ProxyCheckError) -> CheckOutcome:
        if self._logger:
            self._logger.log_error(
                self.COMPONENT, "Dashboard request failed", error, {"endpoint": endpoint}
            )
        return CheckOutcome.fail(error)

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, self.COMPONENT, message, data)

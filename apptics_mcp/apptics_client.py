"""Crash analytics queries against the Zoho Apptics REST API."""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, Optional

import httpx

from .auth import TokenManager
from .config import DEFAULT_APPTICS_URI
from .errors import ApiError

logger = logging.getLogger(__name__)

API_PATH = "cx/api/v1/"
DEFAULT_LIMIT = "20"
DEFAULT_ACTIVE_DEVICE_GROUP = "platform"
DATE_FORMAT = "%d-%m-%Y"


@dataclass(frozen=True)
class DateRange:
    """Inclusive date window, both bounds formatted dd-MM-YYYY."""

    start_date: str
    end_date: str


def default_date_range(today: Optional[date] = None) -> DateRange:
    """The last seven full days: today-7 through yesterday."""
    today = today or date.today()
    return DateRange(
        start_date=(today - timedelta(days=7)).strftime(DATE_FORMAT),
        end_date=(today - timedelta(days=1)).strftime(DATE_FORMAT),
    )


def resolve_date_range(
    start_date: Optional[str],
    end_date: Optional[str],
    today: Optional[date] = None,
) -> DateRange:
    """Use the caller's dates only when both are given.

    A single bound is not half-filled: if either one is missing, both fall
    back to the default window.
    """
    if not start_date or not end_date:
        return default_date_range(today)
    return DateRange(start_date=start_date, end_date=end_date)


class AppticsClient:
    """Issues authenticated crash analytics requests to Apptics."""

    def __init__(
        self,
        token_manager: TokenManager,
        apptics_uri: str = DEFAULT_APPTICS_URI,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token_manager = token_manager
        self.apptics_uri = apptics_uri
        self.timeout = timeout
        self._transport = transport

    def _url(self, path: str) -> str:
        return f"{self.apptics_uri}{API_PATH}{path}"

    def _base_params(self, start_date: Optional[str], end_date: Optional[str]) -> Dict[str, str]:
        date_range = resolve_date_range(start_date, end_date)
        return {"startdate": date_range.start_date, "enddate": date_range.end_date}

    async def _get_headers(
        self,
        project_id: Optional[str] = None,
        zsoid: Optional[str] = None,
    ) -> dict:
        """Get headers for API requests."""
        headers = await self.token_manager.get_auth_header()
        if project_id is not None:
            headers["projectid"] = project_id
        if zsoid is not None:
            headers["zsoid"] = zsoid
        return headers

    async def _request(
        self,
        path: str,
        params: Optional[Dict[str, str]] = None,
        project_id: Optional[str] = None,
        zsoid: Optional[str] = None,
    ) -> Any:
        """GET an API path and return the decoded JSON body.

        Raises:
            ApiError: On any non-2xx response.
        """
        headers = await self._get_headers(project_id, zsoid)
        url = self._url(path)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(url, params=params, headers=headers)

        logger.info(f"GET {path} -> {response.status_code}")
        if not response.is_success:
            logger.error(f"Apptics request failed: {response.status_code} - {response.text}")
            raise ApiError(
                f"Apptics request to {path} failed.",
                status_code=response.status_code,
                body=response.text,
            )
        return response.json()

    async def get_portals_and_projects(self) -> Any:
        """List portals and their projects.

        Returns:
            The ``result`` field of the response when present, else the body.
        """
        data = await self._request("userprojects")
        if isinstance(data, dict) and data.get("result") is not None:
            return data["result"]
        return data

    async def get_crash_list(
        self,
        project_id: str,
        zsoid: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        app_version: Optional[str] = None,
        platform: Optional[str] = None,
        mode: Optional[str] = None,
        offset: Optional[str] = None,
        limit: Optional[str] = None,
    ) -> Any:
        """List crashes for a project, newest window by default.

        Note that any ``mode`` value is sent as ``mode=1`` (production).
        """
        params = self._base_params(start_date, end_date)
        if app_version is not None:
            params["appversion"] = app_version
        if platform is not None:
            params["platform"] = platform
        if mode is not None:
            # The caller's value is not forwarded; presence selects production.
            params["mode"] = "1"
        if offset is not None:
            params["offset"] = offset
        params["limit"] = limit if limit is not None else DEFAULT_LIMIT

        return await self._request("crash/list", params, project_id, zsoid)

    async def get_crash_count_summary(
        self,
        project_id: str,
        zsoid: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        app_version: Optional[str] = None,
        platform: Optional[str] = None,
    ) -> Any:
        params = self._base_params(start_date, end_date)
        if app_version is not None:
            params["appversion"] = app_version
        if platform is not None:
            params["platform"] = platform

        return await self._request("crash/summary", params, project_id, zsoid)

    async def get_crash_detail(
        self,
        project_id: str,
        zsoid: str,
        unique_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        app_version: Optional[str] = None,
    ) -> Any:
        """Fetch a crash summary with its stack trace."""
        params = self._base_params(start_date, end_date)
        if app_version is not None:
            params["appversion"] = app_version

        return await self._request(
            f"crash/{unique_id}/summarywithtrace", params, project_id, zsoid
        )

    async def get_crash_count_by_date(
        self,
        project_id: str,
        zsoid: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        app_version: Optional[str] = None,
        platform: Optional[str] = None,
    ) -> Any:
        params = self._base_params(start_date, end_date)
        if app_version is not None:
            params["appversion"] = app_version
        if platform is not None:
            params["platform"] = platform

        return await self._request("crash/countbydate", params, project_id, zsoid)

    async def get_device_crash_distribution(
        self,
        project_id: str,
        zsoid: str,
        unique_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        app_version: Optional[str] = None,
        limit: Optional[str] = None,
        offset: Optional[str] = None,
    ) -> Any:
        """Crash counts for one crash, broken down by device model."""
        params = self._base_params(start_date, end_date)
        params["uniqueid"] = unique_id
        if app_version is not None:
            params["appversion"] = app_version
        params["limit"] = limit if limit is not None else DEFAULT_LIMIT
        if offset is not None:
            params["offset"] = offset

        return await self._request("crash/devicemodel", params, project_id, zsoid)

    async def get_active_devices(
        self,
        project_id: str,
        zsoid: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        group: Optional[str] = None,
    ) -> Any:
        params = self._base_params(start_date, end_date)
        params["group"] = group if group is not None else DEFAULT_ACTIVE_DEVICE_GROUP

        return await self._request("activedevice/multigroup", params, project_id, zsoid)

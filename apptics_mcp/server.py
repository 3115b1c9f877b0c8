"""MCP tool server exposing Apptics crash analytics."""

import json
import logging
import sys
from typing import Annotated, Any, Literal, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools.tool import ToolResult
from pydantic import Field

from .apptics_client import AppticsClient
from .auth import TokenManager
from .config import Settings, load_settings
from .errors import AppticsError, ConfigError
from .models import CrashList

logger = logging.getLogger(__name__)

SERVER_NAME = "zoho-apptics"

PortalId = Annotated[
    str, Field(description="Portal identifier (zsoid) of the portal to which the project belongs.")
]
ProjectId = Annotated[str, Field(description="Project identifier within the specified portal.")]
UniqueId = Annotated[
    str, Field(description="Unique crash identifier. This can be obtained from the crash list API")
]
StartDate = Annotated[
    Optional[str],
    Field(description="Inclusive start date for the query in dd-MM-YYYY format. "
                      "Default: 7 days before today (excluding today)."),
]
EndDate = Annotated[
    Optional[str],
    Field(description="Inclusive end date for the query in dd-MM-YYYY format. "
                      "Default: yesterday (today is excluded)."),
]
AppVersion = Annotated[
    Optional[str],
    Field(description='Optional comma-separated list of app versions to filter by. '
                      'Example: "3.0,3.1,4.0". Defaults to all versions when omitted.'),
]
Platform = Annotated[
    Optional[str],
    Field(description='Optional comma-separated list of platforms to filter by. '
                      'Examples: "iOS,Android", "Windows,tvOS,watchOS,macOS". '
                      'Defaults to all supported platforms when omitted.'),
]
Offset = Annotated[
    Optional[str],
    Field(description="Starting position for result pagination (default - 0). "
                      "Increment by limit value for next page."),
]
Limit = Annotated[
    Optional[str],
    Field(description="Number of results per page (default 20, maximum 500)."),
]


def _log_request(tool_name: str, **params) -> None:
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items() if v is not None)
    logger.info(f"{tool_name} called with: {param_str}")


def _text_result(payload: Any, structured: Optional[dict] = None) -> ToolResult:
    return ToolResult(content=json.dumps(payload), structured_content=structured)


def create_server(client: AppticsClient) -> FastMCP:
    """Build the MCP server with every Apptics tool bound to ``client``."""
    mcp = FastMCP(SERVER_NAME)

    async def call(tool_name: str, operation, *args) -> Any:
        try:
            return await operation(*args)
        except AppticsError as e:
            logger.error(f"{tool_name} failed: {e}")
            raise ToolError(str(e)) from e

    @mcp.tool()
    async def get_portals_and_projects_list() -> ToolResult:
        """List all portals and their projects.

        Each portal has a name and zsoid (use as portalId). Each project has a
        name and projectId. Use this to discover valid portalId/projectId
        before project-scoped queries.
        """
        _log_request("get_portals_and_projects_list")
        result = await call("get_portals_and_projects_list", client.get_portals_and_projects)
        return _text_result(result)

    @mcp.tool()
    async def get_crash_list(
        portalId: PortalId,
        projectId: ProjectId,
        startDate: StartDate = None,
        endDate: EndDate = None,
        appVersion: AppVersion = None,
        platform: Platform = None,
        mode: Annotated[
            Optional[str],
            Field(description="Environment filter. 0 for development, 1 for production. "
                              "Default - 1 (production)"),
        ] = None,
        offset: Offset = None,
        limit: Limit = None,
    ) -> ToolResult:
        """Retrieve crash analytics for an application with filtering and pagination.

        Query crash records across app versions, platforms and environments
        within a date range. Use it to analyze crash trends, identify frequent
        crash types, or segment issues by platform and version.

        The response includes crash identifiers, app version, OS, exception
        type, crash counts, affected users and devices, and a representative
        exception message.
        """
        _log_request("get_crash_list", portalId=portalId, projectId=projectId,
                     startDate=startDate, endDate=endDate, appVersion=appVersion,
                     platform=platform, mode=mode, offset=offset, limit=limit)
        result = await call(
            "get_crash_list", client.get_crash_list,
            projectId, portalId, startDate, endDate, appVersion, platform, mode, offset, limit,
        )
        crashes = CrashList.from_response(result)
        return _text_result(result, crashes.model_dump())

    @mcp.tool()
    async def get_active_devices(
        portalId: PortalId,
        projectId: ProjectId,
        group: Annotated[
            Optional[Literal["platform", "devicetype", "appversion"]],
            Field(description='Optional grouping criteria for active devices. Defaults to "platform"'),
        ] = None,
        startDate: StartDate = None,
        endDate: EndDate = None,
    ) -> ToolResult:
        """Fetch active devices for a project.

        Optionally group by "platform", "devicetype" or "appversion", and
        restrict to a date range. Defaults: group="platform"; date range is
        the last 7 days excluding today.
        """
        _log_request("get_active_devices", portalId=portalId, projectId=projectId,
                     group=group, startDate=startDate, endDate=endDate)
        result = await call(
            "get_active_devices", client.get_active_devices,
            projectId, portalId, startDate, endDate, group,
        )
        return _text_result(result)

    @mcp.tool()
    async def get_crash_count_summary(
        portalId: PortalId,
        projectId: ProjectId,
        startDate: StartDate = None,
        endDate: EndDate = None,
        appVersion: AppVersion = None,
        platform: Platform = None,
    ) -> ToolResult:
        """Fetch total crash counts for a project over a date range.

        Returns the aggregate crash, issue, device and user counts for the
        window, optionally narrowed to specific app versions or platforms.
        """
        _log_request("get_crash_count_summary", portalId=portalId, projectId=projectId,
                     startDate=startDate, endDate=endDate, appVersion=appVersion,
                     platform=platform)
        result = await call(
            "get_crash_count_summary", client.get_crash_count_summary,
            projectId, portalId, startDate, endDate, appVersion, platform,
        )
        return _text_result(result)

    @mcp.tool()
    async def get_crash_count_by_date(
        portalId: PortalId,
        projectId: ProjectId,
        startDate: StartDate = None,
        endDate: EndDate = None,
        appVersion: AppVersion = None,
        platform: Platform = None,
    ) -> ToolResult:
        """Fetch aggregated crash statistics over a date range.

        Returns time-series data keyed by date (epoch timestamp) per platform,
        or keyed by hour when start and end dates are the same day. Each point
        carries crashcount, issuecount (distinct crash signatures),
        devicecount and usercount.

        Supported platforms are iOS, Android, Windows, tvOS, watchOS, macOS
        (case sensitive).
        """
        _log_request("get_crash_count_by_date", portalId=portalId, projectId=projectId,
                     startDate=startDate, endDate=endDate, appVersion=appVersion,
                     platform=platform)
        result = await call(
            "get_crash_count_by_date", client.get_crash_count_by_date,
            projectId, portalId, startDate, endDate, appVersion, platform,
        )
        return _text_result(result)

    @mcp.tool()
    async def get_crash_detail(
        portalId: PortalId,
        projectId: ProjectId,
        uniqueId: UniqueId,
        startDate: StartDate = None,
        endDate: EndDate = None,
        appVersion: AppVersion = None,
    ) -> ToolResult:
        """Retrieve full details of one crash by its unique identifier.

        Includes exception type, message and stack trace, the affected screen,
        device and OS details, network status, session context, app version
        and custom properties. Searches all app versions unless appVersion is
        given.
        """
        _log_request("get_crash_detail", portalId=portalId, projectId=projectId,
                     uniqueId=uniqueId, startDate=startDate, endDate=endDate,
                     appVersion=appVersion)
        result = await call(
            "get_crash_detail", client.get_crash_detail,
            projectId, portalId, uniqueId, startDate, endDate, appVersion,
        )
        return _text_result(result)

    @mcp.tool()
    async def get_device_specific_crash_distribution(
        portalId: PortalId,
        projectId: ProjectId,
        uniqueId: UniqueId,
        startDate: StartDate = None,
        endDate: EndDate = None,
        appVersion: AppVersion = None,
        offset: Offset = None,
        limit: Limit = None,
    ) -> ToolResult:
        """Retrieve the crash distribution by device model for one crash.

        Shows which device models are most affected by the crash and their
        crash counts, to spot hardware compatibility or device-specific bugs.
        Supports pagination with limit and offset.
        """
        _log_request("get_device_specific_crash_distribution", portalId=portalId,
                     projectId=projectId, uniqueId=uniqueId, startDate=startDate,
                     endDate=endDate, appVersion=appVersion, offset=offset, limit=limit)
        result = await call(
            "get_device_specific_crash_distribution", client.get_device_crash_distribution,
            projectId, portalId, uniqueId, startDate, endDate, appVersion, limit, offset,
        )
        return _text_result(result)

    return mcp


def build_client(settings: Settings) -> AppticsClient:
    """Wire a token manager and client from settings."""
    token_manager = TokenManager(
        client_id=settings.apptics_client_id,
        client_secret=settings.apptics_client_secret,
        refresh_token=settings.apptics_refresh_token,
        accounts_uri=settings.apptics_accounts_uri,
        access_token=settings.apptics_access_token,
        timeout=settings.apptics_http_timeout,
    )
    return AppticsClient(
        token_manager=token_manager,
        apptics_uri=settings.apptics_server_uri,
        timeout=settings.apptics_http_timeout,
    )


def main():
    """Run the MCP server over stdio."""
    try:
        settings = load_settings()
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    # stdout carries the MCP protocol, so logs go to stderr
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    logger.info(f"Starting {SERVER_NAME} MCP server...")
    logger.info(f"Apptics URI: {settings.apptics_server_uri}")
    logger.info(f"Accounts URI: {settings.apptics_accounts_uri}")

    server = create_server(build_client(settings))
    server.run()


if __name__ == "__main__":
    main()

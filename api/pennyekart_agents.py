"""Pennyekart agents endpoint for Vercel - list, create, bulk create, update, delete."""

from http.server import BaseHTTPRequestHandler
from urllib.parse import parse_qs, urlparse
import asyncio
import json

from pydantic import ValidationError

from pennyekart.models.agent import AgentRole
from pennyekart.models.filters import AgentFilters
from pennyekart.services.admin_auth import authenticate_admin
from pennyekart.services.agent_export import export_agents_to_xlsx, export_filename
from pennyekart.services.agent_service import (
    bulk_create_agents,
    create_agent,
    delete_agent,
    get_hierarchy,
    list_agents,
    list_parent_candidates,
    update_agent,
)
from pennyekart.services.hierarchy import forest_to_dicts
from pennyekart.utils.errors import AdminAuthError, AgentValidationError, PennyekartError
from pennyekart.utils.logging import correlation_context, get_structured_logger, mask_sensitive_data
from pennyekart.utils.logging_config import LoggingConfig
from pennyekart.utils.settings import get_cors_allow_origin

logger = get_structured_logger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def cors_headers() -> dict:
    return {
        "Access-Control-Allow-Origin": get_cors_allow_origin(),
        "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type, x-admin-token",
        "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    }


def json_response(status: int, payload: dict) -> dict:
    return {
        "statusCode": status,
        "headers": {**cors_headers(), "Content-Type": "application/json"},
        "body": json.dumps(payload),
    }


def _normalize_headers(headers) -> dict:
    return {str(key).lower(): value for key, value in (headers or {}).items()}


def _normalize_query(query) -> dict:
    params = {}
    for key, value in (query or {}).items():
        if isinstance(value, list):
            value = value[0] if value else None
        params[key] = value
    return params


def _parse_body(request: dict) -> dict:
    body = request.get("body")
    if isinstance(body, dict):
        return body
    if isinstance(body, bytes):
        body = body.decode("utf-8")
    try:
        parsed = json.loads(body) if body else None
    except json.JSONDecodeError:
        raise AgentValidationError("Invalid JSON body")
    if not isinstance(parsed, dict):
        raise AgentValidationError("Invalid JSON body")
    return parsed


def _filters_from_query(query: dict) -> AgentFilters:
    try:
        return AgentFilters(
            panchayath_id=query.get("panchayath_id"),
            ward=query.get("ward"),
            role=query.get("role"),
            search=query.get("search"),
        )
    except ValidationError:
        raise AgentValidationError("Invalid role filter")


async def _handle_get(query: dict) -> dict:
    view = query.get("view")

    if view == "parents":
        try:
            role = AgentRole(query.get("role"))
        except ValueError:
            raise AgentValidationError("Invalid role")
        candidates = await list_parent_candidates(role, query.get("panchayath_id"))
        return json_response(200, {"data": [a.model_dump(mode="json") for a in candidates]})

    filters = _filters_from_query(query)

    if view == "tree":
        hierarchy = await get_hierarchy(filters)
        return json_response(200, {
            "data": [a.model_dump(mode="json") for a in hierarchy["agents"]],
            "tree": forest_to_dicts(hierarchy["tree"]),
            "stats": hierarchy["stats"],
        })

    agents = await list_agents(filters)

    if query.get("format") == "xlsx":
        return {
            "statusCode": 200,
            "headers": {
                **cors_headers(),
                "Content-Type": XLSX_CONTENT_TYPE,
                "Content-Disposition": f'attachment; filename="{export_filename()}"',
            },
            "body": export_agents_to_xlsx(agents),
        }

    return json_response(200, {"data": [a.model_dump(mode="json") for a in agents]})


async def _dispatch(method: str, headers: dict, request: dict) -> dict:
    token = headers.get("x-admin-token")
    if not token:
        raise AdminAuthError("Unauthorized - No admin token")
    session = await authenticate_admin(token)

    query = _normalize_query(request.get("query"))

    if method == "GET":
        return await _handle_get(query)

    if method == "DELETE" and query.get("id"):
        await delete_agent(session, query["id"])
        return json_response(200, {"success": True})

    if method in ("POST", "PUT"):
        body = _parse_body(request)

        if method == "POST" and body.get("action") == "create":
            data = await create_agent(session, body.get("agent"))
            return json_response(200, {"data": data})

        if method == "POST" and body.get("action") == "bulk_create":
            data, count = await bulk_create_agents(session, body.get("agents"))
            return json_response(200, {"data": data, "count": count})

        if method == "PUT":
            data = await update_agent(session, body.get("id"), body.get("agent"))
            return json_response(200, {"data": data})

    raise AgentValidationError("Invalid action")


def handle_request(request: dict) -> dict:
    """Handle a Vercel-style request dict and return a response dict."""
    LoggingConfig.setup_logging()

    method = (request.get("method") or "GET").upper()
    headers = _normalize_headers(request.get("headers"))
    correlation_header = LoggingConfig.LOG_CORRELATION_ID_HEADER.lower()

    with correlation_context(headers.get(correlation_header)):
        if method == "OPTIONS":
            return {"statusCode": 200, "headers": cors_headers(), "body": ""}

        try:
            response = asyncio.run(_dispatch(method, headers, request))
            logger.info("Agents request handled", method=method, status=response["statusCode"])
            return response
        except PennyekartError as e:
            logger.warning(
                "Agents request failed",
                method=method,
                status=e.status_code,
                error=e.message,
                error_type=type(e).__name__
            )
            return json_response(e.status_code, {"error": e.message})
        except Exception as e:
            logger.error(
                f"Error handling agents request: {mask_sensitive_data(str(e))}",
                exc_info=True,
                method=method
            )
            return json_response(500, {"error": "Internal server error"})


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for the agents endpoint."""

    def _handle(self):
        parsed = urlparse(self.path)
        content_length = int(self.headers.get('Content-Length', 0) or 0)
        raw_body = self.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""

        response = handle_request({
            "method": self.command,
            "path": parsed.path,
            "headers": dict(self.headers),
            "body": raw_body,
            "query": {key: values[0] for key, values in parse_qs(parsed.query).items()},
        })

        self.send_response(response["statusCode"])
        for key, value in response["headers"].items():
            self.send_header(key, value)
        self.end_headers()

        body = response["body"]
        if isinstance(body, str):
            body = body.encode('utf-8')
        if body:
            self.wfile.write(body)

    def do_OPTIONS(self):
        self._handle()

    def do_GET(self):
        self._handle()

    def do_POST(self):
        self._handle()

    def do_PUT(self):
        self._handle()

    def do_DELETE(self):
        self._handle()

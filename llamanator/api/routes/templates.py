"""
Template API routes
"""
import json

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError

from llamanator.core.auth import require_gateway_token
from llamanator.core.exceptions import InvalidRequest, TemplateNotFound
from llamanator.core.logging_config import LoggingConfig
from llamanator.models.template_query import TemplateQuery
from llamanator.services.gateway_service import TemplateGatewayService
from llamanator.services.response_projector import encode_response

router = APIRouter(tags=["templates"], dependencies=[Depends(require_gateway_token)])
logger = LoggingConfig.get_logger(__name__)


def get_gateway_service(request: Request) -> TemplateGatewayService:
    """Gateway service built at startup"""
    return request.app.state.gateway_service


async def parse_template_query(request: Request) -> TemplateQuery:
    """
    Read and validate the request body

    Raises:
        InvalidRequest: If the body is not JSON or lacks a string query
    """
    raw = await request.body()
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidRequest("Invalid request", metadata={"reason": str(e)}) from e
    if not isinstance(data, dict):
        raise InvalidRequest("Invalid request", metadata={"reason": "body is not a JSON object"})
    try:
        return TemplateQuery.model_validate(data)
    except ValidationError as e:
        raise InvalidRequest(
            "Query parameter missing or not a string",
            metadata={"errors": e.errors(include_url=False, include_input=False)}
        ) from e


@router.get("/templates")
async def list_templates(service: TemplateGatewayService = Depends(get_gateway_service)):
    """
    List registered templates and their routes

    Returns:
        dict: Template names and routes
    """
    names = service.registry.names()
    return {
        "templates": names,
        "routes": [f"/template/{name}" for name in names],
    }


@router.post("/template/{template_name}")
async def run_template(
    template_name: str,
    request: Request,
    service: TemplateGatewayService = Depends(get_gateway_service),
) -> Response:
    """
    Render a template with the query and return the filtered backend response

    Returns:
        JSON object: 'response' plus the configured response fields
    """
    if template_name not in service.registry:
        raise TemplateNotFound(f"Template '{template_name}' not found")

    query = await parse_template_query(request)
    filtered = await service.handle(template_name, query)
    return Response(content=encode_response(filtered), media_type="application/json")

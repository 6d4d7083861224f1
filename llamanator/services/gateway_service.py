"""
Template gateway pipeline: render, build, send, project
"""
from typing import Any, Dict

from llamanator.core.config import Settings
from llamanator.core.exceptions import GatewayError, RenderError
from llamanator.core.logging_config import LoggingConfig
from llamanator.core.metrics import (template_render_errors_total,
                                     template_requests_total)
from llamanator.core.prompt_renderer import render_prompt
from llamanator.core.templates import TemplateRegistry
from llamanator.models.template_query import TemplateQuery
from llamanator.services.ollama_client import OllamaClient
from llamanator.services.request_builder import (build_backend_payload,
                                                 encode_payload)
from llamanator.services.response_projector import project_response

logger = LoggingConfig.get_logger(__name__)


class TemplateGatewayService:
    """
    Runs one template request through the backend

    Settings, registry and client are built once at startup and shared by all
    requests; none of them is modified here.
    """

    def __init__(self, settings: Settings, registry: TemplateRegistry, client: OllamaClient):
        self.settings = settings
        self.registry = registry
        self.client = client

    def build_prompt(self, template_name: str, query: str) -> str:
        """Render the named template, or use the query as-is if there is none"""
        template = self.registry.lookup(template_name)
        if template is None:
            logger.debug(f"No template '{template_name}', using query as prompt")
            return query
        try:
            return render_prompt(template, query)
        except RenderError:
            template_render_errors_total.labels(template=template_name).inc()
            raise

    async def handle(self, template_name: str, request: TemplateQuery) -> Dict[str, Any]:
        """
        Process a template request

        Args:
            template_name: Name bound to the route
            request: Validated request body

        Returns:
            Filtered backend response

        Raises:
            RenderError, SerializationError, BackendUnavailable, BackendTimeout,
            BackendDecodeError: Request-scoped failures; nothing is retried
        """
        try:
            prompt = self.build_prompt(template_name, request.query)
            payload = build_backend_payload(self.settings, prompt, request.model)
            body = encode_payload(payload)

            logger.info(
                f"Forwarding template '{template_name}' to backend",
                extra={"template": template_name, "model": payload["model"]}
            )
            raw = await self.client.send(body, model=payload["model"])

            filtered = project_response(
                raw,
                self.settings.response_fields,
                strip_newlines=self.settings.strip_newline,
            )
        except GatewayError as e:
            template_requests_total.labels(template=template_name, status=type(e).__name__).inc()
            raise

        template_requests_total.labels(template=template_name, status="success").inc()
        return filtered

"""
HTTP handlers for recipe generation and the chef chat.

Both handlers forward a prompt to an OpenAI-compatible gateway: the recipe
handler reshapes the JSON reply into a ``Recipe``, the chat handler relays
the gateway's event stream to the caller unchanged.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ValidationError

from gastronomia.config import HANDLER_ROLES, Configuration
from gastronomia.llm.client import GatewayClient, build_timeout
from gastronomia.llm.exceptions import (
    CreditsExhaustedError,
    ProviderError,
    RateLimitError,
    UpstreamError,
)
from gastronomia.llm.models import ChatMessage
from gastronomia.logging_utils import ErrorHandler, log_operation
from gastronomia.recipes.extraction import extract_json_object
from gastronomia.recipes.models import DietaryFilters, Recipe, RecipeContext
from gastronomia.recipes.prompts import build_chef_system_prompt, build_recipe_prompt

logger = structlog.get_logger(__name__)

CHAT_PATH = "/functions/v1/chef-chat"
RECIPE_PATH = "/functions/v1/generate-recipe"

TOO_MANY_REQUESTS = "Too many requests. Try again in a few seconds."
INSUFFICIENT_CREDITS = "Insufficient credits."
GATEWAY_ERROR = "AI gateway error"
AI_API_ERROR = "AI API error"
INVALID_AI_RESPONSE = "Invalid AI response"
INTERNAL_ERROR = "Internal error"


class ChefChatRequest(BaseModel):
    messages: list[ChatMessage]
    recipe_context: RecipeContext | None = None


class GenerateRecipeRequest(BaseModel):
    ingredients: list[str] | None = None
    mode: str | None = None
    filters: DietaryFilters | None = None
    existing_recipe: str | None = None

    @property
    def is_transform(self) -> bool:
        return self.mode == "transform"


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def _relay(upstream: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for chunk in upstream.aiter_bytes():
            yield chunk
    finally:
        await upstream.aclose()


def _gateway(app: FastAPI, role: str) -> GatewayClient:
    config: Configuration = app.state.config
    return GatewayClient(
        config.get_provider_config(role),
        config.api_key_for(role),
        http_client=app.state.http_clients[role],
    )


def create_app(
    config: Configuration,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the application; ``transport`` replaces the network in tests."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.http_clients = {
            role: httpx.AsyncClient(
                timeout=build_timeout(config.get_http_client_config(role)),
                transport=transport,
            )
            for role in HANDLER_ROLES
        }
        try:
            yield
        finally:
            for client in app.state.http_clients.values():
                await client.aclose()

    app = FastAPI(title="Gastronom.IA", lifespan=lifespan)
    app.state.config = config

    server_config = config.get_config_dict().get("server", {})
    app.add_middleware(
        CORSMiddleware,
        allow_origins=server_config.get("cors_origins", ["*"]),
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning("Rejected request body", errors=exc.errors())
        return _error("Invalid request body", 400)

    @app.post(CHAT_PATH)
    @log_operation("chef_chat")
    async def chef_chat(body: ChefChatRequest, request: Request):
        try:
            gateway = _gateway(request.app, "chat")
            messages = [
                {
                    "role": "system",
                    "content": build_chef_system_prompt(body.recipe_context),
                },
                *(message.to_dict() for message in body.messages),
            ]

            try:
                upstream = await gateway.open_stream(messages)
            except RateLimitError:
                return _error(TOO_MANY_REQUESTS, 429)
            except CreditsExhaustedError:
                return _error(INSUFFICIENT_CREDITS, 402)
            except UpstreamError:
                return _error(GATEWAY_ERROR, 500)

            return StreamingResponse(_relay(upstream), media_type="text/event-stream")
        except Exception as e:
            _, payload = ErrorHandler.create_error_payload(e, "chef_chat")
            return JSONResponse(payload, status_code=500)

    @app.post(RECIPE_PATH)
    @log_operation("generate_recipe")
    async def generate_recipe(body: GenerateRecipeRequest, request: Request):
        if body.is_transform:
            if not body.existing_recipe:
                return _error("Send the recipe to transform", 400)
        elif not body.ingredients or len(body.ingredients) < 2:
            return _error("Send at least 2 ingredients", 400)

        try:
            gateway = _gateway(request.app, "recipe")
            prompt = build_recipe_prompt(
                ingredients=body.ingredients,
                filters=body.filters,
                existing_recipe=body.existing_recipe if body.is_transform else None,
            )

            try:
                content = await gateway.complete(
                    [{"role": "user", "content": prompt}],
                    temperature=gateway.config.get("temperature"),
                    max_tokens=gateway.config.get("max_tokens"),
                )
            except UpstreamError:
                return _error(AI_API_ERROR, 500)

            data = extract_json_object(content)
            if data is None:
                return _error(INVALID_AI_RESPONSE, 500)

            try:
                recipe = Recipe.model_validate(data)
            except ValidationError as e:
                logger.warning("Recipe reply failed validation", errors=e.errors())
                return _error(INVALID_AI_RESPONSE, 500)

            return recipe.model_dump()
        except ProviderError as e:
            _, payload = ErrorHandler.create_error_payload(e, "generate_recipe")
            return JSONResponse(payload, status_code=500)
        except Exception as e:
            _, payload = ErrorHandler.create_error_payload(
                e, "generate_recipe", custom_message=INTERNAL_ERROR
            )
            return JSONResponse(payload, status_code=500)

    return app

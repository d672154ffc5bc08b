"""
Entry points for the Gastronom.IA backend.

``gastronomia-server`` runs the HTTP handlers under uvicorn.
``gastronomia-server chat`` opens an interactive chef chat against a
running server, printing the reply as it streams.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import httpx
import structlog
import uvicorn

from gastronomia.chat_service import ChatSession
from gastronomia.config import Configuration
from gastronomia.llm.exceptions import LLMError
from gastronomia.logging_utils import setup_logging
from gastronomia.recipes.models import RecipeContext
from gastronomia.server import create_app

logger = structlog.get_logger(__name__)


def serve(config: Configuration) -> None:
    server_config = config.get_server_config()
    log_level = config.get_logging_config().get("level", "INFO")

    uvicorn.run(
        create_app(config),
        host=server_config["host"],
        port=server_config["port"],
        log_level=log_level.lower(),
    )


async def chat(config: Configuration, recipe_name: str) -> None:
    chat_config = config.get_chat_config()
    url = chat_config.get("endpoint_url")
    if not url:
        raise ValueError("chat.endpoint_url must be configured to use the chat")

    async with httpx.AsyncClient(timeout=httpx.Timeout(60.0, connect=10.0)) as client:
        session = ChatSession(
            client,
            url,
            RecipeContext(name=recipe_name),
            [],
            max_history_messages=chat_config["max_history_messages"],
        )

        while True:
            try:
                text = await asyncio.to_thread(input, "you> ")
            except EOFError:
                return
            if not text.strip():
                continue

            print("chef> ", end="", flush=True)
            try:
                await session.send(
                    text, on_delta=lambda part: print(part, end="", flush=True)
                )
            except LLMError as e:
                logger.error("Chat request failed", error_message=e.message)
            print()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="gastronomia-server")
    parser.add_argument("--config", help="Path to a config.yaml")
    subcommands = parser.add_subparsers(dest="command")
    subcommands.add_parser("serve", help="Run the HTTP handlers (default)")
    chat_parser = subcommands.add_parser("chat", help="Chat with the virtual chef")
    chat_parser.add_argument("--recipe", default="", help="Recipe name for context")
    args = parser.parse_args(argv)

    config = Configuration(args.config)
    setup_logging(config.get_logging_config().get("level", "INFO"))

    if args.command == "chat":
        try:
            asyncio.run(chat(config, args.recipe))
        except KeyboardInterrupt:
            sys.exit(0)
    else:
        serve(config)


if __name__ == "__main__":
    main()

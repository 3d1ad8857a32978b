#!/usr/bin/env python3
"""Recipe: Send one Messages API request and read the reply.

When you need to: Ask a single question with an optional system prompt and
get the complete answer back in one response.

Ingredients:
- Nothing for mock mode; `ANTHROPIC_API_KEY` for `--no-mock`

What you'll learn:
- Build a validated request with `MessagesRequestBuilder`
- Read text, stop reason and token usage from `MessagesResponse`
"""

from __future__ import annotations

import argparse
import asyncio

from claudius import Client, Config
from cookbook.utils.presentation import (
    print_excerpt,
    print_header,
    print_kv_rows,
    print_usage,
)
from cookbook.utils.runtime import add_runtime_args, build_config_or_exit


async def main_async(config: Config, prompt: str, system: str | None, max_tokens: int) -> None:
    async with Client(config) as client:
        builder = client.messages_builder().user(prompt).max_tokens(max_tokens)
        if system:
            builder.system(system)
        response = await client.messages(builder.build())

    print_excerpt("Reply", response.text)
    print_kv_rows(
        [
            ("id", response.id),
            ("model", response.model.value),
            ("stop reason", response.stop_reason.value if response.stop_reason else None),
        ]
    )
    print_usage(response.usage)


def main() -> None:
    parser = argparse.ArgumentParser(description="Send a single message")
    parser.add_argument("--prompt", default="Hello AI", help="User message")
    parser.add_argument("--system", default="Ask how the user is doing?")
    parser.add_argument("--max-tokens", type=int, default=256)
    add_runtime_args(parser)
    args = parser.parse_args()

    config = build_config_or_exit(args)
    print_header("Send a message", config=config)
    asyncio.run(main_async(config, args.prompt, args.system, args.max_tokens))


if __name__ == "__main__":
    main()

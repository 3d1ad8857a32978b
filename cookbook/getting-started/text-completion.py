#!/usr/bin/env python3
"""Recipe: Call the legacy Text Completions API, single and streamed.

When you need to: Keep a prompt-style integration working with the
`\\n\\nHuman: ... \\n\\nAssistant:` format.

Ingredients:
- Nothing for mock mode; `ANTHROPIC_API_KEY` for `--no-mock`

What you'll learn:
- Build a `CompletionRequest` with stop sequences
- Fold a completion stream into one response with `accumulate_completion`
"""

from __future__ import annotations

import argparse
import asyncio

from claudius import Client, Config, accumulate_completion
from cookbook.utils.presentation import print_excerpt, print_header, print_kv_rows
from cookbook.utils.runtime import add_runtime_args, build_config_or_exit


async def main_async(config: Config, question: str) -> None:
    async with Client(config) as client:
        request = (
            client.completion_builder()
            .prompt(f"\n\nHuman: {question}\n\nAssistant:")
            .max_tokens_to_sample(256)
            .stop_sequences(["\n\nHuman:"])
            .build()
        )
        single = await client.complete(request)
        streamed = await accumulate_completion(client.stream_complete(request))

    print_excerpt("Single call", single.completion)
    print_excerpt("Streamed", streamed.completion)
    print_kv_rows([("stop reason", streamed.stop_reason.value if streamed.stop_reason else None)])


def main() -> None:
    parser = argparse.ArgumentParser(description="Text completion demo")
    parser.add_argument("--question", default="Why is the sky blue?")
    add_runtime_args(parser)
    args = parser.parse_args()

    config = build_config_or_exit(args)
    print_header("Text completion", config=config)
    asyncio.run(main_async(config, args.question))


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""Recipe: Retry transient failures using the error's retry metadata.

When you need to: Decide in your own code whether and when to resend a
request, since the client never retries on its own.

Ingredients:
- Nothing for mock mode; `ANTHROPIC_API_KEY` for `--no-mock`

What you'll learn:
- Tell retryable from permanent failures with `TransportError.retryable`
- Honor `retry_after_s` on rate limits, falling back to exponential backoff
"""

from __future__ import annotations

import argparse
import asyncio

from claudius import Client, Config, MessagesResponse, TransportError
from cookbook.utils.presentation import print_excerpt, print_header, print_kv_rows
from cookbook.utils.runtime import add_runtime_args, build_config_or_exit


async def send_with_retries(
    client: Client, prompt: str, *, attempts: int, base_delay_s: float
) -> MessagesResponse:
    request = client.messages_builder().user(prompt).max_tokens(256).build()
    for attempt in range(1, attempts + 1):
        try:
            return await client.messages(request)
        except TransportError as exc:
            if not exc.retryable or attempt == attempts:
                raise
            delay = exc.retry_after_s if exc.retry_after_s is not None else base_delay_s * 2 ** (attempt - 1)
            print(f"attempt {attempt} failed ({exc}); retrying in {delay:.1f}s")
            await asyncio.sleep(delay)
    raise AssertionError("unreachable")


async def main_async(config: Config, prompt: str, attempts: int) -> None:
    async with Client(config) as client:
        try:
            response = await send_with_retries(client, prompt, attempts=attempts, base_delay_s=0.5)
        except TransportError as exc:
            print_kv_rows(
                [
                    ("failed", str(exc)),
                    ("status", exc.status_code),
                    ("retryable", exc.retryable),
                    ("hint", exc.hint),
                ]
            )
            raise SystemExit(1) from exc
    print_excerpt("Reply", response.text)


def main() -> None:
    parser = argparse.ArgumentParser(description="Retry on transient transport errors")
    parser.add_argument("--prompt", default="Hello AI")
    parser.add_argument("--attempts", type=int, default=3)
    add_runtime_args(parser)
    args = parser.parse_args()

    config = build_config_or_exit(args)
    print_header("Handle transport errors", config=config)
    asyncio.run(main_async(config, args.prompt, args.attempts))


if __name__ == "__main__":
    main()

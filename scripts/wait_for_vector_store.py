#!/usr/bin/env python3
"""
Wait for a vector store, a file inside it, or a file batch to finish indexing.

Polls the provider with the same backoff the API uses and prints the final
resource as JSON. Exits non-zero on timeout or provider error.

Usage:
    python scripts/wait_for_vector_store.py vs_abc123
    python scripts/wait_for_vector_store.py vs_abc123 --file file-xyz789
    python scripts/wait_for_vector_store.py vs_abc123 --batch vsfb_123 --max-wait-ms 120000
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import orjson

from relay.config import get_settings
from relay.core.exceptions import AppException
from relay.gateway.client import ProviderGateway
from relay.services.polling import DEFAULT_MAX_WAIT_MS
from relay.services.vector_stores import VectorStoreService
from relay.validators.limits import VECTOR_STORE_ID_PREFIX
from relay.validators.shared import validate_id_format

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger("wait_for_vector_store")


async def wait(
    vector_store_id: str,
    file_id: str | None,
    batch_id: str | None,
    max_wait_ms: int,
) -> int:
    """Poll the requested resource and print it.

    Returns:
        Process exit code: 0 on a terminal snapshot, 1 otherwise.
    """
    settings = get_settings()
    gateway = ProviderGateway(
        settings.OPENAI_API_BASE_URL,
        settings.OPENAI_API_KEY,
        timeout=settings.openai_timeout_seconds,
    )
    service = VectorStoreService(gateway)

    try:
        if file_id:
            resource = await service.poll_file(vector_store_id, file_id, max_wait_ms)
        elif batch_id:
            resource = await service.poll_batch(vector_store_id, batch_id, max_wait_ms)
        else:
            resource = await service.poll_vector_store(vector_store_id, max_wait_ms)
    except AppException as exc:
        logger.error("%s (%s)", exc.message, exc.error_code)
        return 1
    finally:
        await gateway.close()

    sys.stdout.write(orjson.dumps(resource.model_dump(mode="json"), option=orjson.OPT_INDENT_2).decode())
    sys.stdout.write("\n")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Wait for a vector store resource to reach a terminal status."
    )
    parser.add_argument("vector_store_id", help="Vector store ID (vs_...).")
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--file", dest="file_id", help="Wait for this file instead of the store.")
    target.add_argument("--batch", dest="batch_id", help="Wait for this file batch instead of the store.")
    parser.add_argument(
        "--max-wait-ms",
        type=int,
        default=DEFAULT_MAX_WAIT_MS,
        help=f"Wait budget in milliseconds (default: {DEFAULT_MAX_WAIT_MS})",
    )
    args = parser.parse_args()
    if not validate_id_format(args.vector_store_id, VECTOR_STORE_ID_PREFIX):
        parser.error(f"vector_store_id must start with \"{VECTOR_STORE_ID_PREFIX}\"")

    sys.exit(asyncio.run(wait(args.vector_store_id, args.file_id, args.batch_id, args.max_wait_ms)))


if __name__ == "__main__":
    main()

import os
import sys
import asyncio
import logging

from mcp.server.stdio import stdio_server

from .config import load_settings
from .gateway import create_server


logger = logging.getLogger("medscribe")


async def serve(server, gateway):
    async with stdio_server() as (read_stream, write_stream):
        logger.info("Disease Description MCP server running on stdio")
        logger.info(f"Catalog: {gateway.get_stats()}")
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options()
        )


def main() -> int:
    gateway = None
    try:
        settings = load_settings(os.getenv("MEDSCRIBE_CONFIG"))
        server, gateway = create_server(settings)
        asyncio.run(serve(server, gateway))
    except KeyboardInterrupt:
        return 0
    except Exception:
        if not logging.getLogger().handlers:
            logging.basicConfig(level=logging.INFO, stream=sys.stderr)
        logger.exception("Fatal error in main()")
        return 1
    finally:
        if gateway is not None:
            gateway.close()

    return 0

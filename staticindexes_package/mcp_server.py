#!/usr/bin/env python3
"""
MCP Server for static-indexes - writes index.html listings into directories on request
"""

import asyncio
import logging
import pathlib
from typing import Any, Dict, List

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .staticindexes import (
    Assets,
    IndexOptions,
    RunReport,
    process_all,
)

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize the MCP server
server = Server("static-indexes-mcp")


def format_report(root: pathlib.Path, report: RunReport) -> str:
    lines = [f"Indexed {root}: {len(report.written)} written, {len(report.skipped)} skipped"]
    lines += [f"written: {p}" for p in report.written]
    lines += [f"skipped (hand-written index.html): {p}" for p in report.skipped]
    return "\n".join(lines)


@server.list_tools()
async def list_tools() -> List[Tool]:
    """List available tools."""
    return [
        Tool(
            name="generate_indexes",
            description="Write a static index.html file listing into a directory (and optionally its subdirectories)",
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {
                        "type": "string",
                        "description": "Directory to index"
                    },
                    "recursive": {
                        "type": "boolean",
                        "description": "Descend into subdirectories",
                        "default": False
                    },
                    "include_hidden": {
                        "type": "boolean",
                        "description": "List dot-prefixed entries",
                        "default": False
                    }
                },
                "required": ["path"]
            }
        )
    ]


@server.call_tool()
async def call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
    """Call a specific tool by name."""
    if name != "generate_indexes":
        raise ValueError(f"Unknown tool: {name}")
    if "path" not in arguments:
        raise ValueError("Missing required argument: path")

    root = pathlib.Path(arguments["path"])
    options = IndexOptions(
        recursive=bool(arguments.get("recursive", False)),
        include_hidden=bool(arguments.get("include_hidden", False)),
    )
    logger.info(f"Indexing {root} (recursive={options.recursive}, hidden={options.include_hidden})")

    try:
        report = process_all([root], options, Assets.load())
    except Exception as e:
        logger.error(f"Error indexing {root}: {e}")
        raise

    logger.info(f"Wrote {len(report.written)} index pages ({len(report.skipped)} skipped)")
    return [TextContent(type="text", text=format_report(root, report))]


async def serve() -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    """Main entry point for the MCP server."""
    asyncio.run(serve())


if __name__ == "__main__":
    main()

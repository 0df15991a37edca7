import json
import logging
import sys
from pathlib import Path
from typing import Annotated

from fastmcp import FastMCP
from pydantic import Field

from .constants import DEFAULT_REQUIRE_PREFIX, LOG_FILE, MCP_PORT
from .exceptions import CjsConvError
from .exports import ExportAnalyzer
from .js.ast_engine import ASTEngine
from .logging_config import configure_logging
from .requires import RequireRewriter

# Configure logging to stderr to avoid interfering with JSON-RPC on stdout
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(name)s %(levelname)s: %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)
logger = logging.getLogger("cjsconv")

# Initialize FastMCP server
mcp: FastMCP = FastMCP("cjsconv-mcp")


def _load_source(file_path: str | None, source: str | None) -> tuple[str, str]:
    """Resolve the (path, text) pair a tool was asked to analyze."""
    if source is not None:
        return file_path or "<input>", source
    if not file_path:
        raise ValueError("Either file_path or source is required")
    return file_path, Path(file_path).read_text(encoding="utf-8")


def exports_report(file_path: str | None = None, source: str | None = None) -> str:
    """Run export analysis and render the result as JSON text."""
    path, text = _load_source(file_path, source)
    # A fresh engine per request keeps concurrent calls independent
    names = ExportAnalyzer(ASTEngine()).analyze(path, text)
    return json.dumps(names, indent=2, ensure_ascii=False)


def rewrite_report(
    file_path: str | None = None,
    source: str | None = None,
    prefix: str = DEFAULT_REQUIRE_PREFIX,
) -> str:
    """Run the require rewriter and return the rewritten module text."""
    path, text = _load_source(file_path, source)
    return RequireRewriter(ASTEngine()).rewrite(path, prefix, text)


@mcp.tool
async def analyze_commonjs_exports(
    file_path: Annotated[
        str | None,
        Field(description="Path to a CommonJS file to analyze", default=None),
    ] = None,
    source: Annotated[
        str | None,
        Field(description="Module source text, used instead of reading file_path", default=None),
    ] = None,
) -> str:
    """List the names a CommonJS module exports, without running it.

    USE THIS TOOL WHEN:
    - You need the named exports of a CommonJS package to generate an ESM wrapper
    - You want to know whether `module.exports` is assigned (reported as "default")

    Returns a JSON array of export names, sorted alphabetically.
    """
    try:
        return exports_report(file_path, source)
    except (CjsConvError, OSError, ValueError) as e:
        logger.error(f"Error analyzing exports: {e}")
        return f"❌ Error analyzing exports: {str(e)}"


@mcp.tool
async def hoist_external_requires(
    file_path: Annotated[
        str | None,
        Field(description="Path to a bundled CommonJS file", default=None),
    ] = None,
    source: Annotated[
        str | None,
        Field(description="Module source text, used instead of reading file_path", default=None),
    ] = None,
    prefix: Annotated[
        str,
        Field(description="Only require paths starting with this prefix are hoisted"),
    ] = DEFAULT_REQUIRE_PREFIX,
) -> str:
    """Turn external require calls into static ES module imports.

    USE THIS TOOL WHEN:
    - A bundle still calls `__require("/node_modules/...")` and must run in a browser
    - You need import statements generated for a module's external dependencies

    Returns the rewritten module source.
    """
    try:
        return rewrite_report(file_path, source, prefix)
    except (CjsConvError, OSError, ValueError) as e:
        logger.error(f"Error rewriting requires: {e}")
        return f"❌ Error rewriting requires: {str(e)}"


def main() -> None:
    """Run the MCP server with HTTP streaming transport."""
    configure_logging(log_file=LOG_FILE)

    print("cjsconv MCP Server (HTTP Streaming)", file=sys.stderr)
    print("=" * 50, file=sys.stderr)
    print(f"Default require prefix: {DEFAULT_REQUIRE_PREFIX}", file=sys.stderr)
    print(f"Starting HTTP streaming server on port {MCP_PORT}...", file=sys.stderr)
    print(f"HTTP endpoint will be available at: http://localhost:{MCP_PORT}/mcp", file=sys.stderr)

    try:
        import asyncio
        asyncio.run(mcp.run_http_async(transport="streamable-http", host="0.0.0.0", port=MCP_PORT))
    except KeyboardInterrupt:
        print("\nShutting down...", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    main()

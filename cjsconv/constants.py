"""Constants and configuration values for cjsconv.

Environment variables override the defaults where noted, so the pipeline
driving the conversion can be tuned without code changes.
"""

import os

# =============================================================================
# Require Hoisting
# =============================================================================

# Only require-like calls whose path starts with this prefix are hoisted
DEFAULT_REQUIRE_PREFIX = os.environ.get("CJSCONV_REQUIRE_PREFIX", "/node_modules/")

# Names of the generated scaffolding
REQUIRE_FUNCTION_NAME = "__cjs_require__"
IMPORT_TABLE_NAME = "__cjs_imports__"
IMPORT_BINDING_PREFIX = "__cjs_import_"
IMPORT_BINDING_SUFFIX = "__"

# Used when a path has no non-empty segment (e.g. "/")
FALLBACK_SEGMENT_NAME = "module"

# Hex digits of sha1(path) appended to a colliding binding name
COLLISION_HASH_LENGTH = 8


# =============================================================================
# Export Analysis
# =============================================================================

# The synthetic name reported for a `module.exports = ...` assignment
DEFAULT_EXPORT_NAME = "default"


# =============================================================================
# Logging / Server
# =============================================================================

LOG_LEVEL = os.environ.get("CJSCONV_LOG_LEVEL", "INFO")

MCP_PORT = int(os.environ.get("CJSCONV_MCP_PORT", "3000"))

# Optional JSON log file for the server (rotated hourly)
LOG_FILE = os.environ.get("CJSCONV_LOG_FILE")

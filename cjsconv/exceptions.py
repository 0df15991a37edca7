"""Exception hierarchy for cjsconv.

Every error raised by the package derives from ``CjsConvError`` so callers
can catch all of them with a single except clause when appropriate.
"""


class CjsConvError(Exception):
    """Base exception for all cjsconv errors."""
    pass


# =============================================================================
# Analysis Errors
# =============================================================================

class ParseError(CjsConvError):
    """Source text could not be parsed as JavaScript.

    Parsing is deterministic, so this is never retried; it is always
    propagated to whoever asked for the analysis.
    """

    def __init__(
        self,
        path: str,
        diagnostic: str,
        line: int | None = None,
        column: int | None = None,
    ):
        super().__init__(f"cjs: failed to parse {path}: {diagnostic}")
        self.path = path
        self.diagnostic = diagnostic
        self.line = line
        self.column = column


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(CjsConvError):
    """Invalid settings were passed to an analysis."""
    pass

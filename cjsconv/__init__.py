"""cjsconv - static CommonJS analysis for ESM conversion.

Two passes over a parsed module, neither of which executes it:

- ``analyze_exports`` infers the names a CommonJS module exports.
- ``rewrite_requires`` hoists external ``require``-like calls into static
  ``import`` statements backed by a generated lookup function.
"""

from .exceptions import CjsConvError, ConfigurationError, ParseError
from .exports import ExportAnalyzer, analyze_exports, analyze_surface
from .models import ExportSurface, HoistedImport, RequireCallSite, RewritePlan
from .requires import RequireRewriter, rewrite_requires

__version__ = "0.1.0"

__all__ = [
    "CjsConvError",
    "ConfigurationError",
    "ExportAnalyzer",
    "ExportSurface",
    "HoistedImport",
    "ParseError",
    "RequireCallSite",
    "RequireRewriter",
    "RewritePlan",
    "analyze_exports",
    "analyze_surface",
    "rewrite_requires",
]

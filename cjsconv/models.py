"""Pydantic models for CommonJS analysis results.

``ExportSurface`` is the working set built during one export walk;
``RewritePlan`` and its parts describe what the require rewriter found
before any text is produced.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .constants import DEFAULT_EXPORT_NAME


class ExportSurface(BaseModel):
    """Export names inferred for one CommonJS module.

    Attributes:
        names: Named exports seen so far.
        has_default: ``True`` once ``module.exports`` was assigned.
        unsafe: Names whose getter re-export could not be trusted. A name
            in this set never appears in the final list, no matter where
            else it is exported.
    """

    names: set[str] = Field(default_factory=set)
    has_default: bool = False
    unsafe: set[str] = Field(default_factory=set)

    def add(self, name: str) -> None:
        if name:
            self.names.add(name)

    def mark_unsafe(self, name: str) -> None:
        self.unsafe.add(name)
        self.names.discard(name)

    def sorted_names(self) -> list[str]:
        """Finalise the surface into a sorted list of export names."""
        exports = self.names - self.unsafe
        if self.has_default:
            exports = exports | {DEFAULT_EXPORT_NAME}
        return sorted(exports)


class RequireCallSite(BaseModel):
    """A call with a single in-scope string argument.

    Attributes:
        callee: Identifier being called, or ``None`` when the callee is a
            member expression or anything else that can't be rewritten.
        path: Decoded string argument.
        literal: Raw argument text as written, quotes included.
        line: 1-based line of the call.
        column: 0-based column of the call.
    """

    callee: str | None = None
    path: str
    literal: str = ""
    line: int = 0
    column: int = 0


class HoistedImport(BaseModel):
    """One generated ``import <binding> from "<path>"``."""

    path: str
    binding: str


class RewritePlan(BaseModel):
    """Everything the rewriter discovered in one document.

    Attributes:
        prefix: Path prefix the calls were filtered by.
        imports: Hoisted imports in order of first appearance.
        call_sites: Every qualifying call, in walk order.
    """

    prefix: str
    imports: list[HoistedImport] = Field(default_factory=list)
    call_sites: list[RequireCallSite] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.imports

    @property
    def callee_names(self) -> list[str]:
        """Distinct rewritable callee names, first-seen order."""
        seen: dict[str, None] = {}
        for site in self.call_sites:
            if site.callee is not None:
                seen.setdefault(site.callee, None)
        return list(seen)

    @property
    def substitutions(self) -> list[tuple[str, str]]:
        """Distinct ``(callee, literal)`` pairs to rewrite in the text."""
        seen: dict[tuple[str, str], None] = {}
        for site in self.call_sites:
            if site.callee is not None:
                seen.setdefault((site.callee, site.literal), None)
        return list(seen)

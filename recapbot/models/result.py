"""
Result returned by the aggregation entry points instead of raising.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .summary import Summary
from ..exceptions import RecapBotError


@dataclass
class GenerationResult:
    """Outcome of one generate call.

    `sub_summaries` lists every summary posted on the way to the requested
    one, in posting order. They remain valid in the thread even when the call
    as a whole failed.
    """
    ok: bool
    summary: Optional[Summary] = None
    error: Optional[RecapBotError] = None
    sub_summaries: List[Summary] = field(default_factory=list)

    @classmethod
    def success(cls, summary: Summary,
                sub_summaries: Optional[List[Summary]] = None) -> "GenerationResult":
        return cls(ok=True, summary=summary, sub_summaries=list(sub_summaries or []))

    @classmethod
    def failure(cls, error: RecapBotError,
                sub_summaries: Optional[List[Summary]] = None) -> "GenerationResult":
        return cls(ok=False, error=error, sub_summaries=list(sub_summaries or []))

    @property
    def message(self) -> str:
        if self.ok and self.summary is not None:
            return f"{self.summary.kind.label} summary posted ({self.summary.period.render()})"
        if self.error is not None:
            return self.error.get_user_response()
        return "No result"

    def unwrap(self) -> Summary:
        """Return the summary or raise the stored error."""
        if not self.ok or self.summary is None:
            raise self.error or RecapBotError("Result has no summary")
        return self.summary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "summary": self.summary.to_dict() if self.summary else None,
            "error": self.error.to_dict() if self.error else None,
            "sub_summaries": [s.to_dict() for s in self.sub_summaries],
        }

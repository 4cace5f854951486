"""Generic log pattern matching framework (reusable across diagnostic processors)."""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Tuple


class _MissingAsUnknown(dict):
    def __missing__(self, key: str) -> str:
        return "unknown"


@dataclass
class LogPattern:
    """Represents a known crash cause that can be matched against log content.

    This is the foundation for deterministic pattern-based diagnostics.
    Processors use this to turn raw log text into user-facing findings.
    """

    pattern_id: str
    """Unique identifier for this pattern (e.g., 'out_of_memory')"""

    title: str
    """Human-readable title for the failure mode"""

    patterns: List[str]
    """List of regex patterns; any match means the failure mode is present"""

    message_template: str
    """Markdown message emitted on match (supports {field} interpolation from context_extractors)"""

    context_extractors: Dict[str, str] = field(default_factory=dict)
    r"""Dict of {field_name: regex_pattern} to extract context from logs

    Example:
        {"mod": r"Mixin apply for mod (\S+) failed"}

    The regex should have one capture group that extracts the field value.
    Fields that do not match render as `unknown`.
    """

    is_problem: bool = True
    """Whether a match marks the log as having problems"""

    def matches(self, log_text: str) -> bool:
        """Check if any pattern matches the log text (case-insensitive, multiline)."""
        return any(re.search(p, log_text, re.IGNORECASE | re.MULTILINE) for p in self.patterns)

    def extract_context(self, log_text: str) -> Dict[str, str]:
        """Extract context fields (mod ids, class versions, etc.) from logs.

        Returns:
            Dict with extracted field values (e.g., {"mod": "sodium", "config": "sodium.mixins.json"})
        """
        context = {}
        for field_name, pattern in self.context_extractors.items():
            match = re.search(pattern, log_text, re.IGNORECASE | re.MULTILINE)
            if match and match.group(1):
                context[field_name] = match.group(1).strip()
        return context

    def render(self, context: Dict[str, str]) -> str:
        return self.message_template.format_map(_MissingAsUnknown(context))


class LogPatternMatcher:
    """Matches log content against a library of known patterns.

    Usage:
        matcher = LogPatternMatcher(ALL_PATTERNS)

        for pattern, context in matcher.find_matches(log.content):
            log.add_message(pattern.render(context))
    """

    def __init__(self, patterns: List[LogPattern]):
        """Initialize matcher with a list of patterns to check."""
        self.patterns = patterns

    def find_matches(self, log_text: str) -> List[Tuple[LogPattern, Dict[str, str]]]:
        """Match log text against all patterns, in library order.

        Returns:
            List of (pattern, context) tuples for all matching patterns

        Example:
            [
                (OUT_OF_MEMORY, {"kind": "Java heap space"}),
                (MIXIN_APPLY_FAILURE, {"mod": "sodium"})
            ]
        """
        if not log_text:
            return []

        matches = []
        for pattern in self.patterns:
            if pattern.matches(log_text):
                context = pattern.extract_context(log_text)
                matches.append((pattern, context))

        return matches

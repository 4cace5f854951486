"""Extensible pattern library for known crash causes.

This module aggregates all pattern sets into a single list that the
`known_patterns` processor runs, in order.

Adding new pattern sets:
1. Create a new file (e.g., shader_patterns.py)
2. Define patterns using LogPattern
3. Export as a list (e.g., SHADER_PATTERNS)
4. Import and add to ALL_PATTERNS below
"""

from cozylogs.diagnostics.patterns.crash_patterns import CRASH_PATTERNS
from cozylogs.diagnostics.patterns.server_patterns import SERVER_PATTERNS

ALL_PATTERNS = [
    *CRASH_PATTERNS,
    *SERVER_PATTERNS,
]

"""Dedicated-server patterns (part of extensible pattern library)."""

from cozylogs.diagnostics.log_pattern_matcher import LogPattern

PORT_BIND_FAILURE = LogPattern(
    pattern_id="port_bind_failure",
    title="Server port already in use",
    patterns=[
        r"FAILED TO BIND TO PORT",
        r"java\.net\.BindException: Address already in use",
    ],
    message_template=(
        "**The server could not bind its port**\n"
        "Another process (often a second copy of the server) is already using it."
    ),
)

WATCHDOG_TICK_TIMEOUT = LogPattern(
    pattern_id="watchdog_tick_timeout",
    title="Server watchdog stopped the server",
    patterns=[
        r"A single server tick took [\d.]+ seconds",
        r"The server has stopped responding!",
    ],
    message_template=(
        "**The server stopped responding** (a tick took `{seconds}` seconds)\n"
        "Look at the thread dump below the watchdog message for the plugin or mod that was running."
    ),
    context_extractors={
        "seconds": r"A single server tick took ([\d.]+) seconds",
    },
)

SERVER_PATTERNS = [
    PORT_BIND_FAILURE,
    WATCHDOG_TICK_TIMEOUT,
]

from prometheus_client import Counter, Histogram

deepgram_api_calls_total = Counter(
    "deepgram_api_calls_total",
    "Total Deepgram API calls",
    ["endpoint", "status"],
)

tool_calls_total = Counter(
    "deepgram_tool_calls_total",
    "Total MCP tool invocations",
    ["tool", "status"],
)

tool_duration_seconds = Histogram(
    "deepgram_tool_duration_seconds",
    "Histogram of MCP tool duration (seconds)",
    ["tool"],
)

"""MCP server for asynchronous Deepgram transcription jobs."""

__version__ = "1.0.0"

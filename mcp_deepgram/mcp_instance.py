from fastmcp import FastMCP

mcp = FastMCP("Deepgram Async Transcription")

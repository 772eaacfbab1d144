from dotenv import load_dotenv

load_dotenv()

from prometheus_client import start_http_server

from mcp_deepgram.config import get_settings
from mcp_deepgram.mcp_instance import mcp
from mcp_deepgram import tools  # noqa: F401  registers the tools


def main() -> None:
    settings = get_settings()
    if settings.metrics_port:
        start_http_server(settings.metrics_port)

    if settings.mcp_transport == "stdio":
        mcp.run(transport="stdio")
        return

    mcp.run(
        transport=settings.mcp_transport,
        host="0.0.0.0",
        port=settings.port,
        stateless_http=True
    )


if __name__ == "__main__":
    main()

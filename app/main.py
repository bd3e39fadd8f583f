from dotenv import load_dotenv

load_dotenv()

import uvicorn  # noqa: E402

from infrastructure.services import get_settings  # noqa: E402
from server import server  # noqa: E402

server_app = server.handler


if __name__ == "__main__":
    server_settings = get_settings().server
    uvicorn.run(
        "main:server_app",
        host=server_settings.SERVER_HOST,
        port=server_settings.SERVER_PORT,
    )

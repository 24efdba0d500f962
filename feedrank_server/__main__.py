"""Run the API with uvicorn: python -m feedrank_server"""

import uvicorn

from .config import get_config


def main():
    config = get_config()
    uvicorn.run("feedrank_server.app:app", host=config.host, port=config.port)


if __name__ == "__main__":
    main()

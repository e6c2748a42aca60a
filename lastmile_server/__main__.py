import uvicorn

from lastmile_server.config import settings


if __name__ == "__main__":
    uvicorn.run(
        "lastmile_server.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )

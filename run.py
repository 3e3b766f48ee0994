import os

from crosscheck.logger import get_logger

logger = get_logger()


def main() -> None:
    host = os.getenv("CROSSCHECK_HOST", "127.0.0.1")
    port = int(os.getenv("CROSSCHECK_PORT", "8000"))
    display_url = f"http://localhost:{port}"

    logger.info(
        "Starting Code Crosscheck API on {display_url} (binding to {host}:{port})",
        display_url=display_url,
        host=host,
        port=port,
    )

    import uvicorn

    uvicorn.run(
        app="crosscheck.main:app",
        host=host,
        port=port,
        workers=1,
        log_level="info",
    )


if __name__ == "__main__":
    main()

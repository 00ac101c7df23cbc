import uvicorn

from admin_console.settings.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("admin_console:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()

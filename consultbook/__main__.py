import uvicorn

from consultbook.settings import settings


def main() -> None:
    uvicorn.run(
        "consultbook.app:app",
        host=settings.host,
        port=settings.port,
        root_path=settings.root_path,
        reload=settings.reload,
    )


if __name__ == "__main__":
    main()

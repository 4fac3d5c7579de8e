import uvicorn

from taskboard.core.config import settings


def main() -> None:
    uvicorn.run("taskboard.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()

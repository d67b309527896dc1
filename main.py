# main.py

from uvicorn import run

from app.configs import settings


def main() -> None:
    run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=not settings.is_production,
        loop="uvloop",
        http="httptools",
    )


if __name__ == "__main__":
    main()

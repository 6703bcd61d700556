import os

import uvicorn


def main() -> None:
    env = os.getenv("APP_ENV", "development").lower()
    uvicorn.run(
        "app.factory:create_app",
        factory=True,
        host=os.getenv("APP_HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
        log_level=os.getenv("APP_LOG_LEVEL", "info").lower(),
        proxy_headers=env == "production",
        reload=env != "production",
    )


if __name__ == "__main__":
    main()

import os

import uvicorn

from core_config.constants import HEALTH_PORT


def main() -> None:
    uvicorn.run(
        "navigator.app:app",
        host=os.getenv("NAVIGATOR_HOST", "0.0.0.0"),
        port=HEALTH_PORT,
        log_level=os.getenv("SERVICE_LOG_LEVEL", "info").lower(),
        access_log=False,
    )


if __name__ == "__main__":
    main()

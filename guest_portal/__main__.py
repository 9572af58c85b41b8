"""Run the guest portal API with uvicorn."""

import argparse

import uvicorn

from guest_portal.config import get_settings


def main() -> None:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="RADIUS guest Wi-Fi provisioning API")
    parser.add_argument("--host", default=settings.host, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.port, help="Bind port")
    args = parser.parse_args()

    uvicorn.run(
        "guest_portal.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    main()

"""Process entry point: ``python -m agency_api``."""

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "agency_api.main:create_app",
        factory=True,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )


if __name__ == "__main__":
    main()

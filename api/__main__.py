import os

import uvicorn


def main() -> None:
    """Run the web server (login at http://localhost:8080/login)."""
    uvicorn.run(
        "api.main:app",
        host=os.getenv("MOODPLAYLIST_HOST", "127.0.0.1"),
        port=int(os.getenv("MOODPLAYLIST_PORT", "8080")),
        reload=bool(os.getenv("MOODPLAYLIST_RELOAD")),
    )


if __name__ == "__main__":
    main()

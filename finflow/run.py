"""
Run the API server.
Usage: python -m finflow.run   (or the `finflow` console script)
"""
import uvicorn


def main() -> None:
    uvicorn.run(
        "finflow.api.main:app",
        host="0.0.0.0",
        port=8000,
    )


if __name__ == "__main__":
    main()

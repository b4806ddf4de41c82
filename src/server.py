"""HTTP server runner for ShopCheckout.

Usage:
    python src/server.py                     # 0.0.0.0:8000
    python src/server.py --port 9000 --reload
"""

import argparse

import uvicorn


def main():
    parser = argparse.ArgumentParser(description="ShopCheckout API server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    parser.add_argument("--workers", type=int, default=1)
    args = parser.parse_args()

    uvicorn.run(
        "app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=None if args.reload else args.workers,
        log_config=None,
    )


if __name__ == "__main__":
    main()

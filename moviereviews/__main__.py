"""
Command line entry point.

Usage:
    python -m moviereviews serve               # Run the API on $PORT
    python -m moviereviews seed movies.json    # Load movies into MongoDB
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List

import uvicorn
from pydantic import TypeAdapter, ValidationError

from .config import get_settings
from .database import Database
from .logging_config import setup_api_logger
from .schemas import MovieSeed

logger = logging.getLogger("moviereviews.cli")


def load_movies(path: Path) -> List[MovieSeed]:
    """Read a JSON array of movies (title, releaseDate, genre, actors)."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return TypeAdapter(List[MovieSeed]).validate_python(data)


async def seed_movies(path: Path) -> int:
    movies = load_movies(path)
    database = Database(get_settings())
    await database.connect()
    try:
        return await database.movies.insert_many(movies)
    finally:
        await database.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="moviereviews", description="Movie reviews API")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=None, help="Defaults to $PORT")

    seed = subparsers.add_parser("seed", help="Insert movies from a JSON file")
    seed.add_argument("path", type=Path)

    args = parser.parse_args(argv)
    settings = get_settings()
    setup_api_logger(log_dir=settings.LOG_DIR, level=settings.LOG_LEVEL.upper())

    if args.command == "serve":
        uvicorn.run(
            "moviereviews.main:create_app",
            factory=True,
            host=args.host,
            port=args.port or settings.PORT,
        )
        return 0

    try:
        count = asyncio.run(seed_movies(args.path))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Could not load movies from {args.path}: {e}")
        return 1
    logger.info(f"Inserted {count} movies from {args.path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

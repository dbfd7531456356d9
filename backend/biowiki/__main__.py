"""
Biowiki — Command Line Entry Point
===================================

Usage:
    biowiki --dir PATH [--host HOST] [--port PORT]
    python -m biowiki --dir PATH

--dir must name an existing directory; it becomes the storage root.
Host and port default to the settings (BIOWIKI_HOST / BIOWIKI_PORT,
127.0.0.1:3000 when unset).
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import uvicorn

from biowiki.config import settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="biowiki", description="Biowiki server")
    parser.add_argument(
        "-H", "--host",
        default=settings.host,
        help=f"listen on host (default: {settings.host})",
    )
    parser.add_argument(
        "-p", "--port",
        type=int,
        default=settings.port,
        help=f"listen on port (default: {settings.port})",
    )
    parser.add_argument(
        "-d", "--dir",
        required=True,
        help="directory for wiki files",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    root = Path(args.dir)
    if not root.is_dir():
        print(f"{root} is not a directory", file=sys.stderr)
        return 1

    settings.storage_root = str(root.resolve())
    settings.host = args.host
    settings.port = args.port

    # Imported after the settings are final: create_app() reads them
    from biowiki.main import create_app

    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Entry point for `python -m loader_cli` and `sqlloader` console script."""

from __future__ import annotations

from loader_cli.app import app


def main() -> None:
    app()


if __name__ == "__main__":
    main()

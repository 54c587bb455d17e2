"""Entry point for the contactview CLI."""

from __future__ import annotations

from contactview.app import main as run


def main() -> None:
    run()


if __name__ == "__main__":
    main()

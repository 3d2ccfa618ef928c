"""CLI entry point for running the tgcd service."""

from tgcd.main import run

if __name__ == "__main__":
    run()

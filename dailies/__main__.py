"""Ermöglicht `python -m dailies`."""

from dailies.main import run

if __name__ == "__main__":
    run()

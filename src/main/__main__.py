"""
Main module entry point.

Running `python -m src.main` starts the scoring worker together with the
beat scheduler that triggers the daily scoring run.
"""

from .worker import main

if __name__ == "__main__":
    main()

"""Allow running as ``python -m acroscript``."""

from .cli import main

if __name__ == "__main__":
    main()

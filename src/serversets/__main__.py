"""Allow ``python -m serversets``."""

from .cli import main

if __name__ == "__main__":
    main()

"""Allow ``python -m user_ledgers DIRECTORY``."""

from .cli import main

main()

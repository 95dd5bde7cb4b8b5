"""Allow ``python -m quizzine``."""

from quizzine.cli import main

main()

"""Allow ``python -m pql_ci_cd``."""

from .cli import main

main()

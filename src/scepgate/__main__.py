"""Allow ``python -m scepgate``."""

from scepgate.cli.main import main

main()

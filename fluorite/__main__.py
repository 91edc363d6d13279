"""Allow ``python -m fluorite``."""

from fluorite.cli import main

raise SystemExit(main())

"""Allow `python -m studycards`."""

from studycards.cli import main

raise SystemExit(main())

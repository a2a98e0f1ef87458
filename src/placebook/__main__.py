import sys

from placebook.cli import main

sys.exit(main())

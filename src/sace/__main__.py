import sys

from sace.cli import main

sys.exit(main())

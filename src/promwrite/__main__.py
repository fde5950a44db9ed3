import sys

from promwrite.cli import main

sys.exit(main())

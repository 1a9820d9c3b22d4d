import sys

from protostage.cli import main

sys.exit(main())

import sys

from frontboost.cli import main

sys.exit(main())

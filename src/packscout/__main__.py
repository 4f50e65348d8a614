import sys

from packscout.cli import main

sys.exit(main())

import sys

from isofilter.cli import main

sys.exit(main())

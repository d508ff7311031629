import sys

from realityprobe.cli import main

sys.exit(main())

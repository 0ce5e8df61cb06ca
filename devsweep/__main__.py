import sys

from devsweep.cli import main

sys.exit(main())

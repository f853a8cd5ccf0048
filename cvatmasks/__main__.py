import sys

from cvatmasks.cli import main

sys.exit(main())

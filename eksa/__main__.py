import sys

from eksa.cli import main

sys.exit(main())

import sys

from reflectdoc.cli import main

sys.exit(main())

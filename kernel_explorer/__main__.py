import sys

from .run_explorer import main

sys.exit(main())

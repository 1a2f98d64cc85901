import sys

from webharvest.cli import main

sys.exit(main())

"""Allow `python -m pds_tools`."""

import sys

from .main import main

sys.exit(main())

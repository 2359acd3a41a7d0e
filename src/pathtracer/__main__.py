"""Allow ``python -m pathtracer <output_file>``."""

import sys

from pathtracer.cli import main

sys.exit(main())

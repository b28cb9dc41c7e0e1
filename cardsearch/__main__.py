"""Allow ``python -m cardsearch``."""

import sys

from cardsearch.entrypoint import main

sys.exit(main())

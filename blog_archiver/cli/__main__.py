"""Allow ``python -m blog_archiver.cli`` execution."""

import sys

from blog_archiver.cli.archive import main

sys.exit(main())

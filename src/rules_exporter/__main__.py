import sys

from rules_exporter.cli import main

sys.exit(main())

import sys

from fubelt.cli import main

raise SystemExit(main(sys.argv[1:]))

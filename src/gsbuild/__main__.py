import sys

from gsbuild.cli import main

sys.exit(main())

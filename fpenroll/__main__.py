import sys

from fpenroll.cli import main

sys.exit(main())

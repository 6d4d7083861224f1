import sys

from llamanator.run import main

sys.exit(main())

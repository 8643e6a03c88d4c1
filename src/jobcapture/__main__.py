import sys

from jobcapture.cli import main

sys.exit(main())

import sys

from hof_merge.merge_utility import main

sys.exit(main())

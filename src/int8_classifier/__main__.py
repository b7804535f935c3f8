import sys

from int8_classifier.cli import main

sys.exit(main())

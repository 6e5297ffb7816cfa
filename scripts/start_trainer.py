#!/usr/bin/env python3
"""Interactive trainer entry point.

Operator commands at every checkpoint:
    P        print the current connection weights
    E        evaluate on the held-out suffix, then write histogram and ROC images
    R <n>    train for n more claims (at most 100 per round)
End of input stops the run.
"""

import sys

from sbnet.cli import main

if __name__ == "__main__":
    sys.exit(main())

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from makermusic import run  # noqa: E402

if __name__ == "__main__":
    run()

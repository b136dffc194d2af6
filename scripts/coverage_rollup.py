import os
import sys

# Add project root to path so we can import src
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.coverage.rollup import main

if __name__ == "__main__":
    sys.exit(main())

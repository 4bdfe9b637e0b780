import sys

from temp_throttle.main import main

if __name__ == "__main__":
    sys.exit(main())

import sys

from medscribe.server import main


if __name__ == "__main__":
    sys.exit(main())

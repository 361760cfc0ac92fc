import sys

from changelog_manager.cli import main

if __name__ == "__main__":
    sys.exit(main())

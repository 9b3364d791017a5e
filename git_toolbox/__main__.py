"""Allow running git-toolbox as `python -m git_toolbox`"""

from .cli import main

if __name__ == "__main__":
    main()

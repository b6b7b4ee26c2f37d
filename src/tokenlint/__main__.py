"""
Entry point for running tokenlint as a module: python -m tokenlint
"""

from .cli import main

if __name__ == "__main__":
    main()

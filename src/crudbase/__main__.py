"""Entry point for 'python -m crudbase' command."""

from crudbase.cli import main

if __name__ == "__main__":
    main()

"""Entry point for 'python -m studyvault'."""

from studyvault.cli import main

if __name__ == "__main__":
    main()

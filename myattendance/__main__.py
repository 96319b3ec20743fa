"""
Package entry point.

Allows running the application via:

    python -m myattendance

This simply forwards execution to myattendance.cli.main().
"""

from myattendance.cli import main

if __name__ == "__main__":
    main()

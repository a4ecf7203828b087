"""
Run gh-mirror as a module.

Usage:
    python -m gh_mirror USER
    python -m gh_mirror --dir /srv/git --timeout 5m USER
"""

from .main import main

if __name__ == "__main__":
    main()

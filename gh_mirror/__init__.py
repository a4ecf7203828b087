"""
gh-mirror — Keep bare mirrors of a GitHub account's public repositories.
"""

__version__ = "0.1.0"

"""
Mirror Engine — List, clone and update repositories.

This package provides repository listing, the per-repository
clone-or-update step, and the concurrent fan-out across all of them.
"""

"""
Drill engine core: models, scheduling, grading and item selection.

Submodules are imported directly (e.g. ``langdrill.core.engine``); the
content package depends on ``langdrill.core.models``.
"""

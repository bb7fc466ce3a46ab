"""
langdrill: adaptive language drills in the terminal.

Components:
- QuestionGenerator: builds one of five exercise types from an item
- Grader: fuzzy answer checking on the SM-2 quality scale
- SM2Scheduler: spaced repetition state transitions
- AbilityEstimator: per-skill proficiency and CEFR-style level
- LearningEngine: item selection and answer processing
- ProfileStore: JSON profile persistence and attempt logs
- ContentStore: builtin and cached decks
"""

__version__ = "0.1.0"

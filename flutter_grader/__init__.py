"""
Flutter Grader: Automated Mobile Assignment Grading

A grading pipeline that clones a submitted Flutter repository, runs the
project's own toolchain against it, and scores code quality with an LLM.
"""

__version__ = "0.1.0"

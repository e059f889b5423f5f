"""
training-tracker: training assignment and execution tracking for coaches.
"""

__version__ = "0.1.0"

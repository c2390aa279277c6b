"""
sunbird-bulk - Bulk provisioning for Sunbird learning platforms

This package turns CSV files into learner profiles, course enrollments,
questions and quizzes on a Sunbird instance, writing a per-row status
report for every run.
"""

__version__ = "1.0.0"
__author__ = "Dale Chapman"

"""
Baseline Navigator

Detects web-platform feature usage in CSS, JavaScript and HTML sources,
assesses browser-compatibility risk against the Baseline dataset and
suggests better-supported alternatives.
"""

__version__ = "1.0.0"
__author__ = "Baseline Navigator Team"

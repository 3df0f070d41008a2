"""
Talk-to-My-Lawyer Backend Application Package
"""

__version__ = "1.0.0"
__app_name__ = "Talk-to-My-Lawyer Backend"

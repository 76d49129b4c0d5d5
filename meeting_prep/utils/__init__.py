"""
Text helpers shared by the response parsers.
"""

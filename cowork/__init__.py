"""
Coworking space business portal core
"""

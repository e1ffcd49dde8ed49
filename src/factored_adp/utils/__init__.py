""" Factor-space utilities and validation
"""

"""engine

Headless year flow: directive -> new state + year-end report.
"""

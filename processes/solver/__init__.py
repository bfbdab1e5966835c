"""Knapsack solver process package.

Contains a thin, headless adapter around the external solver executables:
parameters are encoded into a positional argument vector, the matching
binary is run as a child process, and its output is decoded into a
`{success, data | error}` envelope.
"""
